"""
Region 할당 엔진 (Layouter)
=============================

논리적인 이름이 붙은 region(한 단계에서 쓰는 연속된 상대 행 묶음)을
격자의 절대 행 범위로 배치한다.

**배치 정책 (단순 순차 floor planning)**:
  - 각 region은 직전 region이 끝난 바로 다음 행에서 시작한다.
  - region의 크기 = (closure 안에서 실제로 사용한 최대 상대 offset) + 1.
    셀 할당과 셀렉터 켜기 모두 사용으로 친다. 아무것도 하지 않은 region의 크기는 0.
  - 따라서 두 assign_region 호출이 같은 절대 행을 공유하는 일은 구조적으로 없다.
    빈틈을 메우는 최적화는 하지 않는다 (밀도 문제일 뿐 정확성과는 무관).

  예 (피보나치, region마다 1행):
    | region       | 상대 행 | 절대 행 |
    |--------------|---------|---------|
    | first row    | 0       | 0       |
    | next row     | 0       | 1       |
    | next row     | 0       | 2       |

**Region 안의 할당 연산**:
  - assign_advice: 새 위트니스 값 쓰기 (값이 없으면 SynthesisError)
  - copy_advice: 원본 셀의 값을 복사하고 복사 제약 기록
  - assign_fixed: 상수 쓰기
  - assign_advice_from_instance: 공개 입력을 advice 셀로 복사
  - constrain_equal: 이미 할당된 두 셀 사이에 복사 제약만 기록
  - enable_selector: 셀렉터 켜기 (Selector.enable이 호출)
"""

import logging

from plonkish.assignment import AssignedCell, Cell
from plonkish.column import ADVICE, FIXED, INSTANCE
from plonkish.errors import ColumnNotEqualityEnabled, RegionOverlap, SynthesisError


logger = logging.getLogger(__name__)


class Region:
    """절대 행 범위 [start, start + size)에 묶인 region 핸들.

    모든 offset은 region 내부의 상대 행 번호이며 0 이상이어야 한다.
    """

    def __init__(self, layouter, name, start):
        self._layouter = layouter
        self._grid = layouter.grid
        self.name = name
        self.start = start
        self.size = 0

    def _row(self, offset):
        if offset < 0:
            raise RegionOverlap(self.name, self.start + offset)
        row = self.start + offset
        self._grid.check_row(row)
        self.size = max(self.size, offset + 1)
        return row

    def _require_equality(self, column):
        if not self._grid.cs.is_equality_enabled(column):
            raise ColumnNotEqualityEnabled(column)

    def enable_selector(self, selector, offset):
        row = self._row(offset)
        self._grid.enable_selector(selector, row)

    def assign_advice(self, name, column, offset, value):
        """advice 셀에 새 위트니스 값을 쓴다.

        Args:
            name: 진단용 셀 이름
            column: advice 열
            offset: region 내부 상대 행
            value: 필드 원소, 정수, 또는 그런 값을 반환하는 인자 없는 함수.
                None이면 (함수가 None을 반환해도) SynthesisError.

        Returns:
            AssignedCell
        """
        if column.kind != ADVICE:
            raise ValueError(f"{column}은(는) advice 열이 아닙니다")
        value = _materialize(value, name)
        row = self._row(offset)
        cell = self._grid.assign(column, row, value, name)
        return AssignedCell(cell, self._grid.value_of(cell), name)

    def assign_fixed(self, name, column, offset, value):
        """fixed 셀에 회로 상수를 쓴다."""
        if column.kind != FIXED:
            raise ValueError(f"{column}은(는) fixed 열이 아닙니다")
        value = _materialize(value, name)
        row = self._row(offset)
        cell = self._grid.assign(column, row, value, name)
        return AssignedCell(cell, self._grid.value_of(cell), name)

    def copy_advice(self, name, source, column, offset):
        """source 셀의 값을 (column, offset)에 쓰고 두 셀 사이에 복사 제약을 건다.

        Raises:
            ColumnNotEqualityEnabled: source 또는 대상 열에 equality가 없을 때
            SynthesisError: source에 값이 없고 전파될 값도 없을 때
        """
        if column.kind != ADVICE:
            raise ValueError(f"{column}은(는) advice 열이 아닙니다")
        self._require_equality(source.column)
        self._require_equality(column)

        value = source.value
        if value is None:
            value = self._grid.resolve(source.cell)
        if value is None:
            raise SynthesisError(f"복사할 원본 셀 {source.cell}에 값이 없습니다")

        row = self._row(offset)
        cell = self._grid.assign(column, row, value, name)
        self._grid.copies.record_equal(source.cell, cell)
        return AssignedCell(cell, self._grid.value_of(cell), name)

    def assign_advice_from_instance(self, name, instance_column, instance_row, column, offset):
        """공개 입력 (instance_column, instance_row)을 advice 셀로 복사한다."""
        if instance_column.kind != INSTANCE:
            raise ValueError(f"{instance_column}은(는) instance 열이 아닙니다")
        if column.kind != ADVICE:
            raise ValueError(f"{column}은(는) advice 열이 아닙니다")
        self._require_equality(instance_column)
        self._require_equality(column)
        self._grid.check_row(instance_row)

        instance_cell = Cell(instance_column, instance_row)
        value = self._grid.value_of(instance_cell)
        row = self._row(offset)
        cell = self._grid.assign(column, row, value, name)
        self._grid.copies.record_equal(instance_cell, cell)
        return AssignedCell(cell, self._grid.value_of(cell), name)

    def constrain_equal(self, cell_a, cell_b):
        """이미 할당된 두 셀이 같아야 함을 기록한다. 값은 쓰지 않는다."""
        cell_a = _as_cell(cell_a)
        cell_b = _as_cell(cell_b)
        self._require_equality(cell_a.column)
        self._require_equality(cell_b.column)
        self._grid.copies.record_equal(cell_a, cell_b)


class SimpleLayouter:
    """단순 순차 floor planner.

    속성:
        grid: WitnessGrid
        regions: (이름, 시작 행, 끝 행(미포함)) 리스트, 할당 순서
    """

    def __init__(self, grid):
        self.grid = grid
        self.regions = []
        self._cursor = 0
        self._active = None

    def assign_region(self, name, assignment):
        """새 region을 열어 assignment(region)을 실행하고 그 결과를 반환한다.

        assignment가 던진 예외는 그대로 전파된다 (부분 위트니스 복구 없음).
        예외가 나도 그때까지 건드린 행은 이 region의 것으로 기록되어,
        이후의 region이 같은 행을 다시 받지 않는다.
        """
        if self._active is not None:
            raise RegionOverlap(name, self._cursor)

        region = Region(self, name, self._cursor)
        self._active = region
        try:
            return assignment(region)
        finally:
            self._active = None
            self._place(region)

    def _place(self, region):
        end = region.start + region.size
        self.regions.append((region.name, region.start, end))
        for row in range(region.start, end):
            self.grid.row_regions[row] = region.name
        self._cursor = end
        logger.debug("region '%s' placed at rows [%d, %d)", region.name, region.start, end)

    def constrain_instance(self, cell, instance_column, row):
        """할당된 셀이 공개 입력 (instance_column, row)과 같아야 함을 기록한다."""
        cell = _as_cell(cell)
        if instance_column.kind != INSTANCE:
            raise ValueError(f"{instance_column}은(는) instance 열이 아닙니다")
        for column in (cell.column, instance_column):
            if not self.grid.cs.is_equality_enabled(column):
                raise ColumnNotEqualityEnabled(column)
        self.grid.check_row(row)
        self.grid.copies.record_equal(cell, Cell(instance_column, row))

    def namespace(self, name):
        return NamespacedLayouter(self, name)

    @property
    def rows_used(self):
        return self._cursor


class NamespacedLayouter:
    """region 이름 앞에 namespace를 붙이는 layouter 뷰.

    같은 격자와 배치 상태를 공유한다.
    """

    def __init__(self, parent, name):
        self._parent = parent
        self.name = name

    @property
    def grid(self):
        return self._parent.grid

    @property
    def regions(self):
        return self._parent.regions

    def assign_region(self, name, assignment):
        return self._parent.assign_region(f"{self.name}/{name}", assignment)

    def constrain_instance(self, cell, instance_column, row):
        self._parent.constrain_instance(cell, instance_column, row)

    def namespace(self, name):
        return NamespacedLayouter(self, name)


def _materialize(value, name):
    if callable(value):
        value = value()
    if value is None:
        raise SynthesisError(f"'{name}' 셀에 할당할 위트니스 값이 없습니다")
    return value


def _as_cell(cell):
    if isinstance(cell, AssignedCell):
        return cell.cell
    return cell
