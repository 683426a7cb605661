"""
셀 / 위트니스 저장소 (Witness Grid)
=====================================

(열 × 행) → 값 격자와 행별 셀렉터 상태, 그리고 복사 제약 추적기를 보관한다.

**격자 구조** (n = 2^k 행):
  | 행 | advice[0] | advice[1] | advice[2] | instance[0] | s[0] |
  |----|-----------|-----------|-----------|-------------|------|
  | 0  | 1         | 1         | 2         | 55          | on   |
  | 1  | 1         | 2         | 3         | 0           | on   |
  | …  | …         | …         | …         | …           | …    |

**기본값 규칙**:
  - advice 셀: 기본값 없음 (None). 게이트가 빈 advice 셀을 참조하면 검사 실패.
  - fixed 셀: 할당되지 않으면 0 (회로 상수).
  - instance 셀: 공개 입력으로 주어지지 않은 행은 0.
  - 셀렉터: 기본값은 꺼짐.

**단일 할당 규칙**:
  이미 값이 있는 셀에 다른 값을 쓰면 DoubleAssignment.
  같은 값을 다시 쓰는 것은 허용한다.

격자는 합성(synthesize) 동안 엔진이 독점하고, freeze() 이후에는 읽기 전용이다.
"""

from plonkish.column import ADVICE, FIXED, INSTANCE
from plonkish.errors import DoubleAssignment, NotEnoughRowsAvailable
from plonkish.field import to_field
from plonkish.permutation import CopyConstraintTracker


class Cell:
    """(열, 절대 행) 쌍. 복사 제약 추적에 쓰이는 셀 식별자."""

    __slots__ = ("column", "row")

    def __init__(self, column, row):
        object.__setattr__(self, "column", column)
        object.__setattr__(self, "row", row)

    def __setattr__(self, name, value):
        raise AttributeError("Cell은 변경할 수 없습니다")

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return (self.column, self.row) == (other.column, other.row)

    def __hash__(self):
        return hash((self.column, self.row))

    def __lt__(self, other):
        return (self.column, self.row) < (other.column, other.row)

    def __repr__(self):
        return f"Cell({self.column!r}, {self.row})"

    def __str__(self):
        return f"{self.column}@{self.row}"


class AssignedCell:
    """할당이 끝난 셀 핸들.

    region 할당 함수가 반환하며, 다음 region에서 copy_advice의 원본으로 쓰인다.

    속성:
        cell: Cell (절대 위치)
        value: 할당된 필드 원소
        name: 진단용 이름 (예: "a")
    """

    def __init__(self, cell, value, name=""):
        self.cell = cell
        self.value = value
        self.name = name

    @property
    def column(self):
        return self.cell.column

    @property
    def row(self):
        return self.cell.row

    def copy_advice(self, name, region, column, offset):
        """이 셀의 값을 region의 (column, offset)에 복사하고 복사 제약을 건다."""
        return region.copy_advice(name, self, column, offset)

    def __repr__(self):
        return f"AssignedCell({self.name!r}, {self.cell}, {self.value})"


class WitnessGrid:
    """위트니스 격자.

    Args:
        cs: ConstraintSystem (열 수와 필드 타입을 제공)
        k: 격자 크기 지수 (행 수 n = 2^k)
        instance: 공개 입력. instance 열마다 값 리스트 하나.

    속성:
        n: 행 수
        advice, fixed, instance: 열 종류별 [열][행] 값 리스트
        selectors: [셀렉터][행] 불리언 리스트
        copies: CopyConstraintTracker
        cell_names: Cell → 할당 시 붙인 이름
        row_regions: 행 → 그 행을 소유한 region 이름
    """

    def __init__(self, cs, k, instance=()):
        self.cs = cs
        self.field = cs.field
        self.k = k
        self.n = 1 << k

        zero = self.field(0)
        self.advice = [[None] * self.n for _ in range(cs.num_advice_columns)]
        self.fixed = [[None] * self.n for _ in range(cs.num_fixed_columns)]
        self.instance = [[zero] * self.n for _ in range(cs.num_instance_columns)]
        self.selectors = [[False] * self.n for _ in range(cs.num_selectors)]

        for column_values, values in zip(self.instance, instance):
            for row, value in enumerate(values):
                column_values[row] = to_field(value, self.field)

        self.copies = CopyConstraintTracker()
        self.cell_names = {}
        self.row_regions = {}
        self.frozen = False

    def _column_values(self, column):
        if column.kind == ADVICE:
            return self.advice[column.index]
        if column.kind == FIXED:
            return self.fixed[column.index]
        return self.instance[column.index]

    def check_row(self, row):
        if row < 0 or row >= self.n:
            raise NotEnoughRowsAvailable(self.k, row)

    def assign(self, column, row, value, name=""):
        """(column, row) 셀에 값을 쓴다.

        Raises:
            NotEnoughRowsAvailable: row가 격자 밖일 때
            DoubleAssignment: 이미 다른 값이 있을 때
        """
        self._check_writable()
        self.check_row(row)
        if column.kind == INSTANCE:
            raise ValueError("instance 열은 공개 입력으로만 채워진다")
        value = to_field(value, self.field)
        column_values = self._column_values(column)
        old = column_values[row]
        if old is not None and old != value:
            raise DoubleAssignment(column, row, old, value)
        column_values[row] = value
        cell = Cell(column, row)
        if name:
            self.cell_names[cell] = name
        return cell

    def enable_selector(self, selector, row):
        self._check_writable()
        self.check_row(row)
        self.selectors[selector.index][row] = True

    def value_of(self, cell):
        """셀에 직접 저장된 값. advice 셀이 비어 있으면 None, fixed 빈 셀은 0."""
        value = self._column_values(cell.column)[cell.row]
        if value is None and cell.column.kind == FIXED:
            return self.field(0)
        return value

    def resolve(self, cell):
        """셀의 값. 비어 있으면 복사 제약 동치류를 통해 전파된 값을 찾는다."""
        return self.copies.resolve(cell, self.value_of)

    def is_selector_enabled(self, selector, row):
        return self.selectors[selector.index][row]

    def freeze(self):
        """검사가 시작되면 격자를 읽기 전용으로 만든다."""
        self.frozen = True

    def _check_writable(self):
        if self.frozen:
            raise RuntimeError("검사가 시작된 격자에는 더 이상 쓸 수 없습니다")
