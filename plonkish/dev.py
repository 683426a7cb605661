"""
만족성 검사기 (Mock Prover)
=============================

완성된 위트니스 격자가 회로의 모든 제약을 만족하는지 로컬에서 확인한다.
암호학적 증명을 만들기 전에, 만족하는 위트니스만 백엔드로 넘어가도록 보장하는 단계.

**상태 기계**:
  Built (합성 완료, 미검사) ──verify()──> CheckedOk | CheckedFailed (종료 상태)
  verify()를 다시 호출하면 같은 결과를 돌려준다.

**검사 알고리즘**:
  1. 게이트 검사: 모든 행 × 모든 게이트에 대해, 게이트의 셀렉터가 켜진 행이면
     각 제약 식을 평가한다. 결과가 0이 아니면 ConstraintNotSatisfied.
     - 빈 advice 셀은 복사 제약 동치류를 통해 전파된 값으로 채운다.
     - 그래도 비어 있으면 CellNotAssigned (0으로 취급하지 않는다).
     - 셀렉터를 하나도 참조하지 않는 게이트는 region에 속한 모든 행에서 평가한다.
     - rotation으로 참조한 행은 격자 크기 n을 법으로 순환한다.
  2. 복사 제약 검사: 동치류마다 값이 할당된 셀들이 모두 같아야 한다
     (CopyConstraintViolation). 동치류에 instance 셀이 있으면 그 공개 입력 값과
     일치해야 한다 (PublicInputMismatch).

위반 사항은 예외가 아니라 VerifyFailure 값의 리스트로 반환된다.
실제 검증자는 위반 개수와 상관없이 증명 전체를 거부하므로, 기본 동작은 모든 위반을 나열하는 것이다.
fail_fast=True면 처음 위반이 발견된 검사 단계에서 첫 위반만 보고하고 멈춘다.

사용 예시:
    >>> prover = MockProver.run(4, FibonacciCircuit(FR(1), FR(1)), [[]])
    >>> prover.verify()          # [] (만족)
    >>> prover.assert_satisfied()
"""

import enum
import logging

from plonkish.assignment import Cell, WitnessGrid
from plonkish.column import ADVICE, INSTANCE
from plonkish.constraint_system import ConstraintSystem
from plonkish.errors import NotEnoughRowsAvailable
from plonkish.field import FR, is_zero
from plonkish.layouter import SimpleLayouter


logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 위반 사항 (Verify Failures)
# ─────────────────────────────────────────────────────────────────────

class VerifyFailure:
    """검사기가 보고하는 위반 사항의 공통 부모 클래스.

    같은 종류이고 _key()가 같으면 같은 위반으로 본다.
    """

    def _key(self):
        raise NotImplementedError

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash((type(self).__name__, self._key()))

    def __repr__(self):
        return f"{type(self).__name__}({self})"


class ConstraintNotSatisfied(VerifyFailure):
    """셀렉터가 켜진 행에서 게이트 식이 0이 아니다.

    속성:
        gate: 게이트 이름
        constraint_index: 게이트 안에서 식의 순번
        constraint_name: 식 이름 ("" 가능)
        row: 절대 행
        region: 그 행을 소유한 region 이름 (없으면 None)
        cell_values: 식이 참조한 셀들의 [(셀 표기, 값 문자열)]
    """

    def __init__(self, gate, constraint_index, constraint_name, row, region, cell_values):
        self.gate = gate
        self.constraint_index = constraint_index
        self.constraint_name = constraint_name
        self.row = row
        self.region = region
        self.cell_values = list(cell_values)

    def _key(self):
        return (self.gate, self.constraint_index, self.row)

    def __str__(self):
        label = f"{self.constraint_index}"
        if self.constraint_name:
            label += f" '{self.constraint_name}'"
        values = ", ".join(f"{cell} = {value}" for cell, value in self.cell_values)
        return (
            f"gate '{self.gate}' constraint {label} is not satisfied at row {self.row}"
            f" (region '{self.region}'): {values}"
        )


class CellNotAssigned(VerifyFailure):
    """게이트가 참조한 advice 셀이 비어 있고 전파될 값도 없다."""

    def __init__(self, gate, region, column, row):
        self.gate = gate
        self.region = region
        self.column = column
        self.row = row

    def _key(self):
        return (self.gate, self.column, self.row)

    def __str__(self):
        return (
            f"gate '{self.gate}' queries unassigned cell {self.column}@{self.row}"
            f" (region '{self.region}')"
        )


class CopyConstraintViolation(VerifyFailure):
    """복사 제약으로 묶인 두 셀의 값이 다르다."""

    def __init__(self, cell_a, cell_b, value_a, value_b):
        self.cell_a = cell_a
        self.cell_b = cell_b
        self.value_a = value_a
        self.value_b = value_b

    def _key(self):
        return (self.cell_a, self.cell_b)

    def __str__(self):
        return (
            f"copy constraint {self.cell_a} == {self.cell_b} is violated"
            f" ({self.value_a} != {self.value_b})"
        )


class PublicInputMismatch(VerifyFailure):
    """instance 셀과 묶인 셀의 값이 공개 입력과 다르다."""

    def __init__(self, column, row, expected, actual, cell):
        self.column = column
        self.row = row
        self.expected = expected
        self.actual = actual
        self.cell = cell

    def _key(self):
        return (self.column, self.row, self.cell)

    def __str__(self):
        return (
            f"public input {self.column}@{self.row} is {self.expected}"
            f" but {self.cell} holds {self.actual}"
        )


# ─────────────────────────────────────────────────────────────────────
# 행 문맥 (Row Context)
# ─────────────────────────────────────────────────────────────────────

class _UnassignedQuery(Exception):
    def __init__(self, column, row):
        self.column = column
        self.row = row


class RowContext:
    """Expression.evaluate()에 넘기는 한 행의 질의 문맥."""

    def __init__(self, grid, row):
        self.grid = grid
        self.field = grid.field
        self.row = row

    def query_selector(self, selector):
        return self.field(1) if self.grid.is_selector_enabled(selector, self.row) else self.field(0)

    def query_column(self, column, rotation):
        row = (self.row + rotation.offset) % self.grid.n
        value = self.grid.resolve(Cell(column, row))
        if value is None:
            raise _UnassignedQuery(column, row)
        return value


# ─────────────────────────────────────────────────────────────────────
# Mock Prover
# ─────────────────────────────────────────────────────────────────────

class ProverStatus(enum.Enum):
    BUILT = "built"
    CHECKED_OK = "checked-ok"
    CHECKED_FAILED = "checked-failed"


class MockProver:
    """합성된 격자와 제약 시스템을 들고 있는 검사기.

    직접 생성하지 말고 MockProver.run()을 사용한다.

    속성:
        cs: ConstraintSystem
        grid: WitnessGrid
        layouter: 합성에 쓰인 SimpleLayouter (regions 조회용)
        status: ProverStatus
    """

    def __init__(self, cs, grid, layouter):
        self.cs = cs
        self.grid = grid
        self.layouter = layouter
        self.status = ProverStatus.BUILT
        self._failures = None

    @classmethod
    def run(cls, k, circuit, instance=(), field=FR):
        """configure → synthesize를 실행하고 검사 전 상태의 prover를 반환한다.

        Args:
            k: 격자 크기 지수 (행 수 2^k)
            circuit: Circuit
            instance: instance 열마다 공개 입력 값 리스트 하나.
                열 수보다 적게 주면 나머지 열은 비어 있는 것(전부 0)으로 본다.
            field: 필드 클래스

        Raises:
            ValueError: k가 음수이거나 instance 리스트가 instance 열보다 많을 때
            NotEnoughRowsAvailable: 공개 입력이나 region이 격자를 넘칠 때
            SynthesisError 등: synthesize 중 발생한 오류는 그대로 전파된다
        """
        if k < 0:
            raise ValueError(f"k는 음수일 수 없습니다: {k}")

        cs = ConstraintSystem(field)
        config = circuit.configure(cs)

        instance = [list(values) for values in instance]
        if len(instance) > cs.num_instance_columns:
            raise ValueError(
                f"instance 열은 {cs.num_instance_columns}개인데 "
                f"공개 입력 리스트가 {len(instance)}개입니다"
            )
        n = 1 << k
        for values in instance:
            if len(values) > n:
                raise NotEnoughRowsAvailable(k, len(values) - 1)

        grid = WitnessGrid(cs, k, instance)
        layouter = SimpleLayouter(grid)
        circuit.synthesize(config, layouter)
        logger.debug(
            "synthesized %d regions over %d/%d rows", len(layouter.regions), layouter.rows_used, n
        )
        return cls(cs, grid, layouter)

    @property
    def regions(self):
        return self.layouter.regions

    def verify(self, fail_fast=False):
        """모든 제약을 검사하고 위반 리스트를 반환한다 (빈 리스트 = 만족).

        첫 호출 이후에는 격자가 읽기 전용이 되고, 같은 결과를 다시 돌려준다.
        """
        if self._failures is not None:
            return list(self._failures)

        self.grid.freeze()
        failures = self._check_gates(fail_fast)
        if not (fail_fast and failures):
            failures.extend(self._check_copies(fail_fast))
        if fail_fast:
            failures = failures[:1]

        self._failures = failures
        self.status = ProverStatus.CHECKED_FAILED if failures else ProverStatus.CHECKED_OK
        logger.info("mock prover: %s (%d failures)", self.status.value, len(failures))
        return list(failures)

    def assert_satisfied(self):
        """위반이 하나라도 있으면 모든 위반을 나열한 AssertionError를 던진다."""
        failures = self.verify()
        if failures:
            lines = "\n".join(f"  - {failure}" for failure in failures)
            raise AssertionError(f"circuit is not satisfied ({len(failures)} failures):\n{lines}")

    # ── 게이트 검사 ──

    def _gate_rows(self, gate):
        selectors = gate.queried_selectors()
        if not selectors:
            return sorted(self.grid.row_regions)
        return [
            row for row in range(self.grid.n)
            if any(self.grid.is_selector_enabled(s, row) for s in selectors)
        ]

    def _check_gates(self, fail_fast):
        failures = []
        rows_by_gate = [(gate, set(self._gate_rows(gate))) for gate in self.cs.gates]
        for row in range(self.grid.n):
            ctx = RowContext(self.grid, row)
            region = self.grid.row_regions.get(row)
            for gate, rows in rows_by_gate:
                if row not in rows:
                    continue
                failures.extend(self._check_gate_at(gate, ctx, region))
                if fail_fast and failures:
                    return failures
        return failures

    def _check_gate_at(self, gate, ctx, region):
        failures = []
        for index, (name, poly) in enumerate(zip(gate.constraint_names, gate.polys)):
            try:
                value = poly.evaluate(ctx)
            except _UnassignedQuery as missing:
                failure = CellNotAssigned(gate.name, region, missing.column, missing.row)
                if failure not in failures:
                    failures.append(failure)
                continue
            if not is_zero(value):
                failures.append(ConstraintNotSatisfied(
                    gate.name, index, name, ctx.row, region, self._cell_values(poly, ctx)
                ))
        return failures

    def _cell_values(self, poly, ctx):
        values = []
        for column, rotation in poly.queried_columns():
            row = (ctx.row + rotation.offset) % self.grid.n
            value = self.grid.resolve(Cell(column, row))
            values.append((f"{column}@{row}", "unassigned" if value is None else str(value)))
        for selector in poly.queried_selectors():
            values.append((str(selector), str(ctx.query_selector(selector))))
        return values

    # ── 복사 제약 검사 ──

    def _check_copies(self, fail_fast):
        failures = []
        for members in self.grid.copies.classes():
            failures.extend(self._check_class(members))
            if fail_fast and failures:
                return failures
        return failures

    def _check_class(self, members):
        failures = []
        assigned = []
        public = []
        for cell in members:
            value = self.grid.value_of(cell)
            if cell.column.kind == INSTANCE:
                public.append((cell, value))
            elif value is not None:
                assigned.append((cell, value))

        if assigned:
            ref_cell, ref_value = assigned[0]
            for cell, value in assigned[1:]:
                if value != ref_value:
                    failures.append(CopyConstraintViolation(ref_cell, cell, ref_value, value))
            for cell, value in public:
                if value != ref_value:
                    failures.append(PublicInputMismatch(
                        cell.column, cell.row, value, ref_value, ref_cell
                    ))
        elif public:
            ref_cell, ref_value = public[0]
            for cell, value in public[1:]:
                if value != ref_value:
                    failures.append(CopyConstraintViolation(ref_cell, cell, ref_value, value))
        return failures

    def advice_value(self, column, row):
        """advice 셀의 (전파를 포함한) 값. 테스트와 데모에서 결과를 읽을 때 쓴다."""
        if column.kind != ADVICE:
            raise ValueError(f"{column}은(는) advice 열이 아닙니다")
        return self.grid.resolve(Cell(column, row))
