"""
Mock Prover (만족성 검사기) 테스트.

테스트 대상:
  - 피보나치 시드 1, 1 / 점화 단계 7개 → 마지막 값 55, 위반 0개
  - 여러 시드와 단계 수에 대한 점화식 결과, 작은 필드 F97 위의 같은 회로
  - 조작된 위트니스: 조작한 행에서만 ConstraintNotSatisfied
  - 셀렉터 꺼짐: 해당 행의 게이트 검사 생략
  - 복사 제약: 값 전파, 빈 셀(CellNotAssigned), 충돌(CopyConstraintViolation)
  - 공개 입력 불일치 (PublicInputMismatch)
  - 위트니스 없는 합성 (SynthesisError)
  - 상태 전이, fail_fast, assert_satisfied, rotation 순환, 셀렉터 없는 게이트
"""

import random
import pytest
from py_ecc.fields import bn128_FQ as FQ

from plonkish.assignment import Cell
from plonkish.circuit import Circuit
from plonkish.column import ADVICE, Rotation
from plonkish.dev import (
    CellNotAssigned,
    ConstraintNotSatisfied,
    CopyConstraintViolation,
    MockProver,
    ProverStatus,
    PublicInputMismatch,
)
from plonkish.errors import NotEnoughRowsAvailable, SynthesisError
from plonkish.fibonacci import FibonacciChip, FibonacciCircuit, fibonacci_term
from plonkish.field import FR

TEST_K = 4
SEED_A = 1
SEED_B = 1
NUM_STEPS = 7
EXPECTED_OUT = 55


class F97(FQ):
    field_modulus = 97


# ─────────────────────────────────────────────────────────────────────
# 테스트용 회로
# ─────────────────────────────────────────────────────────────────────

class TamperedFibonacci(FibonacciCircuit):
    """지정한 점화 단계의 c에 1을 더하는 피보나치 회로.

    disable_selector=True면 조작한 행의 셀렉터를 켜지 않는다.
    """

    def __init__(self, a, b, num_steps, tamper_steps, disable_selector=False):
        super().__init__(a, b, num_steps)
        self.tamper_steps = set(tamper_steps)
        self.disable_selector = disable_selector

    def synthesize(self, config, layouter):
        chip = FibonacciChip(config)
        col_a, col_b, col_c = config.advice
        _, prev_b, prev_c = chip.assign_first_row(layouter, self.a, self.b)

        for step in range(1, self.num_steps + 1):
            if step not in self.tamper_steps:
                c_cell = chip.assign_row(layouter, prev_b, prev_c)
            else:
                def assign(region, prev_b=prev_b, prev_c=prev_c):
                    if not self.disable_selector:
                        config.selector.enable(region, 0)
                    a_cell = prev_b.copy_advice("a", region, col_a, 0)
                    b_cell = prev_c.copy_advice("b", region, col_b, 0)
                    return region.assign_advice("c", col_c, 0, a_cell.value + b_cell.value + FR(1))

                c_cell = layouter.assign_region("tampered row", assign)
            prev_b, prev_c = prev_c, c_cell


class SingleRow(Circuit):
    """임의의 (a, b, c) 한 행만 할당하는 회로."""

    def __init__(self, a, b, c, selector_on=True):
        self.a, self.b, self.c = a, b, c
        self.selector_on = selector_on

    def without_witnesses(self):
        return SingleRow(None, None, None, self.selector_on)

    @staticmethod
    def configure(meta):
        return FibonacciChip.configure(meta)

    def synthesize(self, config, layouter):
        col_a, col_b, col_c = config.advice

        def assign(region):
            if self.selector_on:
                config.selector.enable(region, 0)
            region.assign_advice("a", col_a, 0, self.a)
            region.assign_advice("b", col_b, 0, self.b)
            region.assign_advice("c", col_c, 0, self.c)

        layouter.assign_region("row", assign)


class BlankOutput(Circuit):
    """c 셀을 비워 두는 회로.

    linked=True면 c 셀을 다른 region에 할당된 a + b 값과 복사 제약으로 묶는다.
    """

    def __init__(self, a, b, linked):
        self.a, self.b = a, b
        self.linked = linked

    def without_witnesses(self):
        return BlankOutput(None, None, self.linked)

    @staticmethod
    def configure(meta):
        return FibonacciChip.configure(meta)

    def synthesize(self, config, layouter):
        col_a, col_b, col_c = config.advice

        def first(region):
            config.selector.enable(region, 0)
            region.assign_advice("a", col_a, 0, self.a)
            region.assign_advice("b", col_b, 0, self.b)
            return Cell(col_c, region.start)

        blank = layouter.assign_region("blank c", first)

        def second(region):
            total = region.assign_advice("sum", col_a, 0, self.a + self.b)
            if self.linked:
                region.constrain_equal(blank, total)

        layouter.assign_region("sum", second)


class ConflictingCopy(FibonacciCircuit):
    """피보나치 회로의 마지막 c를 다른 값이 든 셀과 복사 제약으로 묶는다."""

    def synthesize(self, config, layouter):
        chip = FibonacciChip(config)
        col_a = config.advice[0]
        _, prev_b, prev_c = chip.assign_first_row(layouter, self.a, self.b)
        for _ in range(self.num_steps):
            prev_b, prev_c = prev_c, chip.assign_row(layouter, prev_b, prev_c)

        def assign(region):
            other = region.assign_advice("other", col_a, 0, prev_c.value + FR(44))
            region.constrain_equal(prev_c, other)

        layouter.assign_region("conflict", assign)


class WrapAround(Circuit):
    """s · (a@+1 - a) 게이트를 마지막 행에서 켜서 0행을 참조하게 한다."""

    def __init__(self, first, last):
        self.first = first
        self.last = last

    def without_witnesses(self):
        return WrapAround(None, None)

    @staticmethod
    def configure(meta):
        col = meta.advice_column()
        selector = meta.selector()
        meta.create_gate("wrap", lambda vc: [
            vc.query_selector(selector)
            * (vc.query_advice(col, Rotation.next()) - vc.query_advice(col))
        ])
        return col, selector

    def synthesize(self, config, layouter):
        col, selector = config
        last_row = layouter.grid.n - 1
        layouter.assign_region("first", lambda r: r.assign_advice("x", col, 0, self.first))

        def assign(region):
            offset = last_row - region.start
            selector.enable(region, offset)
            region.assign_advice("y", col, offset, self.last)

        layouter.assign_region("last", assign)


class Unselected(Circuit):
    """셀렉터 없는 게이트 a - b = 0."""

    def __init__(self, a, b):
        self.a, self.b = a, b

    def without_witnesses(self):
        return Unselected(None, None)

    @staticmethod
    def configure(meta):
        col_a = meta.advice_column()
        col_b = meta.advice_column()
        meta.create_gate("eq", lambda vc: [vc.query_advice(col_a) - vc.query_advice(col_b)])
        return col_a, col_b

    def synthesize(self, config, layouter):
        col_a, col_b = config

        def assign(region):
            region.assign_advice("a", col_a, 0, self.a)
            region.assign_advice("b", col_b, 0, self.b)

        layouter.assign_region("row", assign)


class InstanceGate(Circuit):
    """게이트가 instance 열을 직접 참조한다: s · (a - instance) = 0."""

    def __init__(self, a):
        self.a = a

    def without_witnesses(self):
        return InstanceGate(None)

    @staticmethod
    def configure(meta):
        col = meta.advice_column()
        inst = meta.instance_column()
        selector = meta.selector()
        meta.create_gate("public", lambda vc: [
            vc.query_selector(selector) * (vc.query_advice(col) - vc.query_instance(inst))
        ])
        return col, selector

    def synthesize(self, config, layouter):
        col, selector = config

        def assign(region):
            selector.enable(region, 0)
            region.assign_advice("a", col, 0, self.a)

        layouter.assign_region("row", assign)


def _output_column(prover):
    return prover.cs.columns(ADVICE)[2]


# ─────────────────────────────────────────────────────────────────────
# 정상 위트니스
# ─────────────────────────────────────────────────────────────────────

class TestFibonacciSatisfied:
    def test_output_is_55(self, fibonacci_prover):
        assert fibonacci_prover.advice_value(_output_column(fibonacci_prover), NUM_STEPS) \
            == FR(EXPECTED_OUT)

    def test_no_failures(self, fibonacci_prover):
        assert fibonacci_prover.verify() == []
        fibonacci_prover.assert_satisfied()

    def test_regions(self, fibonacci_prover):
        expected = [("fibonacci/first row", 0, 1)] + [
            ("fibonacci/next row", row, row + 1) for row in range(1, NUM_STEPS + 1)
        ]
        assert fibonacci_prover.regions == expected

    def test_rows_are_consecutive_terms(self, fibonacci_prover):
        cols = fibonacci_prover.cs.columns(ADVICE)
        for row in range(NUM_STEPS + 1):
            values = [fibonacci_prover.advice_value(col, row) for col in cols]
            expected = [fibonacci_term(FR(SEED_A), FR(SEED_B), row + i) for i in range(3)]
            assert values == expected

    def test_copy_constraints_link_rows(self, fibonacci_prover):
        col_a, col_b, col_c = fibonacci_prover.cs.columns(ADVICE)
        copies = fibonacci_prover.grid.copies
        for row in range(NUM_STEPS):
            assert copies.same_class(Cell(col_b, row), Cell(col_a, row + 1))
            assert copies.same_class(Cell(col_c, row), Cell(col_b, row + 1))
        assert len(copies.pairs) == 2 * NUM_STEPS

    def test_selectors_enabled_on_used_rows(self, fibonacci_prover):
        rows = fibonacci_prover.grid.selectors[0]
        assert rows[:NUM_STEPS + 1] == [True] * (NUM_STEPS + 1)
        assert not any(rows[NUM_STEPS + 1:])

    def test_many_seeds_and_lengths(self):
        """임의의 시드와 단계 수에 대해 마지막 c는 (단계 수 + 2)번째 항."""
        rng = random.Random(7)
        for _ in range(5):
            a = FR(rng.randrange(1, 10 ** 6))
            b = FR(rng.randrange(1, 10 ** 6))
            for steps in (0, 1, 5, 12):
                prover = MockProver.run(5, FibonacciCircuit(a, b, num_steps=steps), [[]])
                assert prover.verify() == []
                assert prover.advice_value(_output_column(prover), steps) \
                    == fibonacci_term(a, b, steps + 2)

    def test_small_field(self):
        """같은 회로를 F97 위에서 돌리면 결과가 97을 법으로 줄어든다."""
        circuit = FibonacciCircuit(F97(1), F97(1), num_steps=10)
        prover = MockProver.run(4, circuit, [[]], field=F97)
        assert prover.verify() == []
        value = prover.advice_value(_output_column(prover), 10)
        assert isinstance(value, F97)
        assert value == F97(233)

    def test_public_output(self, public_fibonacci_prover):
        assert public_fibonacci_prover.verify() == []


# ─────────────────────────────────────────────────────────────────────
# 상태 기계
# ─────────────────────────────────────────────────────────────────────

class TestProverStatus:
    def test_transitions_ok(self):
        prover = MockProver.run(TEST_K, FibonacciCircuit(FR(1), FR(1)), [[]])
        assert prover.status == ProverStatus.BUILT
        assert prover.verify() == []
        assert prover.status == ProverStatus.CHECKED_OK
        assert prover.verify() == []
        assert prover.status == ProverStatus.CHECKED_OK

    def test_transitions_failed(self):
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [3]), [[]])
        first = prover.verify()
        assert prover.status == ProverStatus.CHECKED_FAILED
        assert prover.verify() == first

    def test_grid_frozen_after_verify(self):
        prover = MockProver.run(TEST_K, FibonacciCircuit(FR(1), FR(1)), [[]])
        prover.verify()
        with pytest.raises(RuntimeError):
            prover.grid.assign(_output_column(prover), 15, FR(1))


# ─────────────────────────────────────────────────────────────────────
# 게이트 위반
# ─────────────────────────────────────────────────────────────────────

class TestGateFailures:
    @pytest.mark.parametrize("step", [1, 4, 7])
    def test_tampered_step(self, step):
        """조작한 행에서만 정확히 하나의 위반."""
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [step]), [[]])
        failures = prover.verify()
        assert len(failures) == 1
        failure = failures[0]
        assert isinstance(failure, ConstraintNotSatisfied)
        assert failure.gate == "add"
        assert failure.constraint_index == 0
        assert failure.constraint_name == "a + b = c"
        assert failure.row == step
        assert failure.region == "tampered row"

    def test_failure_reports_cell_values(self):
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [2]), [[]])
        failure = prover.verify()[0]
        labels = [label for label, _ in failure.cell_values]
        assert labels == ["advice[0]@2", "advice[1]@2", "advice[2]@2", "s[0]"]
        assert "row 2" in str(failure)

    def test_tampered_row_with_selector_off_passes(self):
        """셀렉터를 끄면 그 행의 게이트는 검사되지 않는다."""
        circuit = TamperedFibonacci(FR(1), FR(1), 7, [4], disable_selector=True)
        prover = MockProver.run(TEST_K, circuit, [[]])
        assert prover.verify() == []
        assert not prover.grid.selectors[0][4]

    def test_random_row_depends_on_selector(self):
        rng = random.Random(99)
        for _ in range(10):
            a = FR(rng.randrange(10 ** 9))
            b = FR(rng.randrange(10 ** 9))
            c = a + b + FR(rng.randrange(1, 10 ** 9))
            on = MockProver.run(2, SingleRow(a, b, c, selector_on=True), [[]])
            off = MockProver.run(2, SingleRow(a, b, c, selector_on=False), [[]])
            assert len(on.verify()) == 1
            assert off.verify() == []

    def test_fail_fast(self):
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [2, 5]), [[]])
        failures = prover.verify(fail_fast=True)
        assert len(failures) == 1
        assert failures[0].row == 2

    def test_all_failures_reported(self):
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [2, 5]), [[]])
        assert [f.row for f in prover.verify()] == [2, 5]

    def test_assert_satisfied_lists_failures(self):
        prover = MockProver.run(TEST_K, TamperedFibonacci(FR(1), FR(1), 7, [2, 5]), [[]])
        with pytest.raises(AssertionError, match="2 failures"):
            prover.assert_satisfied()

    def test_rotation_wraps(self):
        """마지막 행의 Rotation.next()는 0행을 참조한다."""
        assert MockProver.run(3, WrapAround(FR(5), FR(5))).verify() == []
        failures = MockProver.run(3, WrapAround(FR(5), FR(6))).verify()
        assert len(failures) == 1
        assert failures[0].row == 7

    def test_gate_reads_instance_column(self):
        assert MockProver.run(2, InstanceGate(FR(7)), [[FR(7)]]).verify() == []
        failures = MockProver.run(2, InstanceGate(FR(7)), [[FR(8)]]).verify()
        assert [(f.gate, f.row) for f in failures] == [("public", 0)]

    def test_unselected_gate_checked_on_region_rows(self):
        assert MockProver.run(3, Unselected(FR(3), FR(3))).verify() == []
        failures = MockProver.run(3, Unselected(FR(3), FR(4))).verify()
        assert [f.row for f in failures] == [0]


# ─────────────────────────────────────────────────────────────────────
# 복사 제약
# ─────────────────────────────────────────────────────────────────────

class TestCopyConstraints:
    def test_blank_cell_filled_by_propagation(self):
        prover = MockProver.run(TEST_K, BlankOutput(FR(2), FR(3), linked=True), [[]])
        assert prover.verify() == []
        assert prover.grid.value_of(Cell(_output_column(prover), 0)) is None
        assert prover.advice_value(_output_column(prover), 0) == FR(5)

    def test_blank_cell_without_link(self):
        """빈 advice 셀은 0으로 취급되지 않는다."""
        prover = MockProver.run(TEST_K, BlankOutput(FR(2), FR(3), linked=False), [[]])
        failures = prover.verify()
        assert failures == [CellNotAssigned("add", "blank c", _output_column(prover), 0)]

    def test_conflicting_copy(self):
        prover = MockProver.run(TEST_K, ConflictingCopy(FR(1), FR(1)), [[]])
        failures = prover.verify()
        assert len(failures) == 1
        failure = failures[0]
        assert isinstance(failure, CopyConstraintViolation)
        assert failure.value_a == FR(55)
        assert failure.value_b == FR(99)


# ─────────────────────────────────────────────────────────────────────
# 공개 입력
# ─────────────────────────────────────────────────────────────────────

class TestPublicInputs:
    def _run(self, instance):
        circuit = FibonacciCircuit(FR(1), FR(1), num_steps=7, expose_output=True)
        return MockProver.run(TEST_K, circuit, instance)

    def test_wrong_public_output(self):
        failures = self._run([[FR(56)]]).verify()
        assert len(failures) == 1
        failure = failures[0]
        assert isinstance(failure, PublicInputMismatch)
        assert failure.row == 0
        assert failure.expected == FR(56)
        assert failure.actual == FR(55)

    def test_missing_public_output(self):
        """주어지지 않은 공개 입력은 0이다."""
        failures = self._run([[]]).verify()
        assert len(failures) == 1
        assert failures[0].expected == FR(0)

    def test_no_instance_lists(self):
        assert len(self._run(()).verify()) == 1

    def test_int_public_input(self):
        assert self._run([[55]]).verify() == []

    def test_too_many_instance_lists(self):
        with pytest.raises(ValueError):
            self._run([[FR(55)], [FR(1)]])

    def test_instance_longer_than_grid(self):
        with pytest.raises(NotEnoughRowsAvailable):
            self._run([[FR(0)] * 17])


# ─────────────────────────────────────────────────────────────────────
# 합성 오류
# ─────────────────────────────────────────────────────────────────────

class TestSynthesisErrors:
    def test_without_witnesses(self):
        circuit = FibonacciCircuit(FR(1), FR(1)).without_witnesses()
        assert circuit.a is None and circuit.num_steps == 7
        with pytest.raises(SynthesisError):
            MockProver.run(TEST_K, circuit, [[]])

    def test_one_missing_seed(self):
        with pytest.raises(SynthesisError):
            MockProver.run(TEST_K, FibonacciCircuit(FR(1), None), [[]])

    def test_too_many_steps_for_grid(self):
        with pytest.raises(NotEnoughRowsAvailable):
            MockProver.run(TEST_K, FibonacciCircuit(FR(1), FR(1), num_steps=16), [[]])

    def test_negative_k(self):
        with pytest.raises(ValueError):
            MockProver.run(-1, FibonacciCircuit(FR(1), FR(1)), [[]])

    def test_negative_steps(self):
        with pytest.raises(ValueError):
            FibonacciCircuit(FR(1), FR(1), num_steps=-1)


class TestFibonacciTerm:
    def test_terms(self):
        assert [fibonacci_term(1, 1, i) for i in range(10)] == [1, 1, 2, 3, 5, 8, 13, 21, 34, 55]

    def test_negative_index(self):
        with pytest.raises(ValueError):
            fibonacci_term(1, 1, -1)
