"""
PLONKish 데모: 피보나치 점화식 (f(0) = f(1) = 1, f(9) = 55)
==============================================================

이 스크립트는 엔진의 전체 흐름을 시연한다.

실행:
    python -m plonkish.example

흐름:
    1. 회로 구성 (configure): advice 열 3개, 셀렉터 1개, "add" 게이트
    2. 합성 (synthesize): 시드 행 + 점화 단계 7개
    3. 만족성 검사 (MockProver)
    4. 조작된 위트니스로 검사 (위반 보고 확인)
    5. 위트니스 없는 합성 (SynthesisError 확인)
"""

from plonkish.column import ADVICE
from plonkish.dev import MockProver
from plonkish.errors import SynthesisError
from plonkish.fibonacci import FibonacciChip, FibonacciCircuit, fibonacci_term
from plonkish.field import FR


K = 4


class _TamperedChip(FibonacciChip):
    """마지막 단계의 c에 1을 더하는 칩 (데모용 잘못된 위트니스)."""

    def __init__(self, config, tamper_step):
        super().__init__(config)
        self.tamper_step = tamper_step
        self.step = 0

    def assign_row(self, layouter, prev_b, prev_c):
        self.step += 1
        if self.step != self.tamper_step:
            return super().assign_row(layouter, prev_b, prev_c)
        col_a, col_b, col_c = self.config.advice

        def assign(region):
            self.config.selector.enable(region, 0)
            a_cell = prev_b.copy_advice("a", region, col_a, 0)
            b_cell = prev_c.copy_advice("b", region, col_b, 0)
            return region.assign_advice("c", col_c, 0, a_cell.value + b_cell.value + FR(1))

        return layouter.assign_region("next row", assign)


class _TamperedCircuit(FibonacciCircuit):
    def synthesize(self, config, layouter):
        chip = _TamperedChip(config, tamper_step=self.num_steps)
        _, prev_b, prev_c = chip.assign_first_row(layouter, self.a, self.b)
        for _ in range(self.num_steps):
            prev_b, prev_c = prev_c, chip.assign_row(layouter, prev_b, prev_c)


def main():
    print("=" * 60)
    print("  PLONKish Mock Prover Demo")
    print("  회로: 피보나치 점화식 c = a + b")
    print("=" * 60)

    a, b = FR(1), FR(1)
    circuit = FibonacciCircuit(a, b, num_steps=7, expose_output=True)
    expected = fibonacci_term(a, b, circuit.num_steps + 2)

    # ── 1~2. 구성 + 합성 ──
    print("\n[1] 회로 구성 + 합성...")
    prover = MockProver.run(K, circuit, [[expected]])
    print(f"    격자 행 수: {prover.grid.n}")
    print(f"    게이트: {[gate.name for gate in prover.cs.gates]}")
    for gate in prover.cs.gates:
        for poly in gate.polys:
            print(f"      {gate.name}: {poly} = 0 (차수 {poly.degree()})")
    print(f"    region 수: {len(prover.regions)}")
    print(f"    복사 제약 수: {len(prover.grid.copies.pairs)}")

    print("\n    위트니스 격자:")
    col_a, col_b, col_c = prover.cs.columns(ADVICE)
    for name, start, end in prover.regions:
        for row in range(start, end):
            values = [prover.advice_value(col, row) for col in (col_a, col_b, col_c)]
            print(f"      행 {row}: a={values[0]}, b={values[1]}, c={values[2]}  ({name})")

    # ── 3. 검사 ──
    print("\n[2] 만족성 검사...")
    failures = prover.verify()
    print(f"    마지막 값: {prover.advice_value(col_c, circuit.num_steps)} (기대값 {expected})")
    print(f"    검사 결과: {'성공 ✓' if not failures else '실패 ✗'}")

    # ── 4. 조작된 위트니스 ──
    print("\n[3] 조작된 위트니스 (마지막 c에 +1)...")
    tampered = MockProver.run(K, _TamperedCircuit(a, b, num_steps=7), [[]])
    tampered_failures = tampered.verify()
    for failure in tampered_failures:
        print(f"    - {failure}")
    print(f"    검사 결과: {'성공 ✓' if not tampered_failures else '실패 ✗ (예상대로 실패)'}")

    # ── 5. 위트니스 없음 ──
    print("\n[4] 위트니스 없이 합성...")
    missing_ok = False
    try:
        MockProver.run(K, circuit.without_witnesses(), [[expected]])
    except SynthesisError as exc:
        missing_ok = True
        print(f"    SynthesisError: {exc}")

    print("\n" + "=" * 60)
    result = not failures and tampered_failures and missing_ok
    if result:
        print("  데모 완료: 모든 검사 통과!")
    else:
        print("  데모 완료: 일부 검사 실패")
    print("=" * 60)

    return bool(result)


if __name__ == "__main__":
    main()
