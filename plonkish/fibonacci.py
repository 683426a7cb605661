"""
피보나치 점화식 회로 (Fibonacci Chip & Circuit)
================================================

두 시드 값 a, b에서 출발해 점화식 c = a + b 가 연속된 행마다 성립함을 보이는 회로.

**격자 배치** (시드 1, 1, 점화 단계 7개):
  | 행 | region     | a  | b  | c  | s  |
  |----|------------|----|----|----|----|
  | 0  | first row  | 1  | 1  | 2  | on |
  | 1  | next row   | 1  | 2  | 3  | on |
  | 2  | next row   | 2  | 3  | 5  | on |
  | …  | …          | …  | …  | …  | …  |
  | 7  | next row   | 21 | 34 | 55 | on |

**게이트 "add"**: s · (a + b - c) = 0  (모두 같은 행, Rotation.cur())
  셀렉터가 꺼진 행에는 아무 제약도 걸리지 않는다.

**복사 제약**:
  행 i의 b → 행 i+1의 a, 행 i의 c → 행 i+1의 b.
  게이트는 같은 행의 산술만 검사하고, 행 사이의 연결은 전적으로 copy_advice가 맡는다.

사용 예시:
    >>> circuit = FibonacciCircuit(FR(1), FR(1))
    >>> prover = MockProver.run(4, circuit, [[]])
    >>> prover.assert_satisfied()
"""

import logging

from plonkish.circuit import Circuit
from plonkish.errors import SynthesisError


logger = logging.getLogger(__name__)


class FibonacciConfig:
    """configure의 결과물: 칩이 사용하는 열과 셀렉터 핸들.

    속성:
        advice: advice 열 3개 (a, b, c)
        selector: 덧셈 게이트 셀렉터
        instance: 공개 출력용 instance 열
    """

    def __init__(self, advice, selector, instance):
        self.advice = tuple(advice)
        self.selector = selector
        self.instance = instance

    def __repr__(self):
        return f"FibonacciConfig(advice={self.advice}, selector={self.selector}, instance={self.instance})"


class FibonacciChip:
    """피보나치 점화식 할당 로직을 묶은 칩."""

    def __init__(self, config):
        self.config = config

    @staticmethod
    def configure(meta):
        """열 3개, 셀렉터 1개, instance 열 1개와 "add" 게이트를 등록한다.

        세 advice 열과 instance 열은 모두 복사 제약이 허용된다.
        """
        col_a = meta.advice_column()
        col_b = meta.advice_column()
        col_c = meta.advice_column()
        selector = meta.selector()
        instance = meta.instance_column()

        meta.enable_equality(col_a)
        meta.enable_equality(col_b)
        meta.enable_equality(col_c)
        meta.enable_equality(instance)

        def add_gate(vc):
            # col_a | col_b | col_c | selector
            #   a       b       c        s
            s = vc.query_selector(selector)
            a = vc.query_advice(col_a)
            b = vc.query_advice(col_b)
            c = vc.query_advice(col_c)
            return [("a + b = c", s * (a + b - c))]

        meta.create_gate("add", add_gate)

        return FibonacciConfig([col_a, col_b, col_c], selector, instance)

    def assign_first_row(self, layouter, a, b):
        """시드 행: a, b를 쓰고 c = a + b 를 계산해 쓴다.

        Args:
            layouter: layouter
            a, b: 시드 값 (None이면 SynthesisError)

        Returns:
            tuple: (a_cell, b_cell, c_cell)
        """
        col_a, col_b, col_c = self.config.advice

        def assign(region):
            self.config.selector.enable(region, 0)
            a_cell = region.assign_advice("a", col_a, 0, lambda: _require(a, "a"))
            b_cell = region.assign_advice("b", col_b, 0, lambda: _require(b, "b"))
            c_val = a + b if a is not None and b is not None else None
            c_cell = region.assign_advice("c", col_c, 0, lambda: _require(c_val, "c"))
            return a_cell, b_cell, c_cell

        return layouter.assign_region("first row", assign)

    def assign_row(self, layouter, prev_b, prev_c):
        """점화 단계 한 행: 이전 b, c를 a, b로 복사하고 새 c를 쓴다.

        Returns:
            AssignedCell: 새 c 셀
        """
        col_a, col_b, col_c = self.config.advice

        def assign(region):
            self.config.selector.enable(region, 0)
            a_cell = prev_b.copy_advice("a", region, col_a, 0)
            b_cell = prev_c.copy_advice("b", region, col_b, 0)
            c_val = a_cell.value + b_cell.value
            return region.assign_advice("c", col_c, 0, c_val)

        return layouter.assign_region("next row", assign)

    def expose_public(self, layouter, cell, row):
        """cell이 instance 열의 row 행 공개 입력과 같아야 함을 기록한다."""
        layouter.constrain_instance(cell, self.config.instance, row)


class FibonacciCircuit(Circuit):
    """시드 행 1개와 점화 단계 num_steps개로 이루어진 피보나치 회로.

    마지막 c 셀은 수열의 (num_steps + 2)번째 항 (0부터 셈)이다.
    기본값 num_steps=7, 시드 1, 1이면 마지막 값은 55.

    속성:
        a, b: 시드 값 (키 생성용 회로에서는 None)
        num_steps: 시드 행 이후의 점화 단계 수
        expose_output: True면 마지막 값을 instance 0행에 묶는다
    """

    def __init__(self, a=None, b=None, num_steps=7, expose_output=False):
        if num_steps < 0:
            raise ValueError(f"점화 단계 수는 음수일 수 없습니다: {num_steps}")
        self.a = a
        self.b = b
        self.num_steps = num_steps
        self.expose_output = expose_output

    def without_witnesses(self):
        return FibonacciCircuit(None, None, self.num_steps, self.expose_output)

    @staticmethod
    def configure(meta):
        return FibonacciChip.configure(meta)

    def synthesize(self, config, layouter):
        chip = FibonacciChip(config)
        layouter = layouter.namespace("fibonacci")

        _, prev_b, prev_c = chip.assign_first_row(layouter, self.a, self.b)
        for _ in range(self.num_steps):
            c_cell = chip.assign_row(layouter, prev_b, prev_c)
            prev_b, prev_c = prev_c, c_cell

        if self.expose_output:
            chip.expose_public(layouter, prev_c, 0)
        logger.debug("fibonacci synthesized: %d steps, last value %s", self.num_steps, prev_c.value)


def fibonacci_term(a, b, index):
    """a₀=a, a₁=b, aᵢ=aᵢ₋₁+aᵢ₋₂ 수열의 index번째 항."""
    if index < 0:
        raise ValueError(f"항 번호는 음수일 수 없습니다: {index}")
    prev, cur = a, b
    if index == 0:
        return prev
    for _ in range(index - 1):
        prev, cur = cur, prev + cur
    return cur


def _require(value, name):
    if value is None:
        raise SynthesisError(f"'{name}' 위트니스 값이 없습니다")
    return value
