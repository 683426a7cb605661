"""
증명 백엔드 인터페이스 (Proving Backend)
==========================================

실제 영지식 증명 생성/검증은 이 엔진의 범위 밖이다.
엔진이 백엔드에 지는 유일한 의무는 **만족하는 위트니스만 넘긴다**는 것이다.

**흐름**:
  create_proof(backend, k, circuit, instance)
    1. MockProver.run → verify()
    2. 위반이 있으면 UnsatisfiedCircuit (백엔드는 호출되지 않음)
    3. 만족하면 WitnessExport를 만들어 backend.prove()에 넘긴다

**WitnessExport**: 백엔드가 필요로 하는 격자 스냅샷.
  - advice / fixed / instance: [열][행] 값 (빈 advice 셀은 0으로 채움, 이 시점엔 모두 검증됨)
  - selectors: [셀렉터][행] 불리언
  - sigma: 복사 제약 순열 σ (permutation.build_sigma)
  - permutation_columns: σ 위치 번호에 대응하는 열 리스트
"""

import logging

from plonkish.assignment import Cell
from plonkish.column import ADVICE
from plonkish.dev import MockProver
from plonkish.errors import UnsatisfiedCircuit
from plonkish.field import FR


logger = logging.getLogger(__name__)


class ProvingBackend:
    """외부 증명 백엔드가 구현하는 인터페이스."""

    def prove(self, cs, witness, instance):
        """만족하는 위트니스로 증명 객체를 만든다."""
        raise NotImplementedError

    def verify(self, proof, instance):
        """증명과 공개 입력을 받아 수락(True)/거부(False)를 반환한다."""
        raise NotImplementedError


class WitnessExport:
    """검증을 통과한 격자의 읽기 전용 스냅샷."""

    def __init__(self, n, advice, fixed, instance, selectors, permutation_columns, sigma):
        self.n = n
        self.advice = advice
        self.fixed = fixed
        self.instance = instance
        self.selectors = selectors
        self.permutation_columns = permutation_columns
        self.sigma = sigma


def export_witness(prover):
    """만족이 확인된 prover의 격자를 WitnessExport로 만든다.

    Raises:
        UnsatisfiedCircuit: prover가 만족하지 않을 때
    """
    failures = prover.verify()
    if failures:
        raise UnsatisfiedCircuit(failures)

    grid = prover.grid
    zero = grid.field(0)
    columns = list(prover.cs.permutation_columns)
    return WitnessExport(
        n=grid.n,
        advice=[
            [_or_zero(grid.resolve(Cell(column, row)), zero) for row in range(grid.n)]
            for column in prover.cs.columns(ADVICE)
        ],
        fixed=[
            [_or_zero(value, zero) for value in column_values]
            for column_values in grid.fixed
        ],
        instance=[list(column_values) for column_values in grid.instance],
        selectors=[list(rows) for rows in grid.selectors],
        permutation_columns=columns,
        sigma=grid.copies.build_sigma(columns, grid.n),
    )


def create_proof(backend, k, circuit, instance=(), field=FR):
    """회로를 합성, 검사한 뒤 만족할 때만 backend.prove()를 호출한다.

    Returns:
        backend.prove()가 반환한 증명 객체

    Raises:
        UnsatisfiedCircuit: 위트니스가 제약을 만족하지 않을 때
    """
    prover = MockProver.run(k, circuit, instance, field=field)
    witness = export_witness(prover)
    logger.info("handing satisfied witness (%d rows) to %s", witness.n, type(backend).__name__)
    return backend.prove(prover.cs, witness, witness.instance)


def verify_proof(backend, proof, instance):
    """backend.verify()를 호출한다."""
    return backend.verify(proof, instance)


def _or_zero(value, zero):
    return zero if value is None else value
