import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from plonkish.dev import MockProver
from plonkish.fibonacci import FibonacciCircuit
from plonkish.field import FR


# ── 테스트 상수 ──
TEST_K = 4
SEED_A = 1
SEED_B = 1
NUM_STEPS = 7
EXPECTED_OUT = 55


@pytest.fixture(scope="module")
def fibonacci_prover():
    """시드 1, 1, 점화 단계 7개 피보나치 회로를 합성한 (검사 전) prover."""
    circuit = FibonacciCircuit(FR(SEED_A), FR(SEED_B), num_steps=NUM_STEPS)
    return MockProver.run(TEST_K, circuit, [[]])


@pytest.fixture(scope="module")
def public_fibonacci_prover():
    """마지막 값 55를 공개 입력으로 묶은 피보나치 회로의 prover."""
    circuit = FibonacciCircuit(
        FR(SEED_A), FR(SEED_B), num_steps=NUM_STEPS, expose_output=True
    )
    return MockProver.run(TEST_K, circuit, [[FR(EXPECTED_OUT)]])
