"""
엔진 오류 (Errors)
===================

회로 합성(synthesize) 중에 발생하는 오류들.

**오류 전파 정책**:
  - 설정(configure) 단계의 오류 (잘못된 열/셀렉터 등)는 회로 정의 버그이므로
    ValueError로 즉시 중단한다.
  - 합성 단계의 오류는 region 할당을 거쳐 synthesize 호출 전체를 중단시킨다.
    부분 위트니스 복구는 없다.
  - 검사기(MockProver)의 위반 사항은 예외가 아니라 값(VerifyFailure)으로
    수집되어 반환된다 (plonkish.dev 참고).
"""


class PlonkishError(Exception):
    """엔진 오류의 공통 부모 클래스."""


class SynthesisError(PlonkishError):
    """할당에 필요한 위트니스 값이 없다.

    예: 위트니스 없이 (키 생성용으로) synthesize를 실행한 경우.
    값이 없다고 0으로 취급해서는 안 된다.
    """

    def __init__(self, message="위트니스 값이 없습니다"):
        super().__init__(message)


class ColumnNotEqualityEnabled(PlonkishError):
    """enable_equality()되지 않은 열에 복사 제약을 요청했다."""

    def __init__(self, column):
        self.column = column
        super().__init__(f"{column} 열은 복사 제약(equality)이 활성화되지 않았습니다")


class DoubleAssignment(PlonkishError):
    """이미 값이 있는 셀에 다른 값을 다시 할당했다."""

    def __init__(self, column, row, old, new):
        self.column = column
        self.row = row
        self.old = old
        self.new = new
        super().__init__(
            f"{column} 열의 {row}행에 이미 {old}이(가) 할당되어 있습니다 "
            f"(새 값: {new})"
        )


class RegionOverlap(PlonkishError):
    """region이 자신에게 배정된 행 범위 밖을 건드렸다."""

    def __init__(self, region, row):
        self.region = region
        self.row = row
        super().__init__(f"region '{region}'이(가) 배정 범위 밖의 행 {row}에 접근했습니다")


class NotEnoughRowsAvailable(PlonkishError):
    """격자의 행(2^k)이 부족하다."""

    def __init__(self, k, row=None):
        self.k = k
        self.row = row
        detail = f" (요청된 행: {row})" if row is not None else ""
        super().__init__(f"k={k} 격자에 행이 부족합니다{detail}")


class UnsatisfiedCircuit(PlonkishError):
    """위트니스가 제약을 만족하지 않아 증명 백엔드로 넘길 수 없다."""

    def __init__(self, failures):
        self.failures = list(failures)
        super().__init__(
            f"회로가 만족되지 않았습니다 ({len(self.failures)}개 위반): "
            + "; ".join(str(f) for f in self.failures)
        )
