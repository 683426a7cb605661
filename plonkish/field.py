"""
PLONKish 기반 모듈: 유한체(Finite Field)
==========================================

엔진 전체에서 사용되는 필드 원소 타입을 정의한다.

**유한체 FR**:
  bn128 타원곡선의 스칼라 필드 (scalar field).
  회로 셀 값, 게이트 다항식 평가, 복사 제약 비교가 모두 이 타입 위에서 이루어진다.
  - 위수(order) p ≈ 2^254, 소수체(prime field)

**필드 교체 가능성**:
  엔진은 FR을 하드코딩하지 않는다. ConstraintSystem(field=...)에 다른
  py_ecc FQ 서브클래스(예: 작은 소수체)를 넘기면 같은 회로가 그 필드 위에서 동작한다.
  필요한 연산은 +, -, *, ==, 그리고 정수로부터의 생성뿐이다.

사용 예시:
    >>> from plonkish.field import FR
    >>> a = FR(3)
    >>> b = FR(7)
    >>> a + b        # FR(10)
    >>> to_field(5, FR) == FR(5)  # True
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    bn128.curve_order (≈ 2^254) 위의 모듈러 산술을 지원한다.
    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.

    예시:
        >>> x = FR(3)
        >>> x * x          # FR(9)
        >>> -x + x == 0    # True
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order


def to_field(value, field=FR):
    """값을 주어진 필드의 원소로 변환한다.

    이미 해당 필드의 원소이면 그대로 반환하고, 정수이면 field(value)로 감싼다.

    Args:
        value: 정수 또는 필드 원소
        field: 필드 클래스 (기본값: FR)

    Returns:
        field 원소

    Raises:
        TypeError: 정수도 필드 원소도 아닌 값 (None 포함)
    """
    if isinstance(value, field):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, FQ)):
        raise TypeError(f"필드 원소로 변환할 수 없는 값입니다: {value!r}")
    if isinstance(value, FQ):
        return field(int(value))
    return field(value)


def is_zero(value):
    """필드 원소가 덧셈 항등원(0)인지 확인한다."""
    return value == type(value)(0)
