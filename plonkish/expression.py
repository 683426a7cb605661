"""
게이트 식 (Gate Expression)
=============================

게이트 제약을 불투명한 클로저가 아니라 **식 트리(expression tree)** 로 표현한다.

**노드 종류**:
  | 노드           | 의미                                   | 차수          |
  |----------------|----------------------------------------|---------------|
  | Constant       | 상수 c                                 | 0             |
  | SelectorQuery  | 현재 행의 셀렉터 값 (0 또는 1)          | 1             |
  | ColumnQuery    | 열 col의 (현재 행 + rotation) 셀 값     | 1             |
  | Negated        | -e                                     | deg(e)        |
  | Sum            | e1 + e2                                | max           |
  | Product        | e1 · e2                                | deg1 + deg2   |
  | Scaled         | e · c (c는 상수)                        | deg(e)        |

같은 트리를 (1) 문자열로 출력하거나 차수를 계산하는 등 기호적으로 살펴볼 수 있고,
(2) 구체적인 행 문맥(row context)에 대해 evaluate()로 값을 계산할 수 있다.

**행 문맥(row context) 인터페이스**:
  evaluate(ctx)가 요구하는 객체는 다음을 제공해야 한다.
    - ctx.field: 필드 클래스
    - ctx.query_selector(selector) -> 필드 원소 (0 또는 1)
    - ctx.query_column(column, rotation) -> 필드 원소

예시 (덧셈 게이트):
    >>> s = SelectorQuery(sel)
    >>> a, b, c = (ColumnQuery(col, Rotation.cur()) for col in advice)
    >>> expr = s * (a + b - c)
    >>> str(expr)      # "s[0] * (advice[0] + advice[1] - advice[2])"
    >>> expr.degree()  # 2
"""

from plonkish.column import Rotation
from plonkish.field import to_field


class Expression:
    """식 트리 노드의 공통 부모 클래스.

    +, -, * 연산자와 정수/필드 원소 상수의 혼합을 지원한다.
    """

    def evaluate(self, ctx):
        raise NotImplementedError

    def degree(self):
        raise NotImplementedError

    def queried_columns(self):
        """식이 참조하는 (column, rotation) 쌍의 리스트 (중복 제거, 등장 순서 유지)."""
        found = []
        self._collect_columns(found)
        return found

    def queried_selectors(self):
        """식이 참조하는 셀렉터 리스트 (중복 제거, 등장 순서 유지)."""
        found = []
        self._collect_selectors(found)
        return found

    def _collect_columns(self, found):
        for child in self.children():
            child._collect_columns(found)

    def _collect_selectors(self, found):
        for child in self.children():
            child._collect_selectors(found)

    def children(self):
        return ()

    # ── 연산자 ──

    def __add__(self, other):
        return Sum(self, as_expression(other))

    def __radd__(self, other):
        return Sum(as_expression(other), self)

    def __sub__(self, other):
        return Sum(self, Negated(as_expression(other)))

    def __rsub__(self, other):
        return Sum(as_expression(other), Negated(self))

    def __mul__(self, other):
        if isinstance(other, Expression):
            return Product(self, other)
        return Scaled(self, other)

    def __rmul__(self, other):
        if isinstance(other, Expression):
            return Product(other, self)
        return Scaled(self, other)

    def __neg__(self):
        return Negated(self)

    def __repr__(self):
        return f"{type(self).__name__}({self})"


def as_expression(value):
    """정수나 필드 원소를 Constant로 감싼다. 이미 Expression이면 그대로 반환한다."""
    if isinstance(value, Expression):
        return value
    return Constant(value)


class Constant(Expression):
    """상수 항."""

    def __init__(self, value):
        if value is None:
            raise ValueError("상수 항의 값이 없습니다")
        self.value = value

    def evaluate(self, ctx):
        return to_field(self.value, ctx.field)

    def degree(self):
        return 0

    def __str__(self):
        return str(self.value)


class SelectorQuery(Expression):
    """현재 행에서 셀렉터 값을 조회한다 (켜짐=1, 꺼짐=0)."""

    def __init__(self, selector):
        self.selector = selector

    def evaluate(self, ctx):
        return ctx.query_selector(self.selector)

    def degree(self):
        return 1

    def _collect_selectors(self, found):
        if self.selector not in found:
            found.append(self.selector)

    def __str__(self):
        return str(self.selector)


class ColumnQuery(Expression):
    """열 column의 (현재 행 + rotation) 셀 값을 조회한다."""

    def __init__(self, column, rotation=None):
        self.column = column
        self.rotation = rotation if rotation is not None else Rotation.cur()

    def evaluate(self, ctx):
        return ctx.query_column(self.column, self.rotation)

    def degree(self):
        return 1

    def _collect_columns(self, found):
        key = (self.column, self.rotation)
        if key not in found:
            found.append(key)

    def __str__(self):
        if self.rotation.offset == 0:
            return str(self.column)
        return f"{self.column}@{self.rotation.offset:+d}"


class Negated(Expression):
    def __init__(self, inner):
        self.inner = inner

    def children(self):
        return (self.inner,)

    def evaluate(self, ctx):
        return -self.inner.evaluate(ctx)

    def degree(self):
        return self.inner.degree()

    def __str__(self):
        if isinstance(self.inner, (Sum, Product)):
            return f"-({self.inner})"
        return f"-{self.inner}"


class Sum(Expression):
    def __init__(self, left, right):
        self.left = left
        self.right = right

    def children(self):
        return (self.left, self.right)

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) + self.right.evaluate(ctx)

    def degree(self):
        return max(self.left.degree(), self.right.degree())

    def __str__(self):
        if isinstance(self.right, Negated):
            return f"{self.left} - {_wrap_sum(self.right.inner)}"
        return f"{self.left} + {self.right}"


class Product(Expression):
    def __init__(self, left, right):
        self.left = left
        self.right = right

    def children(self):
        return (self.left, self.right)

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) * self.right.evaluate(ctx)

    def degree(self):
        return self.left.degree() + self.right.degree()

    def __str__(self):
        return f"{_wrap_sum(self.left)} * {_wrap_sum(self.right)}"


class Scaled(Expression):
    """상수 배 e · c."""

    def __init__(self, inner, factor):
        if factor is None:
            raise ValueError("곱할 상수가 없습니다")
        self.inner = inner
        self.factor = factor

    def children(self):
        return (self.inner,)

    def evaluate(self, ctx):
        return self.inner.evaluate(ctx) * to_field(self.factor, ctx.field)

    def degree(self):
        return self.inner.degree()

    def __str__(self):
        return f"{_wrap_sum(self.inner)} * {self.factor}"


def _wrap_sum(expr):
    # 합/부정 식은 곱셈 안에서 괄호로 감싼다
    if isinstance(expr, (Sum, Negated)):
        return f"({expr})"
    return str(expr)
