"""
제약 시스템 (Constraint System)
=================================

configure 단계에서 한 번 채워지는 중앙 등록소.
열, 셀렉터, 게이트, 복사 제약이 허용된 열 목록을 보관한다.

**configure 프로토콜**:
  1. 열 할당: advice_column(), fixed_column(), instance_column()
  2. 셀렉터 할당: selector()
  3. 복사 제약 허용: enable_equality(column)
  4. 게이트 등록: create_gate(name, fn)
     fn은 VirtualCells(질의 인터페이스)를 받아 제약 식 리스트를 반환한다.
     각 식은 게이트의 셀렉터가 켜진 모든 행에서 0이 되어야 한다.

**예시 (덧셈 게이트)**:
    >>> meta = ConstraintSystem()
    >>> a, b, c = meta.advice_column(), meta.advice_column(), meta.advice_column()
    >>> s = meta.selector()
    >>> meta.create_gate("add", lambda vc: [
    ...     vc.query_selector(s) * (vc.query_advice(a) + vc.query_advice(b)
    ...                             - vc.query_advice(c))
    ... ])

configure가 끝난 뒤에는 읽기 전용으로 취급된다.
설정 오류(잘못된 열 종류, 다른 시스템의 열 등)는 회로 정의 버그이므로 ValueError로 즉시 중단한다.
"""

import logging

from plonkish.column import ADVICE, FIXED, INSTANCE, COLUMN_KINDS, Column, Rotation, Selector
from plonkish.expression import ColumnQuery, Expression, SelectorQuery
from plonkish.field import FR


logger = logging.getLogger(__name__)


class Gate:
    """이름이 붙은 다항식 제약 묶음.

    속성:
        name: 게이트 이름 (예: "add")
        polys: Expression 리스트
        constraint_names: 각 식의 이름 (이름이 없으면 "")
    """

    def __init__(self, name, constraint_names, polys):
        self.name = name
        self.constraint_names = list(constraint_names)
        self.polys = list(polys)

    def queried_selectors(self):
        found = []
        for poly in self.polys:
            for selector in poly.queried_selectors():
                if selector not in found:
                    found.append(selector)
        return found

    def queried_columns(self):
        found = []
        for poly in self.polys:
            for key in poly.queried_columns():
                if key not in found:
                    found.append(key)
        return found

    def degree(self):
        return max(poly.degree() for poly in self.polys)

    def __repr__(self):
        return f"Gate({self.name!r}, {[str(p) for p in self.polys]})"


class VirtualCells:
    """create_gate 콜백에 전달되는 질의 인터페이스.

    등록된 열/셀렉터만 질의할 수 있다.
    """

    def __init__(self, meta):
        self._meta = meta

    def query_selector(self, selector):
        """현재 행에서 selector 값을 참조하는 식을 반환한다."""
        self._meta._check_selector(selector)
        return SelectorQuery(selector)

    def query_advice(self, column, rotation=None):
        """advice 열 column의 (현재 행 + rotation) 값을 참조하는 식을 반환한다."""
        return self._query(column, ADVICE, rotation)

    def query_fixed(self, column, rotation=None):
        return self._query(column, FIXED, rotation)

    def query_instance(self, column, rotation=None):
        return self._query(column, INSTANCE, rotation)

    def _query(self, column, kind, rotation):
        self._meta._check_column(column)
        if column.kind != kind:
            raise ValueError(f"{column}은(는) {kind} 열이 아닙니다")
        if rotation is None:
            rotation = Rotation.cur()
        if not isinstance(rotation, Rotation):
            raise ValueError(f"Rotation이 아닙니다: {rotation!r}")
        return ColumnQuery(column, rotation)


class ConstraintSystem:
    """회로의 열, 셀렉터, 게이트를 보관하는 등록소.

    속성:
        field: 필드 클래스 (기본값: FR)
        num_advice_columns, num_fixed_columns, num_instance_columns: 열 수
        num_selectors: 셀렉터 수
        gates: Gate 리스트 (등록 순서)
        permutation_columns: enable_equality()된 열 리스트 (등록 순서)
    """

    def __init__(self, field=FR):
        self.field = field
        self._column_counts = {kind: 0 for kind in COLUMN_KINDS}
        self.num_selectors = 0
        self.gates = []
        self.permutation_columns = []

    # ── 열 / 셀렉터 할당 ──

    def allocate_column(self, kind):
        """kind 종류의 새 열을 할당한다.

        Args:
            kind: ADVICE, FIXED, INSTANCE 중 하나

        Returns:
            Column

        Raises:
            ValueError: 알 수 없는 kind
        """
        if kind not in COLUMN_KINDS:
            raise ValueError(f"알 수 없는 열 종류입니다: {kind!r}")
        column = Column(kind, self._column_counts[kind])
        self._column_counts[kind] += 1
        return column

    def advice_column(self):
        return self.allocate_column(ADVICE)

    def fixed_column(self):
        return self.allocate_column(FIXED)

    def instance_column(self):
        return self.allocate_column(INSTANCE)

    def selector(self):
        """새 셀렉터를 할당한다. 모든 행에서 기본값은 꺼짐."""
        selector = Selector(self.num_selectors)
        self.num_selectors += 1
        return selector

    allocate_selector = selector

    @property
    def num_advice_columns(self):
        return self._column_counts[ADVICE]

    @property
    def num_fixed_columns(self):
        return self._column_counts[FIXED]

    @property
    def num_instance_columns(self):
        return self._column_counts[INSTANCE]

    def columns(self, kind):
        """kind 종류의 모든 열을 인덱스 순으로 반환한다."""
        return [Column(kind, i) for i in range(self._column_counts[kind])]

    # ── 복사 제약 ──

    def enable_equality(self, column):
        """column을 복사 제약(equality) 대상 열로 표시한다.

        표시되지 않은 열에 대한 복사 요청은 ColumnNotEqualityEnabled로 거부된다.
        같은 열을 여러 번 표시해도 한 번만 기록된다.
        """
        self._check_column(column)
        if column not in self.permutation_columns:
            self.permutation_columns.append(column)

    def is_equality_enabled(self, column):
        return column in self.permutation_columns

    # ── 게이트 ──

    def create_gate(self, name, constraints_fn):
        """이름이 name인 게이트를 등록한다.

        Args:
            name: 게이트 이름
            constraints_fn: VirtualCells를 받아 제약 리스트를 반환하는 함수.
                리스트 원소는 Expression 또는 (이름, Expression) 쌍이다.

        Returns:
            Gate

        Raises:
            ValueError: 제약이 비어 있거나 Expression이 아닌 값이 섞여 있을 때
        """
        constraints = list(constraints_fn(VirtualCells(self)))
        if not constraints:
            raise ValueError(f"게이트 '{name}'에 제약이 없습니다")

        names = []
        polys = []
        for constraint in constraints:
            if isinstance(constraint, tuple):
                constraint_name, poly = constraint
            else:
                constraint_name, poly = "", constraint
            if not isinstance(poly, Expression):
                raise ValueError(
                    f"게이트 '{name}'의 제약이 Expression이 아닙니다: {poly!r}"
                )
            names.append(constraint_name)
            polys.append(poly)

        gate = Gate(name, names, polys)
        self.gates.append(gate)
        logger.debug("gate '%s' registered: %s", name, [str(p) for p in polys])
        return gate

    def degree(self):
        """모든 게이트 식의 최대 차수 (게이트가 없으면 0)."""
        if not self.gates:
            return 0
        return max(gate.degree() for gate in self.gates)

    # ── 검사 헬퍼 ──

    def _check_column(self, column):
        if not isinstance(column, Column):
            raise ValueError(f"Column이 아닙니다: {column!r}")
        if column.index >= self._column_counts[column.kind]:
            raise ValueError(f"이 제약 시스템에 없는 열입니다: {column!r}")

    def _check_selector(self, selector):
        if not isinstance(selector, Selector):
            raise ValueError(f"Selector가 아닙니다: {selector!r}")
        if selector.index >= self.num_selectors:
            raise ValueError(f"이 제약 시스템에 없는 셀렉터입니다: {selector!r}")
