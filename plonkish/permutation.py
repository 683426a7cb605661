"""
복사 제약 추적기 (Copy-Constraint Tracker)
===========================================

서로 떨어진 셀들 사이의 "같은 값" 제약을 관리하는 모듈.

**배경: 왜 복사 제약이 필요한가?**
  게이트는 한 행(과 그 주변 rotation) 안의 값만 검사한다.
  피보나치 회로에서 "이전 단계의 c가 다음 단계의 b와 같다"는 사실은
  서로 다른 region 사이의 관계이므로 게이트로 표현할 수 없다.
  대신 두 셀을 복사 제약으로 묶는다.

**동치류(equivalence class)와 Union-Find**:
  복사 제약은 동치 관계이다 (반사, 대칭, 추이).
  직간접적으로 연결된 셀들은 하나의 동치류를 이루며 모두 같은 값이어야 한다.
  쌍(pair) 링크를 따라가는 대신 Union-Find(경로 압축 + 크기 기준 합치기)로
  관리하여 find를 분할상환 O(1)에 가깝게 유지한다.

**순열 σ (실제 백엔드용 표현)**:
  실제 PLONK 백엔드는 동치류를 순열 σ의 순환(cycle)으로 인코딩하고
  Grand Product 논증으로 "w_{σ(i)} = wᵢ"를 증명한다.
  build_sigma()는 동치류마다 하나의 순환을 만들고, 나머지 셀은 고정점으로 둔다.

  예: 동치류 {A, B, C}
      σ(A) = B, σ(B) = C, σ(C) = A

사용 예시:
    >>> tracker = CopyConstraintTracker()
    >>> tracker.record_equal(cell_a, cell_b)
    >>> tracker.resolve(cell_b, grid.value_of)   # cell_a의 값
"""

import logging


logger = logging.getLogger(__name__)


class CopyConstraintTracker:
    """셀 식별자 위의 Union-Find.

    셀 식별자는 해시 가능한 아무 값이나 될 수 있다 (엔진에서는 Cell).

    속성:
        pairs: record_equal()로 기록된 (cell_a, cell_b) 쌍 리스트 (기록 순서)
    """

    def __init__(self):
        self._parent = {}
        self._members = {}
        self.pairs = []

    def _add(self, cell):
        if cell not in self._parent:
            self._parent[cell] = cell
            self._members[cell] = [cell]

    def find(self, cell):
        """cell이 속한 동치류의 대표 원소를 반환한다 (경로 압축)."""
        self._add(cell)
        root = cell
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[cell] != root:
            self._parent[cell], cell = root, self._parent[cell]
        return root

    def record_equal(self, cell_a, cell_b):
        """두 셀이 같은 값을 가져야 함을 기록한다.

        작은 동치류를 큰 동치류에 합친다.
        """
        self.pairs.append((cell_a, cell_b))
        root_a = self.find(cell_a)
        root_b = self.find(cell_b)
        if root_a == root_b:
            return
        if len(self._members[root_a]) < len(self._members[root_b]):
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._members[root_a].extend(self._members.pop(root_b))
        logger.debug("copy constraint %s == %s", cell_a, cell_b)

    def same_class(self, cell_a, cell_b):
        return self.find(cell_a) == self.find(cell_b)

    def members(self, cell):
        """cell과 같은 동치류에 속한 모든 셀 (cell 자신 포함)."""
        return list(self._members[self.find(cell)])

    def classes(self):
        """원소가 둘 이상인 동치류들의 리스트.

        각 동치류는 셀 리스트이며, 셀이 처음 등장한 순서를 따른다.
        """
        return [list(members) for members in self._members.values() if len(members) > 1]

    def resolve(self, cell, lookup):
        """cell의 동치류에서 값이 할당된 셀의 값을 반환한다.

        Args:
            cell: 셀 식별자 (추적기에 없으면 자기 자신만의 동치류)
            lookup: 셀 → 값 또는 None 을 돌려주는 함수

        Returns:
            동치류 안에서 처음 발견된 값, 모두 비어 있으면 None
        """
        value = lookup(cell)
        if value is not None or cell not in self._parent:
            return value
        for member in self._members[self.find(cell)]:
            value = lookup(member)
            if value is not None:
                return value
        return None

    def build_sigma(self, columns, n):
        """동치류를 순열 σ로 인코딩한다.

        위치 (i, row)는 columns[i] 열의 row 행을 뜻한다.
        동치류마다 (열 위치, 행) 순으로 정렬한 뒤 하나의 순환으로 연결하고,
        복사 제약에 참여하지 않는 위치는 σ(p) = p 인 고정점으로 둔다.

        Args:
            columns: 복사 제약이 허용된 열 리스트 (순서가 위치 번호를 정한다)
            n: 행 수

        Returns:
            list[list[tuple]]: sigma[i][row] = (i', row')
        """
        position = {column: i for i, column in enumerate(columns)}
        sigma = [[(i, row) for row in range(n)] for i in range(len(columns))]

        for members in self.classes():
            cycle = sorted((position[cell.column], cell.row) for cell in members)
            for current, following in zip(cycle, cycle[1:] + cycle[:1]):
                sigma[current[0]][current[1]] = following

        return sigma
