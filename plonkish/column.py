"""
열(Column), 셀렉터(Selector), 회전(Rotation)
==============================================

PLONKish 회로의 격자(grid)를 구성하는 기본 핸들들.

**열의 종류**:
  | 종류     | 의미                                  | 값을 채우는 주체   |
  |----------|---------------------------------------|--------------------|
  | Advice   | 비공개 위트니스 값                     | Prover (synthesize)|
  | Fixed    | 회로에 고정된 상수                     | 회로 정의          |
  | Instance | 공개 입력                              | Verifier와 공유    |

**셀렉터**:
  행(row)마다 켜고 끌 수 있는 불리언 플래그.
  게이트 식에 곱해져서, 꺼진 행에서는 게이트 제약이 자동으로 0이 된다.

**회전(Rotation)**:
  게이트가 "현재 행으로부터 몇 행 떨어진 셀"을 참조할지 나타내는 상대 오프셋.
  Rotation.cur() = 0, Rotation.next() = +1, Rotation.prev() = -1.

모든 핸들은 configure 단계에서 한 번 생성되고 이후 변하지 않는다.
"""


ADVICE = "advice"
FIXED = "fixed"
INSTANCE = "instance"

COLUMN_KINDS = (ADVICE, FIXED, INSTANCE)


class Column:
    """격자의 한 열을 가리키는 핸들.

    같은 종류(kind) 안에서 인덱스로 식별된다. 종류는 생성 후 바뀌지 않는다.

    속성:
        kind: ADVICE, FIXED, INSTANCE 중 하나
        index: 같은 종류의 열들 사이에서의 순번
    """

    __slots__ = ("kind", "index")

    def __init__(self, kind, index):
        if kind not in COLUMN_KINDS:
            raise ValueError(f"알 수 없는 열 종류입니다: {kind!r}")
        if index < 0:
            raise ValueError(f"열 인덱스는 음수일 수 없습니다: {index}")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "index", index)

    def __setattr__(self, name, value):
        raise AttributeError("Column은 변경할 수 없습니다")

    def __eq__(self, other):
        if not isinstance(other, Column):
            return NotImplemented
        return (self.kind, self.index) == (other.kind, other.index)

    def __hash__(self):
        return hash((self.kind, self.index))

    def __lt__(self, other):
        return (COLUMN_KINDS.index(self.kind), self.index) < (
            COLUMN_KINDS.index(other.kind), other.index
        )

    def __repr__(self):
        return f"Column({self.kind}, {self.index})"

    def __str__(self):
        return f"{self.kind}[{self.index}]"


class Selector:
    """게이트를 행 단위로 켜고 끄는 셀렉터 핸들.

    기본값은 모든 행에서 "꺼짐"이며, enable()로 특정 행을 켠다.
    """

    __slots__ = ("index",)

    def __init__(self, index):
        object.__setattr__(self, "index", index)

    def __setattr__(self, name, value):
        raise AttributeError("Selector는 변경할 수 없습니다")

    def enable(self, region, offset):
        """region 안의 상대 행 offset에서 이 셀렉터를 켠다.

        게이트의 셀 할당을 수행하는 같은 region 안에서 호출해야 한다.
        호출을 빠뜨리면 해당 행의 게이트는 검사되지 않는다 (under-constrained 회로).

        Args:
            region: Region 핸들
            offset: region 내부의 상대 행 번호
        """
        region.enable_selector(self, offset)

    def __eq__(self, other):
        if not isinstance(other, Selector):
            return NotImplemented
        return self.index == other.index

    def __hash__(self):
        return hash(("selector", self.index))

    def __repr__(self):
        return f"Selector({self.index})"

    def __str__(self):
        return f"s[{self.index}]"


class Rotation:
    """현재 행 기준 상대 오프셋."""

    __slots__ = ("offset",)

    def __init__(self, offset=0):
        object.__setattr__(self, "offset", int(offset))

    def __setattr__(self, name, value):
        raise AttributeError("Rotation은 변경할 수 없습니다")

    @classmethod
    def cur(cls):
        return cls(0)

    @classmethod
    def next(cls):
        return cls(1)

    @classmethod
    def prev(cls):
        return cls(-1)

    def __eq__(self, other):
        if not isinstance(other, Rotation):
            return NotImplemented
        return self.offset == other.offset

    def __hash__(self):
        return hash(("rotation", self.offset))

    def __repr__(self):
        return f"Rotation({self.offset})"
