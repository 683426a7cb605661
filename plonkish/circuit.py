"""
회로 정의 (Circuit Definition)
================================

모든 회로가 구현하는 두 단계 인터페이스.

  ┌──────────────────────────────────────────────────────────┐
  │  configure(meta) -> Config                                │
  │    열/셀렉터/게이트 등록만 한다. 위트니스에 접근하지 않는다. │
  │    키 생성과 증명 생성 모두에서 한 번씩 호출된다.            │
  ├──────────────────────────────────────────────────────────┤
  │  synthesize(config, layouter)                             │
  │    하나 이상의 Chip을 통해 region 할당을 수행한다.           │
  │    위트니스가 없으면 SynthesisError로 중단된다.              │
  └──────────────────────────────────────────────────────────┘

Config는 configure의 결과물로, 한 번 만들어진 뒤 변경되지 않는다.
"""


class Circuit:
    """회로 정의의 부모 클래스."""

    def without_witnesses(self):
        """위트니스 값이 모두 빠진 같은 모양의 회로 (키 생성용)."""
        raise NotImplementedError

    @staticmethod
    def configure(meta):
        raise NotImplementedError

    def synthesize(self, config, layouter):
        raise NotImplementedError
