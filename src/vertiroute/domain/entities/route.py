from dataclasses import dataclass


@dataclass(frozen=True)
class PathResult:
    nodes: tuple[str, ...]  # source .. target, inclusive
    weight: float
    edges: tuple[str, ...] = ()

    @property
    def source(self) -> str:
        return self.nodes[0]

    @property
    def target(self) -> str:
        return self.nodes[-1]

    @property
    def hops(self) -> int:
        return len(self.edges)
