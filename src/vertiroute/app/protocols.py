from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from vertiroute.domain.entities.geography import Location, Node
from vertiroute.domain.entities.network import Edge, Schedule
from vertiroute.domain.entities.route import PathResult
from vertiroute.runtime.clock import Timestamp


# ------------- Graph --------------------
@runtime_checkable
class GraphView(Protocol):
    """
    Read-only surface of the graph store consumed by path finders.
    Nodes and edges are addressed by uid; no object references between nodes.
    """

    def get_node_by_uid(self, uid: str) -> Node | None: ...
    def has_node(self, uid: str) -> bool: ...
    def get_edges_by_node_uid(self, uid: str) -> Sequence[Edge]: ...
    def has_edge(self, source: str, target: str) -> bool: ...

    @property
    def node_count(self) -> int: ...

    @property
    def edge_count(self) -> int: ...

    # edges whose weight is explicit rather than taken from the cost model
    weighted_edge_count: int


# ------------- Mechanics --------------------
@runtime_checkable
class CostModel(Protocol):
    """
    Responsibilities:
      • Implicit weight of an edge that carries no explicit weight.
      • An admissible lower bound between two locations (A* heuristic).
    """

    def cost(self, a: Location, b: Location) -> float: ...
    def lower_bound(self, a: Location, b: Location) -> float: ...


@runtime_checkable
class AvailabilityResolver(Protocol):
    """
    Decide whether a scheduled edge is usable at an instant.
    Pure given its inputs; a missing schedule means always active.
    """

    def is_active(self, schedule: Schedule | None, at: Timestamp) -> bool: ...
    def is_available_between(
        self, schedule: Schedule | None, start: Timestamp, end: Timestamp
    ) -> bool: ...


@runtime_checkable
class PathFinder(Protocol):
    """
    Responsibilities:
      • Minimum-weight path over the active subgraph.
      • Nodes within a cumulative weight budget of an origin.
    """

    def shortest_path(
        self, graph: GraphView, source: str, target: str, at: Timestamp | None = None
    ) -> PathResult: ...
    def nodes_within_distance(
        self,
        graph: GraphView,
        origin: str,
        radius: float,
        at: Timestamp | None = None,
        *,
        include_origin: bool = False,
    ) -> set[Node]: ...


@runtime_checkable
class NodeSampler(Protocol):
    def sample(self, n: int) -> Iterable[Node]: ...
