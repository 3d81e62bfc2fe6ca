from collections.abc import Callable, Iterable
from math import isfinite

from vertiroute.app.protocols import CostModel
from vertiroute.domain.entities.geography import Location, Node
from vertiroute.domain.entities.network import Edge
from vertiroute.domain.errors import InvalidWeight
from vertiroute.domain.mechanics.mechanics_geodesy import distance

NodeCostFn = Callable[[Node, Node], float]


def check_weight(w, what: str = "weight") -> float | None:
    if w is None:
        return None
    if isinstance(w, bool) or not isinstance(w, (int, float)):
        raise InvalidWeight(w, what)
    w = float(w)
    if not isfinite(w) or w < 0:
        raise InvalidWeight(w, what)
    return w


class GeodesicDistanceCost(CostModel):
    """Implicit edge weight = geodesic distance in meters."""

    def cost(self, a: Location, b: Location) -> float:
        return distance(a, b)

    def lower_bound(self, a: Location, b: Location) -> float:
        return distance(a, b)


class FlightTimeCost(CostModel):
    """Implicit edge weight = seconds of flight: fixed overhead (takeoff and
    landing) plus distance over cruise speed."""

    def __init__(self, cruise_speed_mps: float, overhead_s: float = 0.0):
        if cruise_speed_mps <= 0:
            raise ValueError(f"cruise_speed_mps must be > 0, got {cruise_speed_mps}")
        self.v, self.overhead = cruise_speed_mps, overhead_s

    def cost(self, a: Location, b: Location) -> float:
        return self.overhead + distance(a, b) / self.v

    def lower_bound(self, a: Location, b: Location) -> float:
        return distance(a, b) / self.v


def edge_weight(edge: Edge, source: Node, target: Node, model: CostModel) -> float:
    if edge.weight is not None:
        return edge.weight
    return model.cost(source.location, target.location)


def build_edges(
    nodes: Iterable[Node],
    constraint: float,
    constraint_fn: NodeCostFn,
    cost_fn: NodeCostFn | None = None,
) -> list[Edge]:
    """Connect every ordered pair of distinct nodes whose constraint value is
    within `constraint` (e.g. max range of an aircraft). O(n^2).

    With cost_fn=None the edges carry no explicit weight and are costed by the
    engine's cost model."""
    nodes = list(nodes)
    edges = []
    for a in nodes:
        for b in nodes:
            if a.uid == b.uid or constraint_fn(a, b) > constraint:
                continue
            w = None if cost_fn is None else check_weight(cost_fn(a, b))
            edges.append(Edge(a.uid, b.uid, weight=w))
    return edges
