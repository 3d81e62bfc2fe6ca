import heapq
import math
from collections.abc import Callable
from itertools import count

from vertiroute.app.protocols import AvailabilityResolver, CostModel, GraphView, PathFinder
from vertiroute.domain.entities.geography import Node
from vertiroute.domain.entities.network import Edge
from vertiroute.domain.entities.route import PathResult
from vertiroute.domain.errors import GraphTooLarge, InvalidWeight, NodeNotFound, NoPathFound
from vertiroute.domain.mechanics.mechanics_costs import GeodesicDistanceCost, edge_weight
from vertiroute.runtime.clock import Timestamp, as_utc
from vertiroute.services.availability import RecurrenceAvailability


def _no_estimate(node: Node) -> float:
    return 0.0


class DijkstraPathFinder(PathFinder):
    """
    Label-setting search over the subgraph of open nodes and edges active at
    `at` (the whole graph when `at` is None).

    Frontier entries are (priority, push sequence, g, uid): among equal costs
    the entry pushed first wins, and a label is only replaced by a strictly
    cheaper one, so results are deterministic for a given insertion order.
    """

    def __init__(
        self,
        cost_model: CostModel | None = None,
        availability: AvailabilityResolver | None = None,
        *,
        max_nodes: int | None = None,
        max_edges: int | None = None,
    ):
        self.cost_model = cost_model or GeodesicDistanceCost()
        self.availability = availability or RecurrenceAvailability()
        self.max_nodes, self.max_edges = max_nodes, max_edges

    # ------------------ helpers -----------------------

    def _check_size(self, graph: GraphView) -> None:
        if self.max_nodes is not None and graph.node_count > self.max_nodes:
            raise GraphTooLarge(f"{graph.node_count} nodes > ceiling {self.max_nodes}")
        if self.max_edges is not None and graph.edge_count > self.max_edges:
            raise GraphTooLarge(f"{graph.edge_count} edges > ceiling {self.max_edges}")

    @staticmethod
    def _require(graph: GraphView, uid: str) -> Node:
        node = graph.get_node_by_uid(uid)
        if node is None:
            raise NodeNotFound(uid)
        return node

    def _heuristic_for(self, graph: GraphView, goal: Node | None) -> Callable[[Node], float]:
        return _no_estimate

    def _is_active(self, edge: Edge, at, memo: dict) -> bool:
        if at is None or edge.schedule is None:
            return True
        if edge.schedule not in memo:
            memo[edge.schedule] = self.availability.is_active(edge.schedule, at)
        return memo[edge.schedule]

    def _search(
        self,
        graph: GraphView,
        origin: Node,
        at: Timestamp | None,
        *,
        goal: Node | None = None,
        limit: float | None = None,
    ) -> tuple[dict[str, float], dict[str, Edge]]:
        at = None if at is None else as_utc(at)
        h = self._heuristic_for(graph, goal)
        seq, memo = count(), {}
        dist: dict[str, float] = {origin.uid: 0.0}
        parent: dict[str, Edge] = {}
        frontier = [(h(origin), next(seq), 0.0, origin.uid)]
        while frontier:
            _, _, g, u = heapq.heappop(frontier)
            if g > dist[u]:
                continue  # stale entry
            if limit is not None and g > limit:
                break
            if goal is not None and u == goal.uid:
                break
            for e in graph.get_edges_by_node_uid(u):
                v = graph.get_node_by_uid(e.target)
                if not v.is_open or not self._is_active(e, at, memo):
                    continue
                ng = g + edge_weight(e, graph.get_node_by_uid(u), v, self.cost_model)
                if limit is not None and ng > limit:
                    continue
                if ng < dist.get(v.uid, math.inf):
                    dist[v.uid], parent[v.uid] = ng, e
                    heapq.heappush(frontier, (ng + h(v), next(seq), ng, v.uid))
        return dist, parent

    # ------------------ queries -----------------------

    def shortest_path(
        self, graph: GraphView, source: str, target: str, at: Timestamp | None = None
    ) -> PathResult:
        src, dst = self._require(graph, source), self._require(graph, target)
        if source == target:
            return PathResult((source,), 0.0, ())
        if not src.is_open or not dst.is_open:
            raise NoPathFound(source, target)
        self._check_size(graph)
        dist, parent = self._search(graph, src, at, goal=dst)
        if target not in dist:
            raise NoPathFound(source, target)
        nodes, edges = [target], []
        while nodes[-1] != source:
            e = parent[nodes[-1]]
            edges.append(e.uid)
            nodes.append(e.source)
        return PathResult(tuple(reversed(nodes)), dist[target], tuple(reversed(edges)))

    def nodes_within_distance(
        self,
        graph: GraphView,
        origin: str,
        radius: float,
        at: Timestamp | None = None,
        *,
        include_origin: bool = False,
    ) -> set[Node]:
        src = self._require(graph, origin)
        if isinstance(radius, bool) or not isinstance(radius, (int, float)):
            raise InvalidWeight(radius, "radius")
        if not (math.isfinite(radius) and radius >= 0):
            raise InvalidWeight(radius, "radius")
        if not src.is_open:
            return set()
        self._check_size(graph)
        dist, _ = self._search(graph, src, at, limit=float(radius))
        return {
            graph.get_node_by_uid(uid)
            for uid, d in dist.items()
            if d <= radius and (include_origin or uid != origin)
        }


class AStarPathFinder(DijkstraPathFinder):
    """
    Goal-directed variant. The heuristic is the cost model's lower bound to the
    goal times `heuristic_scale`, which is admissible for implicit weights with
    scale <= 1. Explicit weights are in caller units the cost model cannot
    bound, so while the graph holds any the search runs unguided (plain
    Dijkstra). Radius queries are never goal-directed.
    """

    def __init__(
        self,
        cost_model: CostModel | None = None,
        availability: AvailabilityResolver | None = None,
        *,
        heuristic_scale: float = 1.0,
        **kw,
    ):
        super().__init__(cost_model, availability, **kw)
        if not heuristic_scale >= 0:
            raise ValueError(f"heuristic_scale must be >= 0, got {heuristic_scale}")
        self.heuristic_scale = heuristic_scale

    def _heuristic_for(self, graph: GraphView, goal: Node | None) -> Callable[[Node], float]:
        if goal is None or self.heuristic_scale == 0 or graph.weighted_edge_count:
            return _no_estimate
        scale, bound, to = self.heuristic_scale, self.cost_model.lower_bound, goal.location
        return lambda node: scale * bound(node.location, to)
