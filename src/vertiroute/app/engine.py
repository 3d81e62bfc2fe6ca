# vertiroute/app/engine.py
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager

from vertiroute.app.hooks import EngineHooks, NoopHooks
from vertiroute.app.protocols import AvailabilityResolver, CostModel, PathFinder
from vertiroute.config.models import InventoryModel
from vertiroute.domain.entities.geography import Location, Node, NodeStatus
from vertiroute.domain.entities.network import Edge
from vertiroute.domain.entities.route import PathResult
from vertiroute.domain.errors import EdgeNotFound, InvalidWeight
from vertiroute.domain.mechanics.mechanics_costs import (
    GeodesicDistanceCost,
    NodeCostFn,
    build_edges,
    edge_weight,
)
from vertiroute.domain.mechanics.mechanics_geodesy import distance
from vertiroute.domain.mechanics.mechanics_routers import DijkstraPathFinder
from vertiroute.domain.state import GraphStore
from vertiroute.io.inventory import load_inventory
from vertiroute.runtime.clock import Timestamp
from vertiroute.services.availability import RecurrenceAvailability, compile_schedule


def _geodesic(a: Node, b: Node) -> float:
    return distance(a.location, b.location)


class RouterEngine:
    """
    Owns one graph store and answers route queries against it.

    Every mutation and query is reported to `hooks`; failures are reported
    and re-raised unchanged. Not thread-safe on its own, see LockedEngine.
    """

    def __init__(
        self,
        store: GraphStore | None = None,
        path_finder: PathFinder | None = None,
        availability: AvailabilityResolver | None = None,
        cost_model: CostModel | None = None,
        hooks: EngineHooks | None = None,
    ):
        self.store = store if store is not None else GraphStore()
        self.cost_model = cost_model or GeodesicDistanceCost()
        self.availability = availability or RecurrenceAvailability()
        self.path_finder = path_finder or DijkstraPathFinder(self.cost_model, self.availability)
        self.hooks = hooks or NoopHooks()

    # --------------- Helpers -----------------------------

    @contextmanager
    def _mutating(self, op: str, **kw) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            self.hooks.error(op, exc=exc, **kw)
            raise
        self.hooks.mutation(op, **kw)

    @contextmanager
    def _querying(self, op: str, **kw) -> Iterator[None]:
        self.hooks.query_start(op, **kw)
        t0 = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.hooks.error(op, exc=exc, **kw)
            raise
        self.hooks.query_end(op, ms=(time.perf_counter() - t0) * 1000.0, **kw)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        snap = self.store.snapshot()
        try:
            yield
        except Exception:
            self.store.restore(snap)
            raise

    def _insert_edge(self, edge: Edge) -> None:
        if edge.schedule is not None:
            compile_schedule(edge.schedule)  # InvalidSchedule before anything is written
        self.store.add_edge(edge)

    @staticmethod
    def _insert_all(items: Iterable, insert: Callable) -> int:
        n = 0
        for item in items:
            insert(item)
            n += 1
        return n

    # --------------- Nodes -----------------------------

    def add_node(self, node: Node) -> None:
        with self._mutating("add_node", uid=node.uid):
            self.store.add_node(node)

    def add_nodes(self, nodes: Iterable[Node]) -> int:
        """All or nothing: a failing node leaves the store as it was."""
        with self._mutating("add_nodes"), self._atomic():
            return self._insert_all(nodes, self.store.add_node)

    def remove_node(self, uid: str) -> None:
        with self._mutating("remove_node", uid=uid):
            self.store.remove_node(uid)

    def set_node_status(self, uid: str, status: NodeStatus | str) -> Node:
        with self._mutating("set_node_status", uid=uid, status=getattr(status, "value", status)):
            return self.store.set_node_status(uid, NodeStatus(status))

    def get_node_by_uid(self, uid: str) -> Node | None:
        return self.store.get_node_by_uid(uid)

    def has_node(self, uid: str) -> bool:
        return self.store.has_node(uid)

    def nodes(self) -> list[Node]:
        return list(self.store.nodes())

    @property
    def node_count(self) -> int:
        return self.store.node_count

    # --------------- Edges -----------------------------

    def add_edge(self, edge: Edge) -> None:
        with self._mutating("add_edge", source=edge.source, target=edge.target):
            self._insert_edge(edge)

    def add_edges(self, edges: Iterable[Edge]) -> int:
        """All or nothing: a failing edge leaves the store as it was."""
        with self._mutating("add_edges"), self._atomic():
            return self._insert_all(edges, self._insert_edge)

    def remove_edge(self, source: str, target: str) -> None:
        with self._mutating("remove_edge", source=source, target=target):
            self.store.remove_edge(source, target)

    def update_weight(self, source: str, target: str, new_weight: float | None) -> None:
        with self._mutating("update_weight", source=source, target=target, weight=new_weight):
            self.store.update_weight(source, target, new_weight)

    def get_edge(self, source: str, target: str) -> Edge | None:
        return self.store.get_edge(source, target)

    def get_edges_by_node_uid(self, uid: str) -> list[Edge]:
        return self.store.get_edges_by_node_uid(uid)

    def has_edge(self, source: str, target: str) -> bool:
        return self.store.has_edge(source, target)

    def edges(self) -> list[Edge]:
        return list(self.store.edges())

    @property
    def edge_count(self) -> int:
        return self.store.edge_count

    def traversal_weight(self, source: str, target: str) -> float:
        """Weight a query would pay for this edge: explicit or cost-model."""
        edge = self.store.get_edge(source, target)
        if edge is None:
            raise EdgeNotFound(source, target)
        src, dst = self.store.get_node_by_uid(source), self.store.get_node_by_uid(target)
        return edge_weight(edge, src, dst, self.cost_model)

    def is_edge_active(self, source: str, target: str, at: Timestamp) -> bool:
        edge = self.store.get_edge(source, target)
        if edge is None:
            raise EdgeNotFound(source, target)
        return self.availability.is_active(edge.schedule, at)

    # --------------- Bulk -----------------------------

    def connect_within(
        self,
        max_distance_m: float,
        cost_fn: NodeCostFn | None = None,
        constraint_fn: NodeCostFn | None = None,
    ) -> int:
        """Add an edge for every ordered pair of open nodes whose constraint
        value (geodesic distance by default) is within max_distance_m.
        Pairs that already have an edge are kept as they are."""
        if isinstance(max_distance_m, bool) or not isinstance(max_distance_m, (int, float)):
            raise InvalidWeight(max_distance_m, "max_distance_m")
        if not max_distance_m >= 0:
            raise InvalidWeight(max_distance_m, "max_distance_m")
        candidates = build_edges(
            (n for n in self.store.nodes() if n.is_open),
            max_distance_m,
            constraint_fn or _geodesic,
            cost_fn,
        )
        with self._mutating("connect_within", max_distance_m=max_distance_m), self._atomic():
            return self._insert_all(
                (e for e in candidates if not self.store.has_edge(*e.key)), self._insert_edge
            )

    def load_inventory(self, data: InventoryModel | Mapping) -> tuple[int, int]:
        """Add nodes then edges from plain inventory records.
        Returns (nodes added, edges added). All or nothing."""
        with self._mutating("load_inventory"), self._atomic():
            inventory = load_inventory(data)
            return (
                self._insert_all(inventory.nodes, self.store.add_node),
                self._insert_all(inventory.edges, self._insert_edge),
            )

    # --------------- Queries -----------------------------

    def shortest_path(self, source: str, target: str, at: Timestamp | None = None) -> PathResult:
        with self._querying("shortest_path", source=source, target=target, at=at):
            return self.path_finder.shortest_path(self.store, source, target, at)

    def nodes_within_distance(
        self,
        origin: str,
        radius: float,
        at: Timestamp | None = None,
        *,
        include_origin: bool = False,
    ) -> set[Node]:
        with self._querying("nodes_within_distance", origin=origin, radius=radius, at=at):
            return self.path_finder.nodes_within_distance(
                self.store, origin, radius, at, include_origin=include_origin
            )

    def nearest_node(self, location: Location, *, include_closed: bool = False) -> Node | None:
        """Node closest to `location` by geodesic distance; the first one
        inserted wins a tie. None when the graph has no candidate."""
        with self._querying("nearest_node"):
            best, best_d = None, float("inf")
            for node in self.store.nodes():
                if not include_closed and not node.is_open:
                    continue
                d = distance(location, node.location)
                if d < best_d:
                    best, best_d = node, d
            return best

    def path_locations(self, result: PathResult) -> list[Location]:
        return [self.store.get_node_by_uid(uid).location for uid in result.nodes]
