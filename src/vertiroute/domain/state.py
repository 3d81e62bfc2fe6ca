# vertiroute/domain/state.py
from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from vertiroute.domain.entities.geography import Node, NodeStatus
from vertiroute.domain.entities.network import Edge
from vertiroute.domain.errors import (
    DuplicateEdge,
    DuplicateNode,
    EdgeNotFound,
    InvalidEdge,
    NodeNotFound,
)
from vertiroute.domain.mechanics.mechanics_costs import check_weight


@dataclass
class GraphStore:
    """
    Owns nodes, edges and the adjacency index. Edges are directed and keyed by
    their (source, target) pair; at most one edge per ordered pair.

    Every mutation validates first and writes last, so a failed call leaves
    the store untouched. No internal locking: the host serializes writers.
    """

    nodes_by_uid: dict[str, Node] = field(default_factory=dict)
    edges_by_key: dict[tuple[str, str], Edge] = field(default_factory=dict)

    # uid -> targets in edge insertion order (dict used as an ordered set)
    adjacency: dict[str, dict[str, None]] = field(default_factory=dict)
    # uid -> sources of incoming edges
    incoming: dict[str, set[str]] = field(default_factory=dict)
    # edges carrying an explicit weight
    weighted_edge_count: int = 0

    # --------------- nodes -----------------------------

    def add_node(self, node: Node) -> None:
        if node.uid in self.nodes_by_uid:
            raise DuplicateNode(node.uid)
        self.nodes_by_uid[node.uid] = node
        self.adjacency[node.uid] = {}
        self.incoming[node.uid] = set()

    def remove_node(self, uid: str) -> None:
        if uid not in self.nodes_by_uid:
            raise NodeNotFound(uid)
        for target in self.adjacency.pop(uid):
            self._forget(self.edges_by_key.pop((uid, target)))
            self.incoming[target].discard(uid)
        for source in self.incoming.pop(uid):
            self._forget(self.edges_by_key.pop((source, uid)))
            del self.adjacency[source][uid]
        del self.nodes_by_uid[uid]

    def get_node_by_uid(self, uid: str) -> Node | None:
        return self.nodes_by_uid.get(uid)

    def has_node(self, uid: str) -> bool:
        return uid in self.nodes_by_uid

    def set_node_status(self, uid: str, status: NodeStatus) -> Node:
        node = self.nodes_by_uid.get(uid)
        if node is None:
            raise NodeNotFound(uid)
        node = replace(node, status=status)
        self.nodes_by_uid[uid] = node
        return node

    def nodes(self) -> Iterator[Node]:
        return iter(self.nodes_by_uid.values())

    @property
    def node_count(self) -> int:
        return len(self.nodes_by_uid)

    # --------------- edges -----------------------------

    def add_edge(self, edge: Edge) -> None:
        for uid in (edge.source, edge.target):
            if uid not in self.nodes_by_uid:
                raise NodeNotFound(uid)
        if edge.source == edge.target:
            raise InvalidEdge(f"self-loop on {edge.source!r} is not allowed")
        check_weight(edge.weight)
        if edge.key in self.edges_by_key:
            raise DuplicateEdge(edge.source, edge.target)
        self.edges_by_key[edge.key] = edge
        self.weighted_edge_count += edge.weight is not None
        self.adjacency[edge.source][edge.target] = None
        self.incoming[edge.target].add(edge.source)

    def remove_edge(self, source: str, target: str) -> None:
        if (source, target) not in self.edges_by_key:
            raise EdgeNotFound(source, target)
        self._forget(self.edges_by_key.pop((source, target)))
        del self.adjacency[source][target]
        self.incoming[target].discard(source)

    def update_weight(self, source: str, target: str, new_weight: float | None) -> Edge:
        edge = self.edges_by_key.get((source, target))
        if edge is None:
            raise EdgeNotFound(source, target)
        weight = check_weight(new_weight)
        self._forget(edge)
        edge = replace(edge, weight=weight)
        self.edges_by_key[(source, target)] = edge  # same key keeps its position
        self.weighted_edge_count += edge.weight is not None
        return edge

    def get_edge(self, source: str, target: str) -> Edge | None:
        return self.edges_by_key.get((source, target))

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self.edges_by_key

    def get_edges_by_node_uid(self, uid: str) -> list[Edge]:
        targets = self.adjacency.get(uid)
        if targets is None:
            raise NodeNotFound(uid)
        return [self.edges_by_key[(uid, t)] for t in targets]

    def edges(self) -> Iterator[Edge]:
        return iter(self.edges_by_key.values())

    @property
    def edge_count(self) -> int:
        return len(self.edges_by_key)

    def _forget(self, edge: Edge) -> None:
        self.weighted_edge_count -= edge.weight is not None

    # --------------- batches -----------------------------

    def snapshot(self) -> "GraphStore":
        """Independent copy of the indexes; nodes and edges are immutable and shared."""
        return GraphStore(
            nodes_by_uid=dict(self.nodes_by_uid),
            edges_by_key=dict(self.edges_by_key),
            adjacency={uid: dict(t) for uid, t in self.adjacency.items()},
            incoming={uid: set(s) for uid, s in self.incoming.items()},
            weighted_edge_count=self.weighted_edge_count,
        )

    def restore(self, snap: "GraphStore") -> None:
        self.nodes_by_uid, self.edges_by_key = snap.nodes_by_uid, snap.edges_by_key
        self.adjacency, self.incoming = snap.adjacency, snap.incoming
        self.weighted_edge_count = snap.weighted_edge_count
