# tests/domain/test_graph_store.py
import pytest

from vertiroute.domain.entities.geography import Location, Node, NodeStatus
from vertiroute.domain.entities.network import Edge
from vertiroute.domain.errors import (
    DuplicateEdge,
    DuplicateNode,
    EdgeNotFound,
    InvalidEdge,
    InvalidWeight,
    NodeNotFound,
    RoutingError,
)
from vertiroute.domain.state import GraphStore


def _node(uid: str, lat: float = 0.0, lon: float = 0.0) -> Node:
    return Node(uid=uid, location=Location(lat, lon))


@pytest.fixture
def store():
    s = GraphStore()
    for uid in ("A", "B", "C"):
        s.add_node(_node(uid))
    return s


def test_add_node_then_lookup(store):
    assert store.has_node("A")
    assert store.get_node_by_uid("A").uid == "A"
    assert store.get_node_by_uid("Z") is None
    assert store.get_edges_by_node_uid("A") == []
    assert store.node_count == 3


def test_duplicate_node_rejected_and_store_unchanged(store):
    with pytest.raises(DuplicateNode) as ei:
        store.add_node(_node("A", 10.0, 10.0))
    assert ei.value.uid == "A"
    assert store.get_node_by_uid("A").location == Location(0.0, 0.0)
    assert store.node_count == 3


def test_add_edge_keeps_insertion_order(store):
    store.add_edge(Edge("A", "C", 1.0))
    store.add_edge(Edge("A", "B", 2.0))
    assert [e.target for e in store.get_edges_by_node_uid("A")] == ["C", "B"]
    assert store.has_edge("A", "B")
    assert not store.has_edge("B", "A")  # directed


def test_add_edge_errors_leave_no_trace(store):
    with pytest.raises(NodeNotFound):
        store.add_edge(Edge("A", "Z", 1.0))
    with pytest.raises(InvalidWeight):
        store.add_edge(Edge("A", "B", -1.0))
    with pytest.raises(InvalidWeight):
        store.add_edge(Edge("A", "B", float("nan")))
    with pytest.raises(InvalidEdge):
        store.add_edge(Edge("A", "A", 1.0))
    assert store.edge_count == 0
    assert store.get_edges_by_node_uid("A") == []


def test_duplicate_edge(store):
    store.add_edge(Edge("A", "B", 1.0))
    with pytest.raises(DuplicateEdge):
        store.add_edge(Edge("A", "B", 5.0))
    assert store.get_edge("A", "B").weight == 1.0


def test_remove_node_cascades_both_directions(store):
    store.add_edge(Edge("A", "B", 1.0))
    store.add_edge(Edge("B", "C", 1.0))
    store.add_edge(Edge("C", "B", 1.0))
    store.remove_node("B")
    assert not store.has_node("B")
    assert store.edge_count == 0
    assert store.get_edges_by_node_uid("A") == []
    assert store.get_edges_by_node_uid("C") == []
    with pytest.raises(NodeNotFound):
        store.remove_node("B")


def test_remove_edge(store):
    store.add_edge(Edge("A", "B", 1.0))
    store.remove_edge("A", "B")
    assert not store.has_edge("A", "B")
    with pytest.raises(EdgeNotFound) as ei:
        store.remove_edge("A", "B")
    assert (ei.value.source, ei.value.target) == ("A", "B")


def test_update_weight_keeps_position(store):
    store.add_edge(Edge("A", "B", 1.0))
    store.add_edge(Edge("A", "C", 1.0))
    store.update_weight("A", "B", 7.5)
    assert [e.weight for e in store.get_edges_by_node_uid("A")] == [7.5, 1.0]
    store.update_weight("A", "B", None)
    assert store.get_edge("A", "B").weight is None


def test_update_weight_errors(store):
    with pytest.raises(EdgeNotFound):
        store.update_weight("A", "B", 1.0)
    store.add_edge(Edge("A", "B", 1.0))
    with pytest.raises(InvalidWeight):
        store.update_weight("A", "B", float("inf"))
    assert store.get_edge("A", "B").weight == 1.0


def test_get_edges_of_missing_node(store):
    with pytest.raises(NodeNotFound):
        store.get_edges_by_node_uid("Z")


def test_set_node_status(store):
    node = store.set_node_status("A", NodeStatus.CLOSED)
    assert not node.is_open
    assert store.get_node_by_uid("A").status is NodeStatus.CLOSED
    with pytest.raises(NodeNotFound):
        store.set_node_status("Z", NodeStatus.OK)


def test_error_hierarchy():
    assert issubclass(NodeNotFound, KeyError)
    assert issubclass(EdgeNotFound, RoutingError)
    assert issubclass(InvalidWeight, ValueError)
    assert str(NodeNotFound("X")) == "node 'X' not found"


def test_edge_uid_defaults_to_endpoints():
    assert Edge("A", "B").uid == "A->B"
    assert Edge("A", "B", uid="r1").uid == "r1"


def test_weighted_edge_count_tracks_explicit_weights(store):
    store.add_edge(Edge("A", "B", 1.0))
    store.add_edge(Edge("B", "C"))
    store.add_edge(Edge("C", "A", 2.0))
    assert store.weighted_edge_count == 2
    store.update_weight("B", "C", 3.0)
    assert store.weighted_edge_count == 3
    store.update_weight("A", "B", None)
    assert store.weighted_edge_count == 2
    with pytest.raises(InvalidWeight):
        store.update_weight("C", "A", -1.0)
    assert store.weighted_edge_count == 2
    store.remove_edge("B", "C")
    store.remove_node("A")
    assert store.weighted_edge_count == 0


def test_snapshot_restore(store):
    store.add_edge(Edge("A", "B", 1.0))
    snap = store.snapshot()
    store.add_edge(Edge("B", "C", 1.0))
    store.remove_node("A")
    store.restore(snap)
    assert store.has_node("A") and store.has_edge("A", "B") and not store.has_edge("B", "C")
    assert store.get_edges_by_node_uid("B") == []
    assert store.weighted_edge_count == 1


def test_default_metadata_is_empty_and_read_only():
    node, edge = _node("M"), Edge("M", "N")
    assert dict(node.metadata) == {} and dict(edge.metadata) == {}
    with pytest.raises(TypeError):
        node.metadata["k"] = "v"
