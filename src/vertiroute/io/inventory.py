# vertiroute/io/inventory.py
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from vertiroute.config.models import EdgeRecord, InventoryModel, NodeRecord, ScheduleRecord
from vertiroute.domain.entities.geography import Location, Node, NodeKind, NodeStatus
from vertiroute.domain.entities.network import Edge, Schedule


@dataclass(frozen=True)
class Inventory:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]


def to_node(rec: NodeRecord) -> Node:
    loc = rec.location
    return Node(
        uid=rec.uid,
        location=Location(loc.latitude, loc.longitude, loc.altitude_m),
        kind=NodeKind(rec.kind),
        status=NodeStatus(rec.status),
        metadata=MappingProxyType(dict(rec.metadata)),
    )


def to_schedule(rec: ScheduleRecord) -> Schedule:
    if rec.calendar is not None:
        return Schedule.from_calendar(
            rec.calendar,
            timezone=rec.timezone,
            valid_from=rec.valid_from,
            valid_until=rec.valid_until,
        )
    return Schedule(
        rrule=rec.rrule,
        timezone=rec.timezone,
        duration=rec.duration,
        valid_from=rec.valid_from,
        valid_until=rec.valid_until,
    )


def to_edges(rec: EdgeRecord) -> list[Edge]:
    schedule = to_schedule(rec.schedule) if rec.schedule else None
    meta = MappingProxyType(dict(rec.metadata))
    edges = [Edge(rec.source, rec.target, rec.weight, schedule, rec.uid, meta)]
    if rec.mirrored:
        uid = f"{rec.uid}:reverse" if rec.uid else ""
        edges.append(Edge(rec.target, rec.source, rec.weight, schedule, uid, meta))
    return edges


def load_inventory(data: InventoryModel | Mapping) -> Inventory:
    """Validate plain inventory records and turn them into graph values.
    Raises pydantic.ValidationError on malformed records."""
    model = data if isinstance(data, InventoryModel) else InventoryModel.model_validate(data)
    nodes = tuple(to_node(r) for r in model.nodes)
    edges = tuple(e for r in model.edges for e in to_edges(r))
    return Inventory(nodes, edges)
