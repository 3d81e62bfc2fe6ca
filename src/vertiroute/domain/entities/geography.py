from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from math import isfinite
from types import MappingProxyType

from vertiroute.domain.errors import InvalidLocation

_EMPTY: Mapping = MappingProxyType({})


# Core geographic types used by the graph and the geometry functions
@dataclass(frozen=True)
class Location:
    latitude: float  # decimal degrees, -90 .. 90
    longitude: float  # decimal degrees, -180 .. 180
    altitude_m: float | None = None

    def __post_init__(self):
        lat, lon, alt = self.latitude, self.longitude, self.altitude_m
        if not isfinite(lat) or not -90.0 <= lat <= 90.0:
            raise InvalidLocation(f"latitude must be between -90 and 90 degrees, got {lat}")
        if not isfinite(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidLocation(f"longitude must be between -180 and 180 degrees, got {lon}")
        if alt is not None and not isfinite(alt):
            raise InvalidLocation(f"altitude must be finite, got {alt}")


class NodeKind(Enum):
    VERTIPORT = "vertiport"
    VERTIPAD = "vertipad"
    ROOFTOP = "rooftop"
    OTHER = "other"


class NodeStatus(Enum):
    OK = "ok"
    CLOSED = "closed"  # kept in the graph, never traversed


@dataclass(frozen=True)
class Node:
    uid: str
    location: Location
    kind: NodeKind = NodeKind.OTHER
    status: NodeStatus = NodeStatus.OK
    metadata: Mapping = field(default_factory=lambda: _EMPTY, compare=False, hash=False)

    @property
    def is_open(self) -> bool:
        return self.status is NodeStatus.OK
