# vertiroute/domain/errors.py


class RoutingError(Exception):
    """Base exception for graph maintenance and route calculation failures."""


class NodeNotFound(RoutingError, KeyError):
    def __init__(self, uid: str):
        super().__init__(f"node {uid!r} not found")
        self.uid = uid

    def __str__(self) -> str:  # KeyError would repr() the message
        return self.args[0]


class EdgeNotFound(RoutingError, KeyError):
    def __init__(self, source: str, target: str):
        super().__init__(f"edge {source!r} -> {target!r} not found")
        self.source, self.target = source, target

    def __str__(self) -> str:
        return self.args[0]


class DuplicateNode(RoutingError, ValueError):
    def __init__(self, uid: str):
        super().__init__(f"node {uid!r} already exists")
        self.uid = uid


class DuplicateEdge(RoutingError, ValueError):
    def __init__(self, source: str, target: str):
        super().__init__(f"edge {source!r} -> {target!r} already exists")
        self.source, self.target = source, target


class InvalidEdge(RoutingError, ValueError):
    """Edge is structurally invalid (e.g. a self-loop)."""


class InvalidWeight(RoutingError, ValueError):
    def __init__(self, value, what: str = "weight"):
        super().__init__(f"{what} must be finite and >= 0, got {value!r}")
        self.value = value


class InvalidSchedule(RoutingError, ValueError):
    """Malformed recurrence rule, timezone, duration or validity interval."""


class InvalidLocation(RoutingError, ValueError):
    """Coordinates outside geodetic ranges."""


class NoPathFound(RoutingError):
    def __init__(self, source: str, target: str):
        super().__init__(f"no path from {source!r} to {target!r}")
        self.source, self.target = source, target


class GraphTooLarge(RoutingError):
    """Graph exceeds the node/edge ceiling configured for path queries."""
