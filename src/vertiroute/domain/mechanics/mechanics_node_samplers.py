import uuid

import numpy as np

from vertiroute.app.protocols import NodeSampler
from vertiroute.domain.entities.geography import Location, Node, NodeKind
from vertiroute.domain.mechanics.mechanics_geodesy import random_location_near


class NearbyNodeSampler(NodeSampler):
    """Synthetic sites scattered uniformly within radius_m of a center.

    Deterministic for a given numpy Generator: uids are version-4 UUIDs built
    from the generator's bytes rather than from the OS entropy pool.
    """

    def __init__(
        self,
        *,
        center: Location,
        radius_m: float,
        rng,
        kinds: list[NodeKind] | None = None,
        weights: list[float] | None = None,
        altitude_range_m: tuple[float, float] | None = None,
    ):
        if radius_m < 0:
            raise ValueError(f"radius_m must be >= 0, got {radius_m}")
        self.center, self.radius_m, self.rng = center, radius_m, rng
        self.kinds = list(kinds) if kinds else [NodeKind.VERTIPORT]
        self._p = None if not weights else self._normalize_weights(weights, len(self.kinds))
        self.altitude_range_m = altitude_range_m

    @staticmethod
    def _normalize_weights(weights, n):
        w = np.asarray(weights, dtype=float)
        if w.shape != (n,):
            raise ValueError(f"kind weights must have length {n}, got {w.shape[0]}")
        if not np.isfinite(w).all():
            bad = np.where(~np.isfinite(w))[0]
            raise ValueError(f"kind weights must be finite; bad indices: {bad.tolist()}")
        s = w.sum()
        if s <= 0:
            raise ValueError("kind weights must sum to a positive value")
        return w / s

    def _pick_kind(self) -> NodeKind:
        idx = self.rng.choice(len(self.kinds), p=self._p)
        return self.kinds[int(idx)]

    def _uid(self) -> str:
        return str(uuid.UUID(bytes=self.rng.bytes(16), version=4))

    def _location(self) -> Location:
        loc = random_location_near(self.center, self.radius_m, self.rng)
        if self.altitude_range_m is None:
            return loc
        lo, hi = self.altitude_range_m
        return Location(loc.latitude, loc.longitude, float(self.rng.uniform(lo, hi)))

    def sample_one(self) -> Node:
        return Node(uid=self._uid(), location=self._location(), kind=self._pick_kind())

    def sample(self, n: int) -> list[Node]:
        return [self.sample_one() for _ in range(n)]
