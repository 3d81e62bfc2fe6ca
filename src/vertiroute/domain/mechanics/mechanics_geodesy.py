import math

import numpy as np

from vertiroute.domain.entities.geography import Location

# Mean earth radius (IUGG), spherical model applied everywhere in the package
EARTH_RADIUS_M = 6_371_008.8


def _unit(loc: Location) -> np.ndarray:
    lat, lon = math.radians(loc.latitude), math.radians(loc.longitude)
    return np.array([math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat)])


def _north_east(loc: Location) -> tuple[np.ndarray, np.ndarray]:
    lat, lon = math.radians(loc.latitude), math.radians(loc.longitude)
    north = np.array([-math.sin(lat) * math.cos(lon), -math.sin(lat) * math.sin(lon), math.cos(lat)])
    east = np.array([-math.sin(lon), math.cos(lon), 0.0])
    return north, east


def _rotate(v: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotate v about axis by angle (radians) with the unit quaternion
    q = (cos(a/2), sin(a/2) * axis)."""
    axis = axis / np.linalg.norm(axis)
    w, xyz = math.cos(angle / 2.0), math.sin(angle / 2.0) * axis
    t = 2.0 * np.cross(xyz, v)
    return v + w * t + np.cross(xyz, t)


def _to_location(v: np.ndarray, altitude_m: float | None) -> Location:
    x, y, z = (float(c) for c in v / np.linalg.norm(v))
    lat = math.degrees(math.asin(max(-1.0, min(1.0, z))))
    lon = math.degrees(math.atan2(y, x))
    return Location(lat, lon, altitude_m)


def surface_distance(a: Location, b: Location) -> float:
    """Great-circle distance in meters (haversine), altitude ignored."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(max(0.0, h))))


def distance(a: Location, b: Location) -> float:
    """Geodesic distance in meters; when both ends carry an altitude the
    vertical separation is folded in."""
    d = surface_distance(a, b)
    if a.altitude_m is None or b.altitude_m is None:
        return d
    return math.hypot(d, b.altitude_m - a.altitude_m)


def bearing(a: Location, b: Location) -> float:
    """Initial bearing from a to b in degrees [0, 360), 0 = north, 90 = east."""
    p, q = _unit(a), _unit(b)
    t = q - np.dot(p, q) * p  # direction of travel, tangent at a
    if np.linalg.norm(t) < 1e-15:  # coincident or antipodal
        return 0.0
    north, east = _north_east(a)
    return math.degrees(math.atan2(float(np.dot(t, east)), float(np.dot(t, north)))) % 360.0


def destination(origin: Location, bearing_deg: float, distance_m: float) -> Location:
    """Point reached from origin travelling distance_m along the great circle
    with the given initial bearing. Altitude is carried over."""
    if distance_m == 0:
        return origin
    p = _unit(origin)
    north, east = _north_east(origin)
    th = math.radians(bearing_deg)
    d = math.cos(th) * north + math.sin(th) * east
    v = _rotate(p, np.cross(p, d), distance_m / EARTH_RADIUS_M)
    return _to_location(v, origin.altitude_m)


def random_location_near(origin: Location, radius_m: float, rng) -> Location:
    """Uniform sample (by area) within radius_m of origin. rng: numpy Generator."""
    if radius_m < 0:
        raise ValueError(f"radius must be >= 0, got {radius_m}")
    b = float(rng.uniform(0.0, 360.0))
    r = radius_m * math.sqrt(float(rng.random()))
    return destination(origin, b, r)
