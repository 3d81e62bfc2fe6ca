# runtime/clock.py
from __future__ import annotations

from datetime import UTC, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from vertiroute.domain.errors import InvalidSchedule

# Query timestamps: aware datetime, naive datetime (UTC) or POSIX seconds
Timestamp = datetime | float | int


@lru_cache(maxsize=64)
def zone(name: str) -> ZoneInfo:
    """IANA zone by name; unknown names are a schedule error."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidSchedule(f"unknown timezone {name!r}") from exc


def as_utc(at: Timestamp) -> datetime:
    if isinstance(at, bool):
        raise TypeError("timestamp must be a datetime or POSIX seconds, got bool")
    if isinstance(at, (int, float)):
        return datetime.fromtimestamp(at, tz=UTC)
    if at.tzinfo is None:
        return at.replace(tzinfo=UTC)
    return at.astimezone(UTC)
