from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType

from pydantic import TypeAdapter, ValidationError

from vertiroute.domain.errors import InvalidSchedule

_EMPTY: Mapping = MappingProxyType({})
_DURATION = TypeAdapter(timedelta)


@dataclass(frozen=True)
class Schedule:
    """
    Recurring availability of a route.

    `rrule` is RFC 5545 text: an optional DTSTART line followed by RRULE/RDATE/
    EXRULE/EXDATE lines. Occurrences are evaluated as wall-clock times in
    `timezone`; each one opens a window of length `duration`.
    """

    rrule: str
    timezone: str = "UTC"
    duration: timedelta = timedelta(hours=1)
    valid_from: datetime | None = None  # naive => UTC
    valid_until: datetime | None = None

    @classmethod
    def from_calendar(
        cls,
        text: str,
        *,
        timezone: str = "UTC",
        valid_from: datetime | None = None,
        valid_until: datetime | None = None,
    ) -> "Schedule":
        """Parse the compact inventory format:

            DTSTART:20221020T180000Z;DURATION:PT14H
            RRULE:FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR
        """
        lines = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
        if not lines:
            raise InvalidSchedule("empty calendar")
        header, rules = lines[0], lines[1:]
        parts = dict(p.split(":", 1) for p in header.split(";") if ":" in p)
        if "DTSTART" not in parts or "DURATION" not in parts:
            raise InvalidSchedule(f"calendar header needs DTSTART and DURATION: {header!r}")
        try:
            duration = _DURATION.validate_python(parts["DURATION"])
        except ValidationError as exc:
            raise InvalidSchedule(f"bad DURATION {parts['DURATION']!r}") from exc
        if not rules:
            raise InvalidSchedule("calendar has no recurrence lines")
        rrule = "\n".join([f"DTSTART:{parts['DTSTART']}", *rules])
        return cls(
            rrule=rrule,
            timezone=timezone,
            duration=duration,
            valid_from=valid_from,
            valid_until=valid_until,
        )


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    weight: float | None = None  # None => geodesic distance of the endpoints
    schedule: Schedule | None = None
    uid: str = ""
    metadata: Mapping = field(default_factory=lambda: _EMPTY, compare=False, hash=False)

    def __post_init__(self):
        if not self.uid:
            object.__setattr__(self, "uid", f"{self.source}->{self.target}")

    @property
    def key(self) -> tuple[str, str]:
        return self.source, self.target
