# vertiroute/services/availability.py
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from functools import lru_cache

from dateutil.rrule import rrulestr

from vertiroute.app.protocols import AvailabilityResolver
from vertiroute.domain.entities.network import Schedule
from vertiroute.domain.errors import InvalidSchedule
from vertiroute.runtime.clock import Timestamp, as_utc, zone

_STAMP_FORMATS = ("%Y%m%dT%H%M%S", "%Y%m%d")
_UNTIL = re.compile(r"UNTIL=([0-9T]+Z?)", re.IGNORECASE)


@dataclass(frozen=True)
class CompiledSchedule:
    rules: object  # dateutil rruleset; iteration builds a fresh iterator each time
    tz: tzinfo
    duration: timedelta
    valid_from: datetime | None  # UTC
    valid_until: datetime | None  # UTC

    def in_validity(self, at: datetime) -> bool:
        if self.valid_from is not None and at < self.valid_from:
            return False
        if self.valid_until is not None and at >= self.valid_until:
            return False
        return True

    def counts(self, start: datetime) -> bool:
        """Occurrences only count when they start inside the validity interval."""
        return self.in_validity(start)


# ------------------------- parsing -------------------------------


def _parse_stamp(value: str, tz: tzinfo, param_tz: tzinfo | None = None) -> datetime:
    value = value.strip()
    utc = value.upper().endswith("Z")
    raw = value[:-1] if utc else value
    for fmt in _STAMP_FORMATS:
        try:
            dt = datetime.strptime(raw, fmt)
            break
        except ValueError:
            continue
    else:
        raise InvalidSchedule(f"bad RFC 5545 timestamp {value!r}")
    if utc:
        return dt.replace(tzinfo=UTC)
    return dt.replace(tzinfo=param_tz or tz)


def _utc_stamp(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def _normalize(text: str, tz: tzinfo) -> tuple[datetime | None, list[str]]:
    """Pull DTSTART out and rewrite floating (local) stamps as UTC so that
    dateutil sees consistently timezone-aware values."""
    dtstart, lines = None, []
    for raw in text.strip().splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.upper().startswith("FREQ="):
            line = "RRULE:" + line
        name, sep, value = line.partition(":")
        if not sep:
            raise InvalidSchedule(f"malformed recurrence line {line!r}")
        head, *params = name.split(";")
        head = head.upper()
        tzid = next((p.split("=", 1)[1] for p in params if p.upper().startswith("TZID=")), None)
        param_tz = zone(tzid) if tzid else None
        if head == "DTSTART":
            dtstart = _parse_stamp(value, tz, param_tz).astimezone(tz)
        elif head in ("RDATE", "EXDATE"):
            stamps = [_utc_stamp(_parse_stamp(v, tz, param_tz)) for v in value.split(",")]
            lines.append(f"{head}:{','.join(stamps)}")
        elif head in ("RRULE", "EXRULE"):
            value = _UNTIL.sub(lambda m: "UNTIL=" + _utc_stamp(_parse_stamp(m.group(1), tz)), value)
            lines.append(f"{head}:{value}")
        else:
            raise InvalidSchedule(f"unsupported recurrence property {head!r}")
    return dtstart, lines


@lru_cache(maxsize=512)
def compile_schedule(schedule: Schedule) -> CompiledSchedule:
    tz = zone(schedule.timezone)
    if schedule.duration < timedelta(0):
        raise InvalidSchedule(f"duration must be >= 0, got {schedule.duration}")
    valid_from = as_utc(schedule.valid_from) if schedule.valid_from else None
    valid_until = as_utc(schedule.valid_until) if schedule.valid_until else None
    if valid_from and valid_until and valid_until < valid_from:
        raise InvalidSchedule("valid_until precedes valid_from")

    dtstart, lines = _normalize(schedule.rrule, tz)
    if dtstart is None:
        if valid_from is None:
            raise InvalidSchedule("recurrence needs DTSTART or a valid_from bound")
        dtstart = valid_from.astimezone(tz)
    if not any(ln.startswith(("RRULE", "RDATE")) for ln in lines):
        raise InvalidSchedule("recurrence has no RRULE or RDATE line")
    try:
        rules = rrulestr("\n".join(lines), dtstart=dtstart, forceset=True)
    except (ValueError, TypeError) as exc:
        raise InvalidSchedule(f"malformed recurrence: {exc}") from exc
    return CompiledSchedule(rules, tz, schedule.duration, valid_from, valid_until)


# ------------------------- evaluation -------------------------------


def _window_end(c: CompiledSchedule, start: datetime) -> datetime:
    # windows last `duration` of elapsed time, also across DST changes
    return start.astimezone(UTC) + c.duration


def _covering_start(c: CompiledSchedule, at: datetime) -> datetime | None:
    start = c.rules.before(at.astimezone(c.tz), inc=True)
    if start is None or not c.counts(start) or at >= _window_end(c, start):
        return None
    return start


def is_active(schedule: Schedule | None, at: Timestamp) -> bool:
    """True if `at` falls inside an occurrence window of the schedule.
    An edge without a schedule is always active."""
    if schedule is None:
        return True
    c = compile_schedule(schedule)
    at = as_utc(at)
    if not c.in_validity(at):
        return False
    return _covering_start(c, at) is not None


def is_available_between(schedule: Schedule | None, start: Timestamp, end: Timestamp) -> bool:
    """True if [start, end] is covered by one window, or by back-to-back windows."""
    start, end = as_utc(start), as_utc(end)
    if end < start:
        raise ValueError("end precedes start")
    if schedule is None:
        return True
    c = compile_schedule(schedule)
    if not c.in_validity(start) or (c.valid_until is not None and end > c.valid_until):
        return False
    first = _covering_start(c, start)
    if first is None:
        return False
    covered_to = _window_end(c, first)
    for nxt in c.rules.between(first, end.astimezone(c.tz), inc=False):
        if covered_to >= end:
            break
        if nxt.astimezone(UTC) > covered_to or not c.counts(nxt):
            return False
        covered_to = max(covered_to, _window_end(c, nxt))
    return covered_to >= end


def occurrences(schedule: Schedule, start: Timestamp, end: Timestamp) -> list[datetime]:
    """Occurrence starts (local time) in [start, end] that lie in the validity interval."""
    c = compile_schedule(schedule)
    lo, hi = as_utc(start).astimezone(c.tz), as_utc(end).astimezone(c.tz)
    return [s for s in c.rules.between(lo, hi, inc=True) if c.counts(s)]


class RecurrenceAvailability(AvailabilityResolver):
    def is_active(self, schedule: Schedule | None, at: Timestamp) -> bool:
        return is_active(schedule, at)

    def is_available_between(self, schedule: Schedule | None, start: Timestamp, end: Timestamp) -> bool:
        return is_available_between(schedule, start, end)
