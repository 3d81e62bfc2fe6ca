# tests/services/test_availability.py
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from vertiroute.domain.entities.network import Schedule
from vertiroute.domain.errors import InvalidSchedule
from vertiroute.services.availability import (
    RecurrenceAvailability,
    compile_schedule,
    is_active,
    is_available_between,
    occurrences,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=UTC)


DAILY_9_TO_11 = Schedule(
    rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=DAILY",
    duration=timedelta(hours=2),
)


def test_no_schedule_is_always_active():
    assert is_active(None, utc(2024, 1, 1))
    assert is_available_between(None, utc(2024, 1, 1), utc(2024, 1, 2))


def test_window_is_half_open():
    assert not is_active(DAILY_9_TO_11, utc(2024, 3, 5, 8, 59))
    assert is_active(DAILY_9_TO_11, utc(2024, 3, 5, 9, 0))
    assert is_active(DAILY_9_TO_11, utc(2024, 3, 5, 10, 59, 59))
    assert not is_active(DAILY_9_TO_11, utc(2024, 3, 5, 11, 0))


def test_naive_and_posix_timestamps_are_utc():
    assert is_active(DAILY_9_TO_11, datetime(2024, 3, 5, 10, 0))
    assert is_active(DAILY_9_TO_11, utc(2024, 3, 5, 10, 0).timestamp())
    # same instant expressed in another zone
    assert is_active(DAILY_9_TO_11, datetime(2024, 3, 5, 5, 0, tzinfo=ZoneInfo("America/New_York")))


def test_wall_clock_follows_dst():
    # 09:00-10:00 Berlin time every day; Berlin moves to CEST on 2024-03-31
    s = Schedule(
        rrule="DTSTART:20240301T090000\nRRULE:FREQ=DAILY",
        timezone="Europe/Berlin",
        duration=timedelta(hours=1),
    )
    assert is_active(s, utc(2024, 3, 29, 8, 30))  # 09:30 CET
    assert not is_active(s, utc(2024, 3, 29, 7, 30))
    assert is_active(s, utc(2024, 4, 2, 7, 30))  # 09:30 CEST
    assert not is_active(s, utc(2024, 4, 2, 8, 30))


def test_validity_interval():
    s = Schedule(
        rrule=DAILY_9_TO_11.rrule,
        duration=timedelta(hours=2),
        valid_from=utc(2024, 3, 1),
        valid_until=utc(2024, 3, 3),
    )
    assert not is_active(s, utc(2024, 2, 29, 10))
    assert is_active(s, utc(2024, 3, 2, 10))
    assert not is_active(s, utc(2024, 3, 3, 10))


def test_occurrence_starting_before_validity_does_not_count():
    s = Schedule(
        rrule=DAILY_9_TO_11.rrule,
        duration=timedelta(hours=2),
        valid_from=utc(2024, 3, 1, 9, 30),
    )
    assert not is_active(s, utc(2024, 3, 1, 10))
    assert is_active(s, utc(2024, 3, 2, 10))


def test_zero_occurrences_means_never_active():
    s = Schedule(
        rrule="DTSTART:20200101T090000Z\nRRULE:FREQ=DAILY;COUNT=3",
        valid_from=utc(2024, 1, 1),
    )
    assert not is_active(s, utc(2024, 1, 2, 9, 30))
    assert occurrences(s, utc(2024, 1, 1), utc(2024, 12, 31)) == []


def test_dtstart_falls_back_to_valid_from():
    s = Schedule(rrule="FREQ=DAILY", duration=timedelta(minutes=30), valid_from=utc(2024, 5, 1, 6))
    assert is_active(s, utc(2024, 5, 3, 6, 15))
    assert not is_active(s, utc(2024, 5, 3, 7))


def test_rdate_and_exdate():
    s = Schedule(
        rrule=(
            "DTSTART:20240101T090000Z\n"
            "RRULE:FREQ=DAILY;UNTIL=20240105T090000Z\n"
            "EXDATE:20240103T090000Z\n"
            "RDATE:20240110T090000Z"
        ),
        duration=timedelta(hours=1),
    )
    assert is_active(s, utc(2024, 1, 2, 9, 30))
    assert not is_active(s, utc(2024, 1, 3, 9, 30))
    assert not is_active(s, utc(2024, 1, 8, 9, 30))
    assert is_active(s, utc(2024, 1, 10, 9, 30))


def test_calendar_format():
    s = Schedule.from_calendar(
        "DTSTART:20221020T180000Z;DURATION:PT14H\nRRULE:FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR"
    )
    assert s.duration == timedelta(hours=14)
    assert is_active(s, utc(2024, 3, 6, 20))  # Wednesday evening
    assert is_active(s, utc(2024, 3, 9, 7))  # Saturday morning, Friday's window
    assert not is_active(s, utc(2024, 3, 9, 12))  # Saturday noon
    assert not is_active(s, utc(2024, 3, 10, 20))  # Sunday evening


@pytest.mark.parametrize(
    "text",
    [
        "",
        "DTSTART:20221020T180000Z\nRRULE:FREQ=DAILY",
        "DTSTART:20221020T180000Z;DURATION:soon\nRRULE:FREQ=DAILY",
        "DTSTART:20221020T180000Z;DURATION:PT1H",
    ],
)
def test_calendar_format_errors(text):
    with pytest.raises(InvalidSchedule):
        Schedule.from_calendar(text)


def test_available_between():
    assert is_available_between(DAILY_9_TO_11, utc(2024, 3, 5, 9, 30), utc(2024, 3, 5, 10, 30))
    assert not is_available_between(DAILY_9_TO_11, utc(2024, 3, 5, 10, 30), utc(2024, 3, 5, 11, 30))
    assert not is_available_between(DAILY_9_TO_11, utc(2024, 3, 5, 9), utc(2024, 3, 6, 10))
    with pytest.raises(ValueError):
        is_available_between(DAILY_9_TO_11, utc(2024, 3, 5, 10), utc(2024, 3, 5, 9))


def test_available_between_merges_back_to_back_windows():
    s = Schedule(
        rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=DAILY;BYHOUR=9,10",
        duration=timedelta(hours=1),
    )
    assert is_available_between(s, utc(2024, 3, 5, 9, 30), utc(2024, 3, 5, 10, 45))
    assert not is_available_between(s, utc(2024, 3, 5, 9, 30), utc(2024, 3, 5, 11, 15))


def test_occurrences_in_range():
    got = occurrences(DAILY_9_TO_11, utc(2024, 3, 1), utc(2024, 3, 3, 23))
    assert got == [utc(2024, 3, 1, 9), utc(2024, 3, 2, 9), utc(2024, 3, 3, 9)]


@pytest.mark.parametrize(
    "schedule",
    [
        Schedule(rrule="RRULE:FREQ=DAILY"),  # no DTSTART, no valid_from
        Schedule(rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=SOMETIMES"),
        Schedule(rrule="DTSTART:20240101T090000Z\nnonsense"),
        Schedule(rrule="DTSTART:20240101T090000Z"),  # nothing recurs
        Schedule(rrule="DTSTART:2024-01-01\nRRULE:FREQ=DAILY"),
        Schedule(rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=DAILY", timezone="Mars/Olympus"),
        Schedule(rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=DAILY", duration=timedelta(hours=-1)),
        Schedule(
            rrule="DTSTART:20240101T090000Z\nRRULE:FREQ=DAILY",
            valid_from=utc(2024, 2, 1),
            valid_until=utc(2024, 1, 1),
        ),
    ],
)
def test_invalid_schedules(schedule):
    with pytest.raises(InvalidSchedule):
        compile_schedule(schedule)
    with pytest.raises(InvalidSchedule):
        is_active(schedule, utc(2024, 3, 1))


def test_resolver_delegates():
    r = RecurrenceAvailability()
    assert r.is_active(DAILY_9_TO_11, utc(2024, 3, 5, 10))
    assert r.is_available_between(DAILY_9_TO_11, utc(2024, 3, 5, 9), utc(2024, 3, 5, 10))


NIGHTLY_BERLIN = "DTSTART:20240301T013000\nRRULE:FREQ=DAILY"


def test_window_spanning_spring_forward_lasts_real_time():
    # 01:30 CET = 00:30 UTC on 2024-03-31; clocks jump 02:00 -> 03:00 inside the window
    s = Schedule(rrule=NIGHTLY_BERLIN, timezone="Europe/Berlin", duration=timedelta(hours=1))
    assert is_active(s, utc(2024, 3, 31, 1, 15))
    assert not is_active(s, utc(2024, 3, 31, 1, 30))
    assert is_available_between(s, utc(2024, 3, 31, 0, 40), utc(2024, 3, 31, 1, 25))


def test_window_spanning_fall_back_lasts_real_time():
    # 01:30 CEST = 23:30 UTC on 2024-10-26; clocks fall back 03:00 -> 02:00 inside the window
    s = Schedule(rrule=NIGHTLY_BERLIN, timezone="Europe/Berlin", duration=timedelta(hours=2))
    assert is_active(s, utc(2024, 10, 27, 1, 15))
    assert not is_active(s, utc(2024, 10, 27, 2, 0))
    assert not is_available_between(s, utc(2024, 10, 27, 0, 0), utc(2024, 10, 27, 2, 0))
