"""Tests for the calendar dateTime/timeZone wire format."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from schedule_engine.features.calendar_format import (
    calendar_time_block,
    format_for_calendar,
    parse_calendar_datetime,
)

CHICAGO = ZoneInfo("America/Chicago")
MINUS_SIX = timezone(timedelta(hours=-6))


def test_format_uses_wall_clock_in_zone():
    assert format_for_calendar(datetime(2025, 1, 2, 14, 0, tzinfo=CHICAGO), "America/Chicago") == "2025-01-02T14:00:00"


def test_format_converts_other_offsets_into_zone():
    instant = datetime(2025, 1, 2, 20, 0, tzinfo=timezone.utc)
    assert format_for_calendar(instant, "America/Chicago") == "2025-01-02T14:00:00"


def test_format_invalid_zone_uses_instant_wall_clock():
    instant = datetime(2025, 1, 2, 14, 0, tzinfo=MINUS_SIX)
    assert format_for_calendar(instant, "Not/AZone") == "2025-01-02T14:00:00"


def test_format_naive_instant_is_left_alone():
    assert format_for_calendar(datetime(2025, 1, 2, 14, 0), "Europe/London") == "2025-01-02T14:00:00"


def test_time_block_with_valid_zone():
    block = calendar_time_block(datetime(2025, 7, 4, 9, 30, tzinfo=CHICAGO), "America/Chicago")
    assert block == {"dateTime": "2025-07-04T09:30:00", "timeZone": "America/Chicago"}


def test_time_block_with_invalid_zone_sends_offset():
    block = calendar_time_block(datetime(2025, 1, 2, 14, 0, tzinfo=MINUS_SIX), "Not/AZone")
    assert block == {"dateTime": "2025-01-02T14:00:00-06:00"}


def test_time_block_with_invalid_zone_and_naive_instant():
    assert calendar_time_block(datetime(2025, 1, 2, 14, 0), None) == {"dateTime": "2025-01-02T14:00:00"}


def test_parse_utc_suffix_into_zone():
    parsed = parse_calendar_datetime("2025-01-02T20:00:00Z", "America/Chicago")

    assert parsed == datetime(2025, 1, 2, 14, 0, tzinfo=CHICAGO)
    assert parsed.hour == 14


def test_parse_naive_value_is_wall_clock_in_zone():
    parsed = parse_calendar_datetime("2025-01-02T14:00:00", "America/Chicago")
    assert parsed.isoformat() == "2025-01-02T14:00:00-06:00"


def test_parse_naive_value_without_zone_is_utc():
    assert parse_calendar_datetime("2025-01-02T14:00:00").tzinfo == timezone.utc


def test_parse_offset_value_without_zone_keeps_offset():
    parsed = parse_calendar_datetime("2025-01-02T14:00:00-06:00", "Not/AZone")
    assert parsed.utcoffset() == timedelta(hours=-6)


def test_parse_all_day_date():
    parsed = parse_calendar_datetime("2025-01-02", "America/Chicago")
    assert parsed == datetime(2025, 1, 2, 0, 0, tzinfo=CHICAGO)


def test_parse_garbage_returns_none():
    assert parse_calendar_datetime("next tuesday-ish") is None
    assert parse_calendar_datetime("") is None


def test_format_then_parse_keeps_the_instant():
    instant = datetime(2025, 3, 9, 18, 45, tzinfo=timezone.utc)
    text = format_for_calendar(instant, "America/Chicago")
    assert parse_calendar_datetime(text, "America/Chicago") == instant
