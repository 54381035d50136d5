"""Conversion between instants and the Google Calendar dateTime/timeZone pair."""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

CALENDAR_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _zone_or_none(tz_name: Optional[str]) -> Optional[ZoneInfo]:
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return None


def format_manually(instant: datetime) -> str:
    """Formats the instant's own wall clock, whatever offset it carries."""
    return instant.strftime(CALENDAR_DATETIME_FORMAT)


def format_for_calendar(instant: datetime, tz_name: Optional[str]) -> str:
    """Returns the wall-clock time of the instant in the given zone, without offset.

    An unknown zone falls back to the instant's own wall clock.
    """
    zone = _zone_or_none(tz_name)
    if zone is None:
        logger.warning(f"Invalid timezone '{tz_name}' for calendar formatting, using the manual formatter.")
        return format_manually(instant)
    if instant.tzinfo is None:
        return format_manually(instant)
    return instant.astimezone(zone).strftime(CALENDAR_DATETIME_FORMAT)


def calendar_time_block(instant: datetime, tz_name: Optional[str]) -> Dict[str, str]:
    """Builds a Calendar API start/end block."""
    block = {"dateTime": format_for_calendar(instant, tz_name)}
    if _zone_or_none(tz_name) is not None:
        block["timeZone"] = tz_name
    elif instant.utcoffset() is not None:
        # No usable zone name: send the offset so the API still gets an absolute time
        block["dateTime"] = instant.isoformat(timespec="seconds")
    return block


def parse_calendar_datetime(value: str, tz_name: Optional[str] = None) -> Optional[datetime]:
    """Parses a calendar dateTime (or an all-day date) into an aware datetime.

    Values with an offset are converted into the zone; naive values are read as
    wall-clock time in it. Returns None for unparseable values.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Could not parse calendar datetime '{value}'")
        return None

    zone = _zone_or_none(tz_name)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone or timezone.utc)
    return parsed.astimezone(zone) if zone is not None else parsed
