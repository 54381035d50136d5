"""Temporal resolver: turns free text into an absolute, timezone-correct interval.

The resolver is a pure function of its inputs. It never raises on malformed
text; anything it cannot make sense of falls back to the reference instant.
"""

import calendar
import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from schedule_engine.core.config import SYSTEM_DEFAULT_TIMEZONE
from schedule_engine.features import vocabulary
from schedule_engine.features.intent_models import (
    DEFAULT_DURATION,
    DateKeyword,
    TemporalReference,
    TemporalResolution,
    TimeOfDay,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([,.;:!?])")
_DANGLING_PREPOSITION = re.compile(r"\s+(?:at|on|by|for|from)$", re.IGNORECASE)


def get_zone(name: Optional[str], fallback: tzinfo = timezone.utc) -> tzinfo:
    """Returns the ZoneInfo for an IANA name, or the fallback for unknown names."""
    if not name:
        return fallback
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        logger.warning(f"Unknown timezone '{name}' ({e}). Falling back to {fallback}.")
        return fallback


def is_valid_timezone(name: Optional[str]) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
        return True
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return False


def pick_timezone(
    text_hint: Optional[str] = None,
    caller_timezone: Optional[str] = None,
    default_timezone: Optional[str] = None,
) -> str:
    """In-text mention > caller override > caller default > system default."""
    return text_hint or caller_timezone or default_timezone or SYSTEM_DEFAULT_TIMEZONE


def detect_timezone(text: str) -> Optional[str]:
    """Returns the IANA zone for the first timezone abbreviation in the text."""
    match = vocabulary.TIMEZONE_PATTERN.search(text or "")
    if not match:
        return None
    return vocabulary.TIMEZONE_ABBREVIATIONS[match.group("tz").lower()]


def parse_time_of_day(text: str) -> Optional[TimeOfDay]:
    """Returns the first valid time-of-day token, converted to a 24-hour clock."""
    for match in vocabulary.TIME_PATTERN.finditer(text or ""):
        if match.group("hour12") is not None:
            hour = int(match.group("hour12"))
            minute = int(match.group("minute12") or 0)
            meridiem = match.group("meridiem").lower().replace(".", "")
            if hour > 12 or minute > 59:
                continue
            if meridiem == "pm" and hour != 12:
                hour += 12
            elif meridiem == "am" and hour == 12:
                hour = 0
        else:
            hour = int(match.group("hour24"))
            minute = int(match.group("minute24"))
            if hour > 23 or minute > 59:
                continue
        return TimeOfDay(hour=hour, minute=minute)
    return None


def _days_until_weekday(reference: date, weekday_index: int) -> int:
    days = (weekday_index - reference.weekday()) % 7
    # A bare weekday never means today
    return days or 7


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _resolve_date_match(match: "re.Match[str]", reference: date) -> Optional[Tuple[date, DateKeyword]]:
    groups = match.groupdict()

    if groups["relative"]:
        word = groups["relative"].lower()
        keyword = DateKeyword.TOMORROW if word == "tomorrow" else DateKeyword.TODAY
        return reference + timedelta(days=vocabulary.RELATIVE_DAY_OFFSETS[word]), keyword

    if groups["next_weekday"]:
        days = _days_until_weekday(reference, vocabulary.WEEKDAY_INDEX[groups["next_weekday"].lower()])
        if days < 7:
            days += 7
        return reference + timedelta(days=days), DateKeyword.NEXT_WEEKDAY

    if groups["next_period"]:
        period = groups["next_period"].lower()
        if period == "week":
            return reference + timedelta(days=7), DateKeyword.NEXT_PERIOD
        if period == "month":
            return _add_months(reference, 1), DateKeyword.NEXT_PERIOD
        return _add_months(reference, 12), DateKeyword.NEXT_PERIOD

    if groups["month"]:
        year = int(groups["month_year"]) if groups["month_year"] else reference.year
        month = vocabulary.MONTHS[groups["month"].lower()]
        return date(year, month, int(groups["month_day"])), DateKeyword.EXPLICIT_MONTH_DAY

    if groups["numeric_month"]:
        year = reference.year
        if groups["numeric_year"]:
            year = int(groups["numeric_year"])
            if year < 100:
                year += 2000
        return date(year, int(groups["numeric_month"]), int(groups["numeric_day"])), DateKeyword.EXPLICIT_MONTH_DAY

    if groups["weekday"]:
        days = _days_until_weekday(reference, vocabulary.WEEKDAY_INDEX[groups["weekday"].lower()])
        return reference + timedelta(days=days), DateKeyword.NAMED_WEEKDAY

    if groups["ordinal_day"]:
        day_of_month = int(groups["ordinal_day"])
        if not 1 <= day_of_month <= 31:
            return None
        # An ordinal that already passed this month means next month
        month_start = reference.replace(day=1)
        if day_of_month < reference.day:
            month_start = _add_months(month_start, 1)
        # Skip months too short to hold the day, e.g. "the 31st" from April
        while calendar.monthrange(month_start.year, month_start.month)[1] < day_of_month:
            month_start = _add_months(month_start, 1)
        return month_start.replace(day=day_of_month), DateKeyword.EXPLICIT_MONTH_DAY

    return None


def parse_date(text: str, reference: date) -> Optional[Tuple[date, DateKeyword]]:
    """Resolves the first date keyword in the text against a reference day.

    Returns None when the text holds no date keyword, or when the first one
    names an impossible date (e.g. "Feb 30").
    """
    match = vocabulary.DATE_PATTERN.search(text or "")
    if not match:
        return None
    try:
        return _resolve_date_match(match, reference)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Ignoring unusable date '{match.group(0)}': {e}")
        return None


def clean_title(text: str) -> str:
    """Strips date, time, timezone and reminder phrases from the text.

    Falls back to the original text verbatim when nothing is left.
    """
    title = text or ""
    for pattern in vocabulary.TITLE_STRIP_PATTERNS:
        title = pattern.sub(" ", title)
    title = _WHITESPACE.sub(" ", title).strip()
    title = _SPACE_BEFORE_PUNCT.sub(r"\1", title)
    title = title.strip(" ,;:-")
    title = _DANGLING_PREPOSITION.sub("", title).strip(" ,;:-")
    return title or text


def extract_temporal_reference(text: str, reference_day: date) -> Tuple[TemporalReference, Optional[date]]:
    """Scans text for date, time and timezone facts."""
    date_result = parse_date(text, reference_day)
    time_of_day = parse_time_of_day(text)
    temporal_reference = TemporalReference(
        has_explicit_date=date_result is not None,
        has_explicit_time=time_of_day is not None,
        date_keyword=date_result[1] if date_result else DateKeyword.NONE,
        time_of_day=time_of_day,
        timezone_hint=detect_timezone(text),
    )
    return temporal_reference, (date_result[0] if date_result else None)


def resolve(
    text: str,
    reference_instant: Optional[datetime] = None,
    caller_timezone: Optional[str] = None,
    default_timezone: Optional[str] = None,
) -> TemporalResolution:
    """Resolves the date/time expressions in text into an absolute interval.

    Args:
        text: Free-form user text, e.g. "Dentist appointment tomorrow at 2pm".
        reference_instant: "Now". A naive value is read as wall-clock time in the
            resolved timezone. Defaults to the current UTC time.
        caller_timezone: Zone supplied by the caller for this request.
        default_timezone: The caller's configured default zone.

    Returns:
        TemporalResolution with start/end in the resolved zone, the cleaned
        title and whether the text describes a scheduled event.
    """
    text = text or ""
    if reference_instant is None:
        reference_instant = datetime.now(timezone.utc)

    timezone_hint = detect_timezone(text)
    tz_name = pick_timezone(timezone_hint, caller_timezone, default_timezone)
    # An unknown zone keeps the reference's own fixed offset
    zone = get_zone(tz_name, fallback=reference_instant.tzinfo or timezone.utc)

    if reference_instant.tzinfo is None:
        local_reference = reference_instant.replace(tzinfo=zone)
    else:
        local_reference = reference_instant.astimezone(zone)

    temporal_reference, resolved_day = extract_temporal_reference(text, local_reference.date())
    target_day = resolved_day or local_reference.date()

    if temporal_reference.time_of_day is not None:
        start = datetime(
            target_day.year, target_day.month, target_day.day,
            temporal_reference.time_of_day.hour, temporal_reference.time_of_day.minute,
            tzinfo=zone,
        )
    else:
        # No explicit time keeps the reference wall-clock time
        start = local_reference.replace(year=target_day.year, month=target_day.month, day=target_day.day)

    # Meeting words count only alongside an explicit date, so a bare "Call mom" stays a task
    is_scheduled_event = temporal_reference.has_explicit_time or (
        temporal_reference.has_explicit_date and vocabulary.MEETING_PATTERN.search(text) is not None
    )

    try:
        end = start + DEFAULT_DURATION
    except OverflowError:
        logger.warning(f"Interval end overflows for start {start}. Keeping the reference day.")
        start = local_reference
        end = start + DEFAULT_DURATION

    cleaned_title = clean_title(text)
    logger.debug(
        f"Resolved '{text[:60]}' -> start={start.isoformat()} tz={tz_name} "
        f"keyword={temporal_reference.date_keyword.value} scheduled={is_scheduled_event} title='{cleaned_title}'"
    )
    return TemporalResolution(
        start=start,
        end=end,
        timezone=tz_name,
        cleaned_title=cleaned_title,
        is_scheduled_event=is_scheduled_event,
        reference=temporal_reference,
    )
