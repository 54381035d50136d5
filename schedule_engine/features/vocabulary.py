"""Keyword tables shared by the temporal resolver and the intent resolver.

This is the only place date, time, timezone and intent vocabulary is defined;
both the create and the edit paths compile their patterns from here.
"""

import re
from typing import Dict, List

WEEKDAYS: List[str] = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
# datetime.weekday() index for each name
WEEKDAY_INDEX: Dict[str, int] = {name: index for index, name in enumerate(WEEKDAYS)}
# "sat" and "sun" are left out, they read as ordinary words too often
WEEKDAY_INDEX.update({"mon": 0, "tue": 1, "tues": 1, "wed": 2, "weds": 2, "thu": 3, "thur": 3, "thurs": 3, "fri": 4})

MONTHS: Dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

# Keyword -> day offset from the reference day
RELATIVE_DAY_OFFSETS: Dict[str, int] = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
}

NEXT_PERIODS = ("week", "month", "year")

TIMEZONE_ABBREVIATIONS: Dict[str, str] = {
    "cst": "America/Chicago",
    "cdt": "America/Chicago",
    "central": "America/Chicago",
    "est": "America/New_York",
    "edt": "America/New_York",
    "eastern": "America/New_York",
    "pst": "America/Los_Angeles",
    "pdt": "America/Los_Angeles",
    "pacific": "America/Los_Angeles",
    "mst": "America/Denver",
    "mdt": "America/Denver",
    "mountain": "America/Denver",
}

MEETING_KEYWORDS = ("meeting", "call", "appointment", "session", "interview", "standup")

EDIT_KEYWORDS = (
    "edit", "edits", "edited", "editing",
    "change", "changes", "changed", "changing",
    "move", "moves", "moved", "moving",
    "reschedule", "reschedules", "rescheduled", "rescheduling",
    "update", "updates", "updated", "updating",
    "modify", "modifies", "modified", "modifying",
)

# Words that make a request read like a question about the calendar
LIST_QUERY_KEYWORDS = ("when", "what", "show", "list", "schedule", "do i have", "am i", "where", "time")

# Never useful as search terms for LIST filtering
QUERY_STOP_WORDS = frozenset({
    "when", "what", "whats", "what's", "show", "list", "schedule", "where", "time", "do", "does", "have",
    "am", "is", "are", "the", "my", "me", "any", "all", "for", "on", "in", "at", "i", "a", "an", "of",
    "to", "events", "event", "calendar", "upcoming", "please", "can", "you", "there", "coming", "up",
    "with", "this", "next", "week", "today", "tomorrow",
})


def _alternation(words) -> str:
    # Longest first so "september" wins over "sep"
    return "|".join(sorted((re.escape(w) for w in words), key=len, reverse=True))


_WEEKDAY_ALT = _alternation(WEEKDAY_INDEX)
_MONTH_ALT = _alternation(MONTHS)
_TZ_ALT = _alternation(TIMEZONE_ABBREVIATIONS)

# One alternation per date keyword family. re.search returns the leftmost
# occurrence in the text, so "first match in source order" falls out of it.
DATE_PATTERN = re.compile(
    r"\b(?:"
    r"(?P<relative>today|tonight|tomorrow)"
    r"|next\s+(?P<next_weekday>" + _WEEKDAY_ALT + r")"
    r"|next\s+(?P<next_period>week|month|year)"
    r"|(?P<month>" + _MONTH_ALT + r")\.?\s+(?P<month_day>\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(?P<month_year>\d{4}))?"
    r"|(?P<numeric_month>\d{1,2})/(?P<numeric_day>\d{1,2})(?:/(?P<numeric_year>\d{2}|\d{4}))?"
    r"|(?P<weekday>" + _WEEKDAY_ALT + r")"
    r"|(?P<ordinal_day>\d{1,2})(?:st|nd|rd|th)"
    r")\b",
    re.IGNORECASE | re.ASCII,
)

# 12-hour clock with a meridiem, or a 24-hour H:MM
TIME_PATTERN = re.compile(
    r"(?<![\d/:])(?:"
    r"(?P<hour12>\d{1,2})(?::(?P<minute12>\d{2}))?\s*(?P<meridiem>a\.?m\.?|p\.?m\.?)(?![a-z])"
    r"|(?P<hour24>\d{1,2}):(?P<minute24>\d{2})(?![\d/])"
    r")",
    re.IGNORECASE | re.ASCII,
)

TIMEZONE_PATTERN = re.compile(r"\b(?P<tz>" + _TZ_ALT + r")\b", re.IGNORECASE | re.ASCII)

MEETING_PATTERN = re.compile(r"\b(?:" + _alternation(MEETING_KEYWORDS) + r")s?\b", re.IGNORECASE | re.ASCII)

EDIT_PATTERN = re.compile(r"\b(?:" + _alternation(EDIT_KEYWORDS) + r")\b", re.IGNORECASE | re.ASCII)

LIST_QUERY_PATTERN = re.compile(
    r"^\s*(?:(?:please|hey|ok|okay)[,\s]+)?(?:can you\s+|could you\s+)?"
    r"(?:when|what|show|list|where|do i have|am i|what time)\b",
    re.IGNORECASE | re.ASCII,
)
# "schedule" and "time" only count as query words inside a question
LIST_QUESTION_PATTERN = re.compile(r"\b(?:" + _alternation(LIST_QUERY_KEYWORDS) + r")\b", re.IGNORECASE | re.ASCII)

# Phrases removed from a title, applied in order
TITLE_STRIP_PATTERNS = [
    re.compile(r",?\s*(?:set (?:an )?alert|remind(?: me)?|reminder|alert)\b.*?\b(?:minutes?|mins?|hours?)\b(?:\s+(?:before|prior))?", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(?:today|tonight|tomorrow|after work|this (?:morning|afternoon|evening|weekend))\b", re.IGNORECASE | re.ASCII),
    re.compile(
        r"\b(?:at|@|by|from)?\s*(?<![\d/:])(?:\d{1,2}(?::\d{2})?\s*(?:a\.?m\.?|p\.?m\.?)(?![a-z])|\d{1,2}:\d{2}(?![\d/]))"
        r"(?:\s+(?:" + _TZ_ALT + r")\b(?:\s+time\b)?)?",
        re.IGNORECASE | re.ASCII,
    ),
    re.compile(r"\b(?:on\s+|this\s+|next\s+)?(?:" + _WEEKDAY_ALT + r")\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(?:on\s+)?(?:" + _MONTH_ALT + r")\.?\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s+\d{4})?\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(?:on\s+)?\d{1,2}/\d{1,2}(?:/(?:\d{4}|\d{2}))?\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(?:on\s+)?(?:the\s+)?\d{1,2}(?:st|nd|rd|th)\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\bnext\s+(?:week|month|year)\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(?:" + _TZ_ALT + r")\b(?:\s+time\b)?", re.IGNORECASE | re.ASCII),
]
