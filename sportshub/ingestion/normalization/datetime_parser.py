"""
Date and time parsing for provider text.

Providers write dates and times in whatever format the upstream model felt
like that day. The helpers here pull a calendar date or an ``HH:MM`` window out
of a free-text fragment and return ``None`` (or a default window) rather than
raising when nothing usable is found.
"""

from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)

MONTHS: dict[str, int] = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

MONTH_PATTERN = "|".join(sorted(MONTHS, key=len, reverse=True))

ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
MONTH_DAY_YEAR = re.compile(
    rf"\b({MONTH_PATTERN})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
DAY_MONTH_YEAR = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({MONTH_PATTERN})\.?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
NUMERIC_DATE = re.compile(r"(?<![\d.:/-])(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})(?![\d.:/-])")

TIME_TOKEN = re.compile(
    r"(?<![\d:.])(?P<hour>\d{1,2})(?::(?P<minute>[0-5]\d))?\s*(?P<meridiem>[ap]\.?\s?m\b\.?)?",
    re.IGNORECASE,
)

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"
SINGLE_TIME_DURATION_HOURS = 2
LATEST_END_HOUR = 23


@dataclass(frozen=True)
class TimeRange:
    """Start and end of an event as 24-hour ``HH:MM`` strings."""

    start: str
    end: str


DEFAULT_TIME_RANGE = TimeRange(DEFAULT_START_TIME, DEFAULT_END_TIME)


# ============================================================================
# DATES
# ============================================================================


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Discarding impossible date {year}-{month}-{day}")
        return None


def parse_date(text: str | None) -> date | None:
    """
    Extract a calendar date from free text.

    Formats are tried in order: ISO ``YYYY-MM-DD``, ``Month DD, YYYY``,
    ``DD Month YYYY`` and finally numeric ``A-B-YYYY`` (``/`` and ``.`` also
    accepted) read as day-month-year. Two-digit years are read as 20YY.

    Returns:
        The date, or None when nothing matches or the match is not a real
        calendar day.
    """
    if not text:
        return None

    if m := ISO_DATE.search(text):
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    if m := MONTH_DAY_YEAR.search(text):
        month = MONTHS[m.group(1).lower()]
        return _safe_date(int(m.group(3)), month, int(m.group(2)))

    if m := DAY_MONTH_YEAR.search(text):
        month = MONTHS[m.group(2).lower()]
        return _safe_date(int(m.group(3)), month, int(m.group(1)))

    if m := NUMERIC_DATE.search(text):
        first, second, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if year < 100:
            year += 2000
        return _safe_date(year, second, first)

    return None


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole calendar months, clamping to the month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_event_date(today: date | None = None) -> date:
    """The date used when a provider gives no usable date: one month out."""
    return add_months(today or date.today(), 1)


# ============================================================================
# TIMES
# ============================================================================


def _format_hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def _iter_times(text: str):
    """Yield ``(hour, minute)`` for every plausible time token in ``text``."""
    for m in TIME_TOKEN.finditer(text):
        minute_text, meridiem = m.group("minute"), m.group("meridiem")
        # A bare number is a quantity or a date part, not a time.
        if minute_text is None and meridiem is None:
            continue

        hour = int(m.group("hour"))
        minute = int(minute_text) if minute_text else 0
        if meridiem:
            if hour < 1 or hour > 12:
                logger.debug(f"Skipping malformed time {m.group(0)!r}")
                continue
            is_pm = meridiem.lower().startswith("p")
            hour = hour % 12 + (12 if is_pm else 0)
        elif hour > 23:
            logger.debug(f"Skipping malformed time {m.group(0)!r}")
            continue
        yield hour, minute


def parse_single_time(text: str | None) -> str | None:
    """Return the first time in ``text`` as ``HH:MM``, or None."""
    if not text:
        return None
    for hour, minute in _iter_times(text):
        return _format_hhmm(hour, minute)
    return None


def parse_time_range(
    text: str | None,
    default: TimeRange = DEFAULT_TIME_RANGE,
) -> TimeRange:
    """
    Extract a start/end window from free text.

    ``"9:00 AM - 5:30 PM"`` and ``"19:00-21:00"`` give both ends. A lone time
    yields a window of two hours, with the end hour capped at 23 and the
    minutes kept. Anything else returns ``default``.
    """
    if not text:
        return default

    times = list(_iter_times(text))
    if not times:
        return default

    start_hour, start_minute = times[0]
    start = _format_hhmm(start_hour, start_minute)
    if len(times) >= 2:
        end_hour, end_minute = times[1]
        return TimeRange(start, _format_hhmm(end_hour, end_minute))

    end_hour = min(start_hour + SINGLE_TIME_DURATION_HOURS, LATEST_END_HOUR)
    return TimeRange(start, _format_hhmm(end_hour, start_minute))
