"""
Unit tests for the datetime_parser module.

Tests for date extraction, month arithmetic and HH:MM time windows.
"""

from datetime import date

import pytest

from sportshub.ingestion.normalization.datetime_parser import (
    DEFAULT_TIME_RANGE,
    TimeRange,
    add_months,
    default_event_date,
    parse_date,
    parse_single_time,
    parse_time_range,
)

# =============================================================================
# TEST CLASSES
# =============================================================================


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2025-04-12", date(2025, 4, 12)),
            ("Date: 2025-4-2 (Sat)", date(2025, 4, 2)),
            ("April 12, 2025", date(2025, 4, 12)),
            ("Sept. 3 2025", date(2025, 9, 3)),
            ("12th April 2025", date(2025, 4, 12)),
            ("3 of March, 2025", date(2025, 3, 3)),
        ],
    )
    def test_named_and_iso_formats(self, text, expected):
        """Should read ISO and month-name dates."""
        assert parse_date(text) == expected

    def test_numeric_is_day_month_year(self):
        """Should read ambiguous numeric dates as day-month-year."""
        assert parse_date("05/04/2025") == date(2025, 4, 5)

    def test_numeric_never_month_day(self):
        """Should not reinterpret a numeric date whose second number exceeds 12."""
        assert parse_date("3-25-2026") is None
        assert parse_date("04/25/2025") is None

    def test_two_digit_year(self):
        """Should read two-digit years as 20YY."""
        assert parse_date("1.6.25") == date(2025, 6, 1)

    @pytest.mark.parametrize("text", [None, "", "sometime soon", "2025-02-30"])
    def test_unusable(self, text):
        """Should return None when no real calendar day is present."""
        assert parse_date(text) is None


class TestMonthArithmetic:
    """Tests for add_months and default_event_date."""

    def test_clamps_to_month_end(self):
        """Should clamp the day to the target month's length."""
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)

    def test_crosses_year(self):
        """Should roll over into the next year."""
        assert add_months(date(2025, 12, 15), 1) == date(2026, 1, 15)

    def test_default_event_date(self):
        """Should be one month after today."""
        assert default_event_date(date(2025, 3, 10)) == date(2025, 4, 10)


class TestTimes:
    """Tests for parse_single_time and parse_time_range."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("9:00 AM - 5:30 PM", TimeRange("09:00", "17:30")),
            ("19:00-21:00", TimeRange("19:00", "21:00")),
            ("7pm to 10pm", TimeRange("19:00", "22:00")),
            ("12 am - 12 pm", TimeRange("00:00", "12:00")),
        ],
    )
    def test_ranges(self, text, expected):
        """Should read both ends of a window."""
        assert parse_time_range(text) == expected

    def test_single_time_gets_two_hours(self):
        """Should give a lone start time a two hour window."""
        assert parse_time_range("Starts 14:30") == TimeRange("14:30", "16:30")

    def test_single_time_capped_at_23(self):
        """Should cap the end hour at 23 and keep the minutes."""
        assert parse_time_range("22:15") == TimeRange("22:15", "23:15")

    def test_bare_numbers_are_not_times(self):
        """Should ignore numbers without minutes or meridiem."""
        assert parse_time_range("Court 3, 40 players") == DEFAULT_TIME_RANGE

    def test_default_when_empty(self):
        """Should return the supplied default."""
        fallback = TimeRange("10:00", "12:00")
        assert parse_time_range(None, default=fallback) == fallback

    def test_malformed_meridiem_skipped(self):
        """Should skip hours outside 1-12 with am/pm."""
        assert parse_single_time("13pm or 8:45") == "08:45"

    def test_single_time_none(self):
        """Should return None without a time."""
        assert parse_single_time("TBC") is None
