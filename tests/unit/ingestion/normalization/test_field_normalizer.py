"""
Unit tests for the field_normalizer module.

Tests for mapping free text onto sport types, districts, event categories
and skill levels, and for the filter helpers used by search criteria.
"""

import pytest

from sportshub.ingestion.normalization.field_normalizer import (
    filter_value,
    is_specific_filter,
    normalize_district,
    normalize_event_category,
    normalize_skill_level,
    normalize_sport_type,
    parse_int,
)
from sportshub.schemas.enums import District, EventCategory, SkillLevel, SportType

# =============================================================================
# TEST CLASSES
# =============================================================================


class TestNormalizeSportType:
    """Tests for normalize_sport_type."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("basketball", SportType.BASKETBALL),
            ("Basketball Courts", SportType.BASKETBALL),
            ("Football pitch", SportType.SOCCER),
            ("Indoor swimming pool", SportType.SWIMMING),
            ("Marathon", SportType.RUNNING),
            ("24h Gym", SportType.FITNESS),
            ("sports_centre", SportType.SPORTS_CENTRE),
            ("Sports Center", SportType.SPORTS_CENTRE),
        ],
    )
    def test_known_values(self, text, expected):
        """Should map exact values and keywords onto the enum."""
        assert normalize_sport_type(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "curling"])
    def test_unknown_defaults_to_other(self, text):
        """Should degrade unknown or empty input to other."""
        assert normalize_sport_type(text) == SportType.OTHER

    def test_accepts_enum_member(self):
        """Should treat an enum member like its value."""
        assert normalize_sport_type(SportType.TENNIS) == SportType.TENNIS


class TestNormalizeDistrict:
    """Tests for normalize_district."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Kowloon City", District.KOWLOON_CITY),
            ("kowloon_city", District.KOWLOON_CITY),
            ("Wan Chai", District.WANCHAI),
            ("1 Hing Fat Street, Causeway Bay, Hong Kong", District.WANCHAI),
            ("North Point", District.EASTERN),
            ("Tsim Sha Tsui", District.YAU_TSIM_MONG),
            ("Shatin", District.SHA_TIN),
        ],
    )
    def test_known_values(self, text, expected):
        """Should map districts, neighbourhoods and addresses."""
        assert normalize_district(text) == expected

    def test_specific_phrase_beats_generic(self):
        """Should prefer 'kowloon city' over the broader 'kowloon'."""
        assert normalize_district("Somewhere in Kowloon City") == District.KOWLOON_CITY
        assert normalize_district("Kowloon") == District.KOWLOON_CITY

    def test_default(self):
        """Should return the given default when nothing matches."""
        assert normalize_district("Atlantis") == District.CENTRAL
        assert normalize_district(None, default=District.ISLANDS) == District.ISLANDS


class TestNormalizeEventFields:
    """Tests for event category and skill level normalization."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Tournament", EventCategory.COMPETITION),
            ("Coaching clinic", EventCategory.LESSONS),
            ("Spectator event", EventCategory.WATCHING),
            ("Community meetup", EventCategory.SOCIAL),
            ("", EventCategory.COMPETITION),
        ],
    )
    def test_event_category(self, text, expected):
        """Should map category text with competition as default."""
        assert normalize_event_category(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Beginner friendly", SkillLevel.BEGINNER),
            ("Intermediate", SkillLevel.INTERMEDIATE),
            ("Professional", SkillLevel.EXPERT),
            ("Open to all", SkillLevel.ALL_LEVELS),
            (None, SkillLevel.ALL_LEVELS),
        ],
    )
    def test_skill_level(self, text, expected):
        """Should map skill text with all_levels as default."""
        assert normalize_skill_level(text) == expected


class TestFilterHelpers:
    """Tests for is_specific_filter and filter_value."""

    @pytest.mark.parametrize("value", [None, "", "  ", "all", "ALL"])
    def test_wildcards(self, value):
        """Should treat empty values and 'all' as no filter."""
        assert is_specific_filter(value) is False
        assert filter_value(value) is None

    def test_plain_string(self):
        """Should return the trimmed string for a specific filter."""
        assert is_specific_filter("tennis") is True
        assert filter_value(" tennis ") == "tennis"

    def test_enum_member(self):
        """Should unwrap enum members to their value."""
        assert filter_value(District.KOWLOON_CITY) == "kowloon_city"


class TestParseInt:
    """Tests for parse_int."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Up to 32 players", 32),
            ("1,200", 1200),
            (64, 64),
            ("no limit", None),
            (None, None),
        ],
    )
    def test_parse_int(self, text, expected):
        """Should return the first whole number or None."""
        assert parse_int(text) == expected
