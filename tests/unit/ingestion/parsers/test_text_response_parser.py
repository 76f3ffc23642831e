"""
Unit tests for the text_response_parser module.

Tests for turning semi-formatted provider prose into candidate record dicts:
titles, labeled fields, unlabeled values, section headings and the
same-name merge.
"""

import copy
from datetime import date

import pytest

from sportshub.ingestion.parsers.text_response_parser import (
    FIELD_HANDLERS,
    TextResponseParser,
    match_label,
    merge_same_name,
    split_title,
)
from sportshub.schemas.enums import CandidateKind

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def event_parser():
    """Event parser with a tennis hint."""
    return TextResponseParser(kind=CandidateKind.EVENT, default_sport_type="tennis")


@pytest.fixture
def facility_parser():
    """Facility parser without hints."""
    return TextResponseParser(kind=CandidateKind.FACILITY)


EVENT_RESPONSE = """Here are some upcoming events:

1. **Hong Kong Open Tennis**
   - **Date:** 2025-04-12
   - **Time:** 9:00 AM - 5:00 PM
   - **Location:** Victoria Park Tennis Courts, Causeway Bay
   - **Category:** Competition
   - **Website:** https://example.com/open
   The city's biggest amateur tennis event.

2. **Harbour Night Run**
   - **Date:** April 20, 2025
   - **Time:** 19:00
   - **Max participants:** 500
"""


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestEventResponses:
    """Tests for parsing event responses."""

    def test_numbered_bold_titles(self, event_parser):
        """Should produce one record per numbered title, in order."""
        records = event_parser.parse(EVENT_RESPONSE)

        assert [r["name"] for r in records] == ["Hong Kong Open Tennis", "Harbour Night Run"]

    def test_labeled_fields(self, event_parser):
        """Should route labeled lines to their fields."""
        first = event_parser.parse(EVENT_RESPONSE)[0]

        assert first["event_date"] == date(2025, 4, 12)
        assert first["start_time"] == "09:00"
        assert first["end_time"] == "17:00"
        assert first["location"]["address"] == "Victoria Park Tennis Courts, Causeway Bay"
        assert first["category"] == "Competition"
        assert first["website"] == "https://example.com/open"
        assert first["description"] == "The city's biggest amateur tennis event."

    def test_single_time_and_participants(self, event_parser):
        """Should widen a lone time and read the participant cap."""
        second = event_parser.parse(EVENT_RESPONSE)[1]

        assert second["event_date"] == date(2025, 4, 20)
        assert (second["start_time"], second["end_time"]) == ("19:00", "21:00")
        assert second["max_participants"] == 500

    def test_hints_seeded(self, event_parser):
        """Should seed every record with the sport hint and kind."""
        for record in event_parser.parse(EVENT_RESPONSE):
            assert record["sport_type"] == "tennis"
            assert record["kind"] == "event"

    def test_location_placeholder_unconfirmed(self, event_parser):
        """Should keep the placeholder coordinates unconfirmed."""
        record = event_parser.parse(EVENT_RESPONSE)[0]

        assert record["location"]["is_confirmed"] is False
        assert record["location"]["coordinates"] is not None

    def test_bulleted_names(self, event_parser):
        """Should give N candidates for N bulleted names, in order."""
        text = "- Alpha Cup\n- Beta Cup\n- Gamma Cup\n- Delta Cup"

        records = event_parser.parse(text)

        assert [r["name"] for r in records] == ["Alpha Cup", "Beta Cup", "Gamma Cup", "Delta Cup"]

    def test_bulleted_bold_titles_with_colon(self, event_parser):
        """Should open a record at each '- **Name**: text' bullet."""
        text = (
            "- **Hong Kong Sevens**: Rugby sevens at Kai Tak Stadium.\n"
            "- **Standard Chartered Marathon**: The city's largest road race.\n"
            "- **Dragon Boat Carnival**: Races in Victoria Harbour."
        )

        records = event_parser.parse(text)

        assert [r["name"] for r in records] == [
            "Hong Kong Sevens",
            "Standard Chartered Marathon",
            "Dragon Boat Carnival",
        ]
        assert records[0]["description"] == "Rugby sevens at Kai Tak Stadium."

    def test_known_label_bullet_stays_a_field(self, event_parser):
        """Should route a top-level bullet with a known label to the open record."""
        text = "- **Alpha Cup**: a friendly tournament\n- Date: 2025-04-01\n- **Beta Cup**: another one"

        records = event_parser.parse(text)

        assert [r["name"] for r in records] == ["Alpha Cup", "Beta Cup"]
        assert records[0]["event_date"] == date(2025, 4, 1)

    def test_unlabeled_values(self, event_parser):
        """Should pick up standalone dates, time windows and URLs."""
        text = "1. Sunset Social\n   Saturday, 12 April 2025\n   6pm - 8pm\n   https://example.com/sunset"

        record = event_parser.parse(text)[0]

        assert record["event_date"] == date(2025, 4, 12)
        assert (record["start_time"], record["end_time"]) == ("18:00", "20:00")
        assert record["website"] == "https://example.com/sunset"

    def test_heading_separates_sections(self, event_parser):
        """Should close the open record at a plain heading."""
        text = "**Alpha Cup**\nDate: 2025-04-01\n### Other news\nSomething unrelated\n**Beta Cup**"

        records = event_parser.parse(text)

        assert [r["name"] for r in records] == ["Alpha Cup", "Beta Cup"]
        assert "unrelated" not in records[0]["description"]

    def test_name_label_opens_record(self, event_parser):
        """Should start a new record at each Name: line."""
        text = "Name: Alpha Cup\nDate: 2025-04-01\nName: Beta Cup\nDate: 2025-05-01"

        records = event_parser.parse(text)

        assert [(r["name"], r["event_date"]) for r in records] == [
            ("Alpha Cup", date(2025, 4, 1)),
            ("Beta Cup", date(2025, 5, 1)),
        ]

    def test_preamble_fields_ignored(self, event_parser):
        """Should ignore labeled lines before any title."""
        records = event_parser.parse("Date: 2025-01-01\n1. Alpha Cup")

        assert len(records) == 1
        assert "event_date" not in records[0]

    @pytest.mark.parametrize("text", ["", "   \n\n", "No events found."])
    def test_nothing_to_parse(self, event_parser, text):
        """Should return an empty list when no titles are present."""
        assert event_parser.parse(text) == []


class TestFacilityResponses:
    """Tests for parsing facility responses."""

    def test_coordinates_confirm_location(self, facility_parser):
        """Should confirm the location when coordinates are given."""
        text = (
            "1. Kowloon Park Sports Centre\n"
            "   Address: 22 Austin Road, Tsim Sha Tsui\n"
            "   GPS Coordinates: 22.3004° N, 114.1707° E"
        )

        record = facility_parser.parse(text)[0]

        assert record["location"]["address"] == "22 Austin Road, Tsim Sha Tsui"
        assert record["location"]["coordinates"] == {"latitude": 22.3004, "longitude": 114.1707}
        assert record["location"]["is_confirmed"] is True

    def test_bulleted_plain_titles_with_colon(self, facility_parser):
        """Should open a record at each '* Name: text' bullet."""
        text = (
            "* Victoria Park Tennis Centre: 14 hard courts\n"
            "* Kowloon Tsai Park Tennis Courts: 6 courts near the MTR"
        )

        records = facility_parser.parse(text)

        assert [r["name"] for r in records] == ["Victoria Park Tennis Centre", "Kowloon Tsai Park Tennis Courts"]
        assert records[1]["description"] == "6 courts near the MTR"

    def test_separate_axes_folded(self, facility_parser):
        """Should fold separate latitude and longitude lines into coordinates."""
        text = "1. Island East Swimming Centre\n   Latitude: 22.2864\n   Longitude: 114.2218"

        record = facility_parser.parse(text)[0]

        assert record["location"]["coordinates"] == {"latitude": 22.2864, "longitude": 114.2218}
        assert "latitude" not in record

    def test_no_category_hint_for_facilities(self):
        """Should only seed the category hint on event records."""
        parser = TextResponseParser(kind=CandidateKind.FACILITY, default_category="social")

        assert "category" not in parser.new_record("X")


# Label -> (value, top-level keys the handler is allowed to change)
LABEL_CASES = {
    "name": ('"Harbour Run"', {"name"}),
    "date": ("2025-04-12", {"event_date"}),
    "time": ("9:00 AM - 5:00 PM", {"start_time", "end_time"}),
    "date & time": ("2025-04-12, 19:00 - 21:00", {"event_date", "start_time", "end_time"}),
    "start time": ("10:30", {"start_time"}),
    "end time": ("7pm", {"end_time"}),
    "location": ("Victoria Park", {"location"}),
    "address": ("1 Hing Fat Street", {"location"}),
    "coordinates": ("22.28, 114.19", {"location"}),
    "sport": ("Tennis", {"sport_type"}),
    "category": ("Social", {"category"}),
    "district": ("Wan Chai", {"district"}),
    "description": ("Bring water", {"description"}),
    "website": ("See https://example.com/x.", {"website"}),
    "image": ("https://example.com/a.jpg", {"image_url"}),
    "latitude": ("22.28", {"latitude"}),
    "longitude": ("114.19", {"longitude"}),
    "skill level": ("Beginner", {"skill_level"}),
    "max participants": ("Up to 40 players", {"max_participants"}),
    "rating": ("4.5/5", {"rating"}),
}


class TestFieldHandlers:
    """Tests for the label -> setter table."""

    @pytest.mark.parametrize("label", sorted(LABEL_CASES))
    def test_label_sets_exactly_its_field(self, event_parser, label):
        """Should change only the fields the label names."""
        value, expected = LABEL_CASES[label]
        before = event_parser.new_record("Seed")
        after = copy.deepcopy(before)

        FIELD_HANDLERS[label](after, value)

        changed = {key for key in before.keys() | after.keys() if before.get(key) != after.get(key)}
        assert changed == expected

    def test_every_label_lowercase(self):
        """Should key the table by normalized lower-case labels."""
        assert all(label == " ".join(label.lower().split()) for label in FIELD_HANDLERS)

    def test_malformed_values_skipped(self, event_parser):
        """Should leave the record untouched for unparseable values."""
        record = event_parser.new_record("Seed")
        before = copy.deepcopy(record)

        FIELD_HANDLERS["date"](record, "sometime in spring")
        FIELD_HANDLERS["time"](record, "all day")
        FIELD_HANDLERS["max participants"](record, "unlimited")
        FIELD_HANDLERS["coordinates"](record, "near the pier")

        assert record == before


class TestLineHelpers:
    """Tests for match_label and split_title."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("**Date:** 2025-04-12", ("date", "2025-04-12")),
            ("**Date**: 2025-04-12", ("date", "2025-04-12")),
            ("Venue: Victoria Park [1]", ("venue", "Victoria Park")),
            ("Ticket price: $100", None),
            ("Just some prose", None),
        ],
    )
    def test_match_label(self, text, expected):
        """Should recognize known labels in bold and plain forms."""
        assert match_label(text) == expected

    @pytest.mark.parametrize(
        "body,expected",
        [
            ("**Alpha Cup** - a friendly tournament", ("Alpha Cup", "a friendly tournament")),
            ("**Alpha Cup**: a friendly tournament", ("Alpha Cup", "a friendly tournament")),
            ("Alpha Cup: a friendly tournament", ("Alpha Cup", "a friendly tournament")),
            ('"Alpha Cup"', ("Alpha Cup", "")),
        ],
    )
    def test_split_title(self, body, expected):
        """Should separate the name from trailing text."""
        assert split_title(body) == expected


class TestMergeSameName:
    """Tests for merge_same_name."""

    def test_earlier_record_wins(self, event_parser):
        """Should keep earlier values and fill gaps from later ones."""
        text = (
            "1. Victoria Park Courts\n"
            "   Date: 2025-05-01\n"
            "2. Victoria Park Courts\n"
            "   Date: 2025-06-01\n"
            "   Website: https://example.com/vp"
        )

        records = event_parser.parse(text)

        assert len(records) == 1
        assert records[0]["event_date"] == date(2025, 5, 1)
        assert records[0]["website"] == "https://example.com/vp"

    def test_case_insensitive_names(self):
        """Should treat names differing only in case as the same."""
        records = merge_same_name([{"name": "Alpha Cup"}, {"name": "alpha cup", "website": "w"}])

        assert records == [{"name": "Alpha Cup", "website": "w"}]

    def test_confirmed_location_replaces_placeholder(self, facility_parser):
        """Should take confirmed coordinates from a later duplicate."""
        first = facility_parser.new_record("Alpha Courts")
        second = facility_parser.new_record("Alpha Courts")
        second["location"] = {
            "name": "Alpha Courts",
            "address": "2 Harcourt Road",
            "coordinates": {"latitude": 22.28, "longitude": 114.16},
            "is_confirmed": True,
        }

        merged = merge_same_name([first, second])[0]

        assert merged["location"]["is_confirmed"] is True
        assert merged["location"]["coordinates"] == {"latitude": 22.28, "longitude": 114.16}
        assert merged["location"]["address"] == "2 Harcourt Road"
