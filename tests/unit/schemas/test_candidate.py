"""
Unit tests for the candidate schemas.

Tests for FacilityCandidate, EventCandidate and NearbyPlace validation and
flattening into store fields.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from sportshub.schemas.candidate import (
    CANDIDATE_MODELS,
    CandidateBase,
    EventCandidate,
    FacilityCandidate,
    LocationInfo,
    NearbyPlace,
)
from sportshub.schemas.enums import (
    CandidateKind,
    District,
    EventCategory,
    SearchSource,
    SkillLevel,
    SportType,
)

# =============================================================================
# TEST CLASSES
# =============================================================================


class TestFacilityCandidate:
    """Tests for FacilityCandidate."""

    def test_flat_shape_folded_into_location(self):
        """Should move flat address and coordinates into location."""
        facility = FacilityCandidate(
            name="Kowloon Park Swimming Pool",
            address="22 Austin Road, Tsim Sha Tsui",
            latitude=22.3004,
            longitude=114.1707,
        )

        assert facility.location.address == "22 Austin Road, Tsim Sha Tsui"
        assert facility.location.name == "Kowloon Park Swimming Pool"
        assert (facility.latitude, facility.longitude) == (22.3004, 114.1707)
        assert facility.location.is_confirmed is True

    def test_nested_shape(self):
        """Should accept the nested location shape unchanged."""
        facility = FacilityCandidate(
            name="Victoria Park",
            location={
                "address": "Causeway Bay",
                "coordinates": {"latitude": 22.2846, "longitude": 114.1881},
            },
        )

        assert facility.address == "Causeway Bay"
        assert facility.coordinates.latitude == 22.2846

    def test_type_alias(self):
        """Should read the legacy type key as sport_type."""
        facility = FacilityCandidate(name="Court", type="tennis", latitude=22.28, longitude=114.15)

        assert facility.sport_type == SportType.TENNIS

    def test_lat_lng_aliases(self):
        """Should read lat and lng as latitude and longitude."""
        facility = FacilityCandidate(name="Court", type="basketball", district="central", lat=22.28, lng=114.15)

        assert (facility.latitude, facility.longitude) == (22.28, 114.15)
        assert facility.location.is_confirmed is True

    def test_flat_coordinates_replace_placeholder(self):
        """Should prefer explicit coordinates over an unconfirmed placeholder."""
        facility = FacilityCandidate(
            name="Court",
            location={
                "coordinates": {"latitude": 22.3193, "longitude": 114.1694},
                "is_confirmed": False,
            },
            latitude=22.2820,
            longitude=114.1590,
        )

        assert (facility.latitude, facility.longitude) == (22.2820, 114.1590)
        assert facility.location.is_confirmed is True

    def test_defaults(self):
        """Should default to other, central, fallback and no coordinates."""
        facility = FacilityCandidate(name="Somewhere")

        assert facility.kind == CandidateKind.FACILITY
        assert facility.sport_type == SportType.OTHER
        assert facility.district == District.CENTRAL
        assert facility.search_source == SearchSource.FALLBACK
        assert facility.latitude is None

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name):
        """Should reject empty names."""
        with pytest.raises(ValidationError, match="name must not be empty"):
            FacilityCandidate(name=name)

    def test_name_and_description_trimmed(self):
        """Should trim the name and collapse description whitespace."""
        facility = FacilityCandidate(name="  Court  ", description="  Indoor\n  courts ")

        assert facility.name == "Court"
        assert facility.description == "Indoor courts"

    def test_out_of_range_coordinates(self):
        """Should reject impossible coordinates."""
        with pytest.raises(ValidationError):
            FacilityCandidate(name="Court", latitude=95.0, longitude=114.15)

    def test_unknown_enum_rejected(self):
        """Should reject a district outside the closed set."""
        with pytest.raises(ValidationError):
            FacilityCandidate(name="Court", district="atlantis")

    def test_extra_fields_ignored(self, create_facility):
        """Should ignore keys it does not know."""
        facility = create_facility(bogus="x")

        assert not hasattr(facility, "bogus")

    def test_to_store_fields(self, create_facility):
        """Should flatten into plain column values."""
        fields = create_facility(name="Central Courts", rating=4.2, external_id="place-1").to_store_fields()

        assert fields == {
            "name": "Central Courts",
            "description": "",
            "sport_type": "basketball",
            "district": "central",
            "address": "1 Test Road, Central, Hong Kong",
            "latitude": 22.2830,
            "longitude": 114.1571,
            "image_url": None,
            "rating": 4.2,
            "external_id": "place-1",
            "search_source": "fallback",
        }


class TestEventCandidate:
    """Tests for EventCandidate."""

    def test_defaults(self):
        """Should default capacity, skill level and category."""
        event = EventCandidate(name="Run", event_date=date(2025, 4, 1), start_time="07:00", end_time="09:00")

        assert event.kind == CandidateKind.EVENT
        assert event.max_participants == 50
        assert event.skill_level == SkillLevel.ALL_LEVELS
        assert event.category == EventCategory.COMPETITION
        assert event.location == LocationInfo()

    def test_date_from_string(self, create_event_candidate):
        """Should parse ISO date strings."""
        event = create_event_candidate(event_date="2025-05-01")

        assert event.event_date == date(2025, 5, 1)

    @pytest.mark.parametrize("value", ["7:30", "24:00", "19:60", "7pm", ""])
    def test_invalid_time_rejected(self, create_event_candidate, value):
        """Should require 24-hour HH:MM times."""
        with pytest.raises(ValidationError, match="HH:MM"):
            create_event_candidate(start_time=value)

    def test_valid_time_trimmed(self, create_event_candidate):
        """Should accept and trim valid times."""
        event = create_event_candidate(start_time=" 23:59 ", end_time="00:00")

        assert (event.start_time, event.end_time) == ("23:59", "00:00")

    @pytest.mark.parametrize("value", [0, -3])
    def test_capacity_must_be_positive(self, create_event_candidate, value):
        """Should reject capacities below one."""
        with pytest.raises(ValidationError):
            create_event_candidate(max_participants=value)

    def test_capacity_may_be_unknown(self, create_event_candidate):
        """Should allow an unknown capacity."""
        assert create_event_candidate(max_participants=None).max_participants is None

    def test_assignment_validated(self, create_event_candidate):
        """Should validate fields assigned after construction."""
        event = create_event_candidate()

        with pytest.raises(ValidationError):
            event.end_time = "late"

    def test_to_store_fields(self, create_event_candidate):
        """Should flatten enums and keep the nested location."""
        fields = create_event_candidate(
            location={"name": "Coliseum", "address": "Hung Hom"},
            search_source="perplexity",
        ).to_store_fields()

        assert fields["event_date"] == date(2025, 4, 12)
        assert fields["sport_type"] == "basketball"
        assert fields["category"] == "competition"
        assert fields["skill_level"] == "all_levels"
        assert fields["location"]["name"] == "Coliseum"
        assert fields["search_source"] == "perplexity"

    def test_flat_location_folded(self, create_event_candidate):
        """Should move flat address and coordinates into location."""
        event = create_event_candidate(address="Central Pier", latitude=22.28, longitude=114.15)

        assert event.location.address == "Central Pier"
        assert event.location.name == "Test Tournament"
        assert (event.latitude, event.longitude) == (22.28, 114.15)

    def test_location_name_key(self, create_event_candidate):
        """Should prefer an explicit location_name for the venue."""
        event = create_event_candidate(location_name="Victoria Park", lat=22.2808, lng=114.1879)

        assert event.location.name == "Victoria Park"
        assert event.coordinates.latitude == 22.2808

    def test_nested_coordinates_kept(self, create_event_candidate):
        """Should not let flat coordinates overwrite confirmed nested ones."""
        event = create_event_candidate(
            location={"name": "Coliseum", "coordinates": {"latitude": 22.3028, "longitude": 114.1827}},
            latitude=22.28,
            longitude=114.15,
        )

        assert (event.latitude, event.longitude) == (22.3028, 114.1827)
        assert event.location.name == "Coliseum"


class TestNearbyPlace:
    """Tests for NearbyPlace."""

    def test_extends_facility(self):
        """Should carry distance and store membership on top of a facility."""
        place = NearbyPlace(name="Court", latitude=22.28, longitude=114.15, distance_m=120.5)

        assert isinstance(place, FacilityCandidate)
        assert place.distance_m == 120.5
        assert place.exists_in_database is False


class TestCandidateModels:
    """Tests for the kind-to-model lookup."""

    def test_lookup(self):
        """Should map each kind to its model."""
        assert CANDIDATE_MODELS[CandidateKind.FACILITY] is FacilityCandidate
        assert CANDIDATE_MODELS[CandidateKind.EVENT] is EventCandidate

    def test_base_is_abstract(self):
        """Should refuse to build the shared base directly."""
        with pytest.raises(TypeError):
            CandidateBase(kind="facility", name="Court")
