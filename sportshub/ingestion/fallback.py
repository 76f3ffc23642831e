"""
Offline fallback dataset.

A small, fixed, hand-authored set of facilities and events returned when a
provider is unconfigured or fails. Records have exactly the shape the
parsers produce, so the rest of the pipeline cannot tell the difference.
Event dates are relative to "today" so the data never goes stale.
"""

from __future__ import annotations

import copy
import logging
from datetime import date, timedelta
from typing import Any

from sportshub.ingestion.normalization.datetime_parser import add_months
from sportshub.ingestion.normalization.field_normalizer import (
    is_specific_filter,
    normalize_district,
    normalize_event_category,
    normalize_sport_type,
)
from sportshub.ingestion.normalization.location_parser import haversine_m
from sportshub.schemas.enums import CandidateKind

logger = logging.getLogger(__name__)


def _facility(
    name: str,
    sport_type: str,
    district: str,
    address: str,
    latitude: float,
    longitude: float,
    description: str,
    rating: float | None = None,
) -> dict[str, Any]:
    return {
        "kind": CandidateKind.FACILITY.value,
        "name": name,
        "sport_type": sport_type,
        "district": district,
        "description": description,
        "location": {
            "name": name,
            "address": address,
            "coordinates": {"latitude": latitude, "longitude": longitude},
            "is_confirmed": True,
        },
        "rating": rating,
        "image_url": None,
    }


FACILITY_SEEDS: list[dict[str, Any]] = [
    _facility(
        "Central Sports Centre",
        "basketball",
        "central",
        "2 Harcourt Road, Central, Hong Kong",
        22.2830,
        114.1571,
        "A modern sports facility with indoor basketball courts",
    ),
    _facility(
        "Central Harbourfront Tennis Courts",
        "tennis",
        "central",
        "9 Lung Wo Road, Central, Hong Kong",
        22.2820,
        114.1590,
        "Public hard courts on the harbourfront, bookable by the hour",
        4.1,
    ),
    _facility(
        "Victoria Park Sports Centre",
        "basketball",
        "wanchai",
        "1 Hing Fat Street, Causeway Bay, Hong Kong",
        22.2846,
        114.1881,
        "Outdoor basketball courts beside Victoria Park",
        4.5,
    ),
    _facility(
        "Victoria Tennis Club",
        "tennis",
        "wanchai",
        "78 Victoria Road, Wan Chai, Hong Kong",
        22.2771,
        114.1702,
        "Premium tennis courts with coaching available",
    ),
    _facility(
        "Kowloon Park Swimming Pool",
        "swimming",
        "yau_tsim_mong",
        "22 Austin Road, Tsim Sha Tsui, Hong Kong",
        22.3004,
        114.1707,
        "Indoor and outdoor pools in Kowloon Park",
        4.2,
    ),
    _facility(
        "Kowloon Athletics Complex",
        "running",
        "kowloon_city",
        "45 Kowloon Street, Kowloon City, Hong Kong",
        22.3285,
        114.1820,
        "Running tracks and fitness facilities",
    ),
    _facility(
        "Island East Swimming Centre",
        "swimming",
        "eastern",
        "90 Island Road, Eastern District, Hong Kong",
        22.2864,
        114.2218,
        "Olympic-sized swimming pools and facilities",
    ),
    _facility(
        "Southside Soccer Fields",
        "soccer",
        "southern",
        "123 South Road, Aberdeen, Hong Kong",
        22.2461,
        114.1550,
        "Multiple soccer pitches with night lighting",
    ),
    _facility(
        "Tuen Mun Sports Ground",
        "soccer",
        "tuen_mun",
        "Tuen Mun, New Territories, Hong Kong",
        22.3918,
        113.9725,
        "Athletics track and natural turf pitch",
        4.0,
    ),
]


EVENT_SEEDS: list[dict[str, Any]] = [
    {
        "name": "Hong Kong Basketball Tournament",
        "offset": "next_month",
        "start_time": "09:00",
        "end_time": "18:00",
        "sport_type": "basketball",
        "category": "competition",
        "description": "Annual basketball tournament for local teams",
        "skill_level": "intermediate",
        "max_participants": 120,
        "location": {
            "name": "Hong Kong Coliseum",
            "address": "9 Cheong Wan Road, Hung Hom, Hong Kong",
            "coordinates": {"latitude": 22.3028, "longitude": 114.1827},
            "is_confirmed": True,
        },
        "website": "https://www.example.com/hk-basketball-tournament",
        "image_url": "https://example.com/images/basketball-event.jpg",
    },
    {
        "name": "Community Tennis Day",
        "offset": "next_week",
        "start_time": "10:00",
        "end_time": "16:00",
        "sport_type": "tennis",
        "category": "lessons",
        "description": "Open tennis day for all skill levels",
        "skill_level": "all_levels",
        "max_participants": 50,
        "location": {
            "name": "Victoria Park Tennis Courts",
            "address": "Victoria Park, Causeway Bay, Hong Kong",
            "coordinates": {"latitude": 22.2808, "longitude": 114.1879},
            "is_confirmed": True,
        },
        "website": "https://www.example.com/tennis-day",
        "image_url": "https://example.com/images/tennis-event.jpg",
    },
    {
        "name": "Hong Kong Marathon",
        "offset": "next_month",
        "start_time": "07:00",
        "end_time": "14:00",
        "sport_type": "running",
        "category": "competition",
        "description": "Annual city marathon through the streets of Hong Kong",
        "skill_level": "all_levels",
        "max_participants": 10000,
        "location": {
            "name": "Victoria Park",
            "address": "Causeway Bay, Hong Kong",
            "coordinates": {"latitude": 22.2810, "longitude": 114.1882},
            "is_confirmed": True,
        },
        "website": "https://www.example.com/hk-marathon",
        "image_url": "https://example.com/images/marathon-event.jpg",
    },
    {
        "name": "Harbourfront Swim Social",
        "offset": "next_week",
        "start_time": "08:00",
        "end_time": "10:00",
        "sport_type": "swimming",
        "category": "social",
        "description": "Relaxed group swim followed by breakfast",
        "skill_level": "beginner",
        "max_participants": 30,
        "location": {
            "name": "Kowloon Park Swimming Pool",
            "address": "22 Austin Road, Tsim Sha Tsui, Hong Kong",
            "coordinates": {"latitude": 22.3004, "longitude": 114.1707},
            "is_confirmed": True,
        },
        "website": None,
        "image_url": None,
    },
]


def _resolve_offset(offset: str, today: date) -> date:
    if offset == "next_week":
        return today + timedelta(days=7)
    return add_months(today, 1)


def _matches(value: str, wanted: object, normalize) -> bool:
    """A filter that is absent or ``all`` matches everything."""
    if not is_specific_filter(wanted):
        return True
    return value == normalize(wanted).value


class FallbackDataset:
    """Filterable offline records, returned as fresh copies on every call."""

    def __init__(
        self,
        facilities: list[dict[str, Any]] | None = None,
        events: list[dict[str, Any]] | None = None,
    ):
        self._facilities = facilities if facilities is not None else FACILITY_SEEDS
        self._events = events if events is not None else EVENT_SEEDS

    def facilities(self, sport_type: object = None, district: object = None) -> list[dict[str, Any]]:
        """Facilities matching both filters."""
        records = [
            copy.deepcopy(record)
            for record in self._facilities
            if _matches(record["sport_type"], sport_type, normalize_sport_type)
            and _matches(record["district"], district, normalize_district)
        ]
        logger.info(f"Fallback facilities: {len(records)} match sport={sport_type} district={district}")
        return records

    def events(
        self,
        sport_type: object = None,
        category: object = None,
        start_date: date | None = None,
        end_date: date | None = None,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        """Events matching the sport/category filters and the inclusive date range."""
        today = today or date.today()
        records = []
        for seed in self._events:
            record = copy.deepcopy(seed)
            offset = record.pop("offset", None)
            record.setdefault("kind", CandidateKind.EVENT.value)
            if offset is not None:
                record["event_date"] = _resolve_offset(offset, today)

            if not _matches(record["sport_type"], sport_type, normalize_sport_type):
                continue
            if not _matches(record["category"], category, normalize_event_category):
                continue
            if start_date and record["event_date"] < start_date:
                continue
            if end_date and record["event_date"] > end_date:
                continue
            records.append(record)

        logger.info(f"Fallback events: {len(records)} match sport={sport_type} category={category}")
        return records

    def nearby(
        self,
        latitude: float,
        longitude: float,
        sport_type: object = None,
        radius_m: float | None = None,
    ) -> list[dict[str, Any]]:
        """Facilities ordered by distance from a point, each tagged with ``distance_m``."""
        records = []
        for record in self.facilities(sport_type=sport_type):
            point = record["location"]["coordinates"]
            distance = haversine_m(latitude, longitude, point["latitude"], point["longitude"])
            if radius_m is not None and distance > radius_m:
                continue
            record["distance_m"] = round(distance, 1)
            records.append(record)
        return sorted(records, key=lambda r: r["distance_m"])
