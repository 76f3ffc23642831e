"""
Places Hit Parser.

Converts structured Places API results into facility record dicts in the
same shape the text parser produces, so both feed the same normalization
step.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from sportshub.ingestion.normalization.field_normalizer import (
    is_specific_filter,
    normalize_district,
    normalize_sport_type,
)
from sportshub.schemas.enums import CandidateKind, District, SportType

logger = logging.getLogger(__name__)

# Checked in order; first place type present wins
PLACE_TYPE_SPORTS: list[tuple[str, SportType]] = [
    ("stadium", SportType.SOCCER),
    ("tennis_court", SportType.TENNIS),
    ("gym", SportType.FITNESS),
    ("swimming_pool", SportType.SWIMMING),
    # Most public parks in the city carry basketball courts
    ("park", SportType.BASKETBALL),
]

PHOTO_MAX_WIDTH = 400


def sport_type_from_place_types(types: list[str] | None, requested: str | None = None) -> str:
    """
    Pick a sport type for a Places hit.

    A specific requested sport wins over whatever the place types suggest.
    """
    if is_specific_filter(requested):
        return normalize_sport_type(requested).value
    types = types or []
    for place_type, sport in PLACE_TYPE_SPORTS:
        if place_type in types:
            return sport.value
    return SportType.OTHER.value


class PlacesHitParser:
    """
    Parse Places text-search or nearby-search results.

    Args:
        photo_url: Base URL of the Places photo endpoint
        api_key: Key appended to photo URLs; photos are omitted without one
        default_district: District used when the address names none
    """

    def __init__(
        self,
        photo_url: str = "https://maps.googleapis.com/maps/api/place/photo",
        api_key: str | None = None,
        default_district: District = District.CENTRAL,
    ):
        self.photo_url = photo_url
        self.api_key = api_key
        self.default_district = default_district

    def photo(self, hit: dict[str, Any]) -> str | None:
        """Photo URL for the first photo of a hit, if any."""
        photos = hit.get("photos") or []
        if not photos or not self.api_key:
            return None
        reference = photos[0].get("photo_reference")
        if not reference:
            return None
        query = urlencode({"maxwidth": PHOTO_MAX_WIDTH, "photoreference": reference, "key": self.api_key})
        return f"{self.photo_url}?{query}"

    def parse_hit(self, hit: dict[str, Any], requested_sport: str | None = None) -> dict[str, Any] | None:
        """Convert one hit; None when it has no usable geometry or name."""
        location = (hit.get("geometry") or {}).get("location") or {}
        latitude, longitude = location.get("lat"), location.get("lng")
        if latitude is None or longitude is None:
            logger.debug(f"Skipping place without geometry: {hit.get('name')!r}")
            return None
        if not (hit.get("name") or "").strip():
            logger.debug("Skipping place without a name")
            return None

        address = hit.get("vicinity") or hit.get("formatted_address") or ""
        return {
            "kind": CandidateKind.FACILITY.value,
            "name": hit["name"],
            "description": "",
            "sport_type": sport_type_from_place_types(hit.get("types"), requested_sport),
            "district": normalize_district(address, default=self.default_district).value,
            "location": {
                "name": hit["name"],
                "address": address,
                "coordinates": {"latitude": float(latitude), "longitude": float(longitude)},
                "is_confirmed": True,
            },
            "rating": hit.get("rating"),
            "image_url": self.photo(hit),
            "external_id": hit.get("place_id"),
        }

    def parse(self, hits: list[dict[str, Any]], requested_sport: str | None = None) -> list[dict[str, Any]]:
        """Convert every usable hit, preserving provider order."""
        records = []
        for hit in hits:
            record = self.parse_hit(hit, requested_sport)
            if record is not None:
                records.append(record)
        return records
