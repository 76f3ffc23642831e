"""
Location Parser.

Coordinate extraction from provider text, the plausibility bounding box used
to discard hallucinated facility locations, and the distance helper used to
order nearby places.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from sportshub.schemas.candidate import Coordinates, LocationInfo
from sportshub.schemas.enums import District

logger = logging.getLogger(__name__)

_NUMBER = r"(-?\d{1,3}(?:\.\d+)?)"

LABELED_COORDINATES = re.compile(
    rf"lat(?:itude)?\.?\s*[:=]?\s*{_NUMBER}\s*°?\s*([NS])?"
    rf".*?(?:lng|lon|long|longitude)\.?\s*[:=]?\s*{_NUMBER}\s*°?\s*([EW])?",
    re.IGNORECASE,
)
COORDINATE_PAIR = re.compile(
    r"(-?\d{1,3}\.\d+)\s*°?\s*([NS])?\s*,\s*(-?\d{1,3}\.\d+)\s*°?\s*([EW])?",
    re.IGNORECASE,
)

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive latitude/longitude rectangle."""

    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float | None, longitude: float | None) -> bool:
        """False when either coordinate is missing or outside the box."""
        if latitude is None or longitude is None:
            return False
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )

    @classmethod
    def from_config(cls, config: dict | None) -> BoundingBox:
        """Build from the ``normalization.bounding_box`` block of ingestion.yaml."""
        if not config:
            return HONG_KONG_BOUNDS
        return cls(
            min_latitude=float(config.get("min_latitude", HONG_KONG_BOUNDS.min_latitude)),
            max_latitude=float(config.get("max_latitude", HONG_KONG_BOUNDS.max_latitude)),
            min_longitude=float(config.get("min_longitude", HONG_KONG_BOUNDS.min_longitude)),
            max_longitude=float(config.get("max_longitude", HONG_KONG_BOUNDS.max_longitude)),
        )


HONG_KONG_BOUNDS = BoundingBox(22.0, 23.0, 113.0, 115.0)

# City-centre point used while a candidate's real location is unknown
PLACEHOLDER_NAME = "Hong Kong"
PLACEHOLDER_COORDINATES = Coordinates(latitude=22.3193, longitude=114.1694)

# Rough centre of each district, used to bias location queries
DISTRICT_CENTRES: dict[District, tuple[float, float]] = {
    District.CENTRAL: (22.2820, 114.1588),
    District.WESTERN: (22.2860, 114.1430),
    District.EASTERN: (22.2840, 114.2240),
    District.SOUTHERN: (22.2470, 114.1580),
    District.WANCHAI: (22.2780, 114.1750),
    District.KOWLOON_CITY: (22.3280, 114.1910),
    District.KWUN_TONG: (22.3130, 114.2260),
    District.SHAM_SHUI_PO: (22.3300, 114.1620),
    District.WONG_TAI_SIN: (22.3420, 114.1950),
    District.YAU_TSIM_MONG: (22.3050, 114.1710),
    District.ISLANDS: (22.2610, 113.9460),
    District.KWAI_TSING: (22.3540, 114.1300),
    District.NORTH: (22.4940, 114.1380),
    District.SAI_KUNG: (22.3810, 114.2700),
    District.SHA_TIN: (22.3870, 114.1950),
    District.TAI_PO: (22.4500, 114.1690),
    District.TSUEN_WAN: (22.3710, 114.1140),
    District.TUEN_MUN: (22.3910, 113.9770),
    District.YUEN_LONG: (22.4450, 114.0220),
}


def placeholder_location(
    name: str = PLACEHOLDER_NAME,
    coordinates: Coordinates = PLACEHOLDER_COORDINATES,
) -> LocationInfo:
    """A fresh unconfirmed city-centre location."""
    return LocationInfo(
        name=name,
        address=name,
        coordinates=coordinates.model_copy(),
        is_confirmed=False,
    )


def _signed(value: str, hemisphere: str | None, negative: str) -> float:
    number = float(value)
    if hemisphere and hemisphere.upper() == negative:
        number = -abs(number)
    return number


def parse_coordinates(text: str | None) -> Coordinates | None:
    """
    Extract a WGS84 point from free text.

    Understands ``22.28, 114.15``, ``22.28° N, 114.15° E`` and labelled forms
    such as ``Latitude: 22.28, Longitude: 114.15``. Returns None when absent
    or out of range so callers can tell "unknown" from the equator.
    """
    if not text:
        return None

    match = LABELED_COORDINATES.search(text) or COORDINATE_PAIR.search(text)
    if not match:
        return None

    lat_text, lat_hemi, lng_text, lng_hemi = match.groups()
    latitude = _signed(lat_text, lat_hemi, "S")
    longitude = _signed(lng_text, lng_hemi, "W")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        logger.debug(f"Skipping out-of-range coordinates {text!r}")
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def parse_float(text: object) -> float | None:
    """First decimal number in ``text``, or None."""
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)
    match = re.search(r"-?\d+(?:\.\d+)?", str(text))
    return float(match.group(0)) if match else None


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))
