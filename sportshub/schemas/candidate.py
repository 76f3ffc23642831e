"""
Candidate records produced by ingestion.

A candidate is an unvalidated, unpersisted facility or event extracted from a
provider response (or the fallback dataset). Candidates are built from the
plain dicts the parsers emit and validated here before they are returned to
callers or committed to the store.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sportshub.schemas.enums import (
    CandidateKind,
    District,
    EventCategory,
    SearchSource,
    SkillLevel,
    SportType,
)

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _pop_first(data: dict[str, Any], *keys: str) -> Any:
    """Pop every key in ``keys``; return the first value that is not None."""
    values = [data.pop(key, None) for key in keys]
    return next((v for v in values if v is not None), None)


# ============================================================================
# LOCATION
# ============================================================================


class Coordinates(BaseModel):
    """WGS84 point."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationInfo(BaseModel):
    """
    Where a facility or event takes place.

    ``is_confirmed`` is False while the location still holds the city-centre
    placeholder seeded by the parser; it flips to True once a provider
    supplies real coordinates.
    """

    name: str = ""
    address: str = ""
    coordinates: Coordinates | None = None
    is_confirmed: bool = True


# ============================================================================
# CANDIDATES
# ============================================================================


class CandidateBase(BaseModel):
    """Fields shared by facility and event candidates. Abstract: use a subclass."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    kind: CandidateKind
    name: str
    description: str = ""
    sport_type: SportType = SportType.OTHER
    location: LocationInfo = Field(default_factory=LocationInfo)
    image_url: str | None = None
    search_source: SearchSource = SearchSource.FALLBACK

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Names are trimmed and must not be empty."""
        v = (v or "").strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, v: Any) -> str:
        """Collapse None and surrounding whitespace."""
        return " ".join(str(v).split()) if v else ""

    @model_validator(mode="before")
    @classmethod
    def fold_flat_location(cls, data: Any) -> Any:
        """
        Accept the flat ``address``/``latitude``/``longitude`` shape.

        Callers committing a candidate usually hand back the flat record they
        were shown; fold it into ``location`` so both shapes validate.
        ``lat``/``lng`` are read as ``latitude``/``longitude`` and ``type``
        as ``sport_type``.
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        lat = _pop_first(data, "latitude", "lat")
        lng = _pop_first(data, "longitude", "lng")
        address = data.pop("address", None)
        location_name = data.pop("location_name", None)
        if "type" in data:
            data.setdefault("sport_type", data.pop("type"))

        if lat is None and lng is None and address is None and location_name is None:
            return data

        location = data.get("location")
        if isinstance(location, LocationInfo):
            location = location.model_dump()
        location = dict(location or {})
        if address is not None and not location.get("address"):
            location["address"] = address
        if not location.get("name"):
            location["name"] = location_name or data.get("name", "")
        has_real_coordinates = location.get("coordinates") and location.get("is_confirmed", True)
        if lat is not None and lng is not None and not has_real_coordinates:
            location["coordinates"] = {"latitude": lat, "longitude": lng}
            location["is_confirmed"] = True
        data["location"] = location
        return data

    @property
    def coordinates(self) -> Coordinates | None:
        """Shortcut to ``location.coordinates``."""
        return self.location.coordinates

    @property
    def latitude(self) -> float | None:
        return self.location.coordinates.latitude if self.location.coordinates else None

    @property
    def longitude(self) -> float | None:
        return self.location.coordinates.longitude if self.location.coordinates else None

    @abstractmethod
    def to_store_fields(self) -> dict[str, Any]:
        """Flatten into the column-shaped dict the canonical store inserts."""


class FacilityCandidate(CandidateBase):
    """A sports facility discovered by a provider."""

    kind: Literal[CandidateKind.FACILITY] = CandidateKind.FACILITY
    district: District = District.CENTRAL
    rating: float | None = None
    external_id: str | None = None

    @property
    def address(self) -> str:
        return self.location.address

    def to_store_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "sport_type": self.sport_type.value,
            "district": self.district.value,
            "address": self.location.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "image_url": self.image_url,
            "rating": self.rating,
            "external_id": self.external_id,
            "search_source": self.search_source.value,
        }


class EventCandidate(CandidateBase):
    """A sports event discovered by a provider."""

    kind: Literal[CandidateKind.EVENT] = CandidateKind.EVENT
    event_date: date
    start_time: str
    end_time: str
    category: EventCategory = EventCategory.COMPETITION
    skill_level: SkillLevel = SkillLevel.ALL_LEVELS
    max_participants: int | None = Field(default=50, ge=1)
    website: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        """Times are 24-hour ``HH:MM``."""
        v = (v or "").strip()
        if not HHMM_PATTERN.match(v):
            raise ValueError(f"time must be HH:MM (24-hour), got {v!r}")
        return v

    def to_store_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "event_date": self.event_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "sport_type": self.sport_type.value,
            "category": self.category.value,
            "skill_level": self.skill_level.value,
            "max_participants": self.max_participants,
            "website": self.website,
            "image_url": self.image_url,
            "location": self.location.model_dump(),
            "search_source": self.search_source.value,
        }


class NearbyPlace(FacilityCandidate):
    """A Places hit near a point, tagged with whether the store already has it."""

    distance_m: float | None = None
    exists_in_database: bool = False


Candidate = FacilityCandidate | EventCandidate

CANDIDATE_MODELS: dict[CandidateKind, type[CandidateBase]] = {
    CandidateKind.FACILITY: FacilityCandidate,
    CandidateKind.EVENT: EventCandidate,
}
