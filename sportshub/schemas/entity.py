"""Persisted facility and event rows as returned by the canonical store."""

from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from sportshub.schemas.candidate import LocationInfo
from sportshub.schemas.enums import (
    ApprovalStatus,
    CandidateKind,
    District,
    EventCategory,
    SkillLevel,
    SportType,
)


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class EntityBase(BaseModel):
    """Columns every ingested row carries."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    description: str | None = ""
    sport_type: SportType | None = SportType.OTHER
    image_url: str | None = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    search_source: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def is_public(self) -> bool:
        """Only approved rows are visible to ordinary users."""
        return self.approval_status == ApprovalStatus.APPROVED


class FacilityEntity(EntityBase):
    """A row of the facilities table."""

    kind: CandidateKind = CandidateKind.FACILITY
    district: District = District.CENTRAL
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    rating: float | None = None
    external_id: str | None = None


class EventEntity(EntityBase):
    """A row of the events table."""

    kind: CandidateKind = CandidateKind.EVENT
    event_date: date
    start_time: str
    end_time: str
    category: EventCategory | None = EventCategory.COMPETITION
    skill_level: SkillLevel | None = SkillLevel.ALL_LEVELS
    max_participants: int | None = None
    website: str | None = None
    location: LocationInfo | None = None


Entity = FacilityEntity | EventEntity

ENTITY_MODELS: dict[CandidateKind, type[EntityBase]] = {
    CandidateKind.FACILITY: FacilityEntity,
    CandidateKind.EVENT: EventEntity,
}
