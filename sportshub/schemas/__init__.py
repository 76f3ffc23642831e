"""
Schemas for the ingestion core.

This package provides:
- Closed enumerations: SportType, District, EventCategory, SkillLevel, ApprovalStatus
- Candidate models: FacilityCandidate, EventCandidate, NearbyPlace
- Persisted entity models: FacilityEntity, EventEntity
"""

from .candidate import (
    CANDIDATE_MODELS,
    Candidate,
    CandidateBase,
    Coordinates,
    EventCandidate,
    FacilityCandidate,
    LocationInfo,
    NearbyPlace,
)
from .entity import ENTITY_MODELS, Entity, EntityBase, EventEntity, FacilityEntity
from .enums import (
    ApprovalStatus,
    CandidateKind,
    District,
    EventCategory,
    SearchSource,
    SkillLevel,
    SportType,
)

__all__ = [
    "ApprovalStatus",
    "CANDIDATE_MODELS",
    "Candidate",
    "CandidateBase",
    "CandidateKind",
    "Coordinates",
    "District",
    "ENTITY_MODELS",
    "Entity",
    "EntityBase",
    "EventCandidate",
    "EventCategory",
    "EventEntity",
    "FacilityCandidate",
    "FacilityEntity",
    "LocationInfo",
    "NearbyPlace",
    "SearchSource",
    "SkillLevel",
    "SportType",
]
