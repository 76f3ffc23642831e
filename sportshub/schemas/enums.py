"""
Closed enumerations shared by candidates and persisted entities.

Values mirror the platform's relational schema so they can be written to the
store unchanged.
"""

from enum import Enum


class CandidateKind(str, Enum):
    """Kind of record flowing through ingestion."""

    FACILITY = "facility"
    EVENT = "event"


class SportType(str, Enum):
    """Facility types / event sport types."""

    BASKETBALL = "basketball"
    SOCCER = "soccer"
    TENNIS = "tennis"
    BADMINTON = "badminton"
    SWIMMING = "swimming"
    RUNNING = "running"
    FITNESS = "fitness"
    SPORTS_GROUND = "sports_ground"
    SPORTS_CENTRE = "sports_centre"
    OTHER = "other"


class District(str, Enum):
    """Hong Kong districts."""

    CENTRAL = "central"
    WESTERN = "western"
    EASTERN = "eastern"
    SOUTHERN = "southern"
    WANCHAI = "wanchai"
    KOWLOON_CITY = "kowloon_city"
    KWUN_TONG = "kwun_tong"
    SHAM_SHUI_PO = "sham_shui_po"
    WONG_TAI_SIN = "wong_tai_sin"
    YAU_TSIM_MONG = "yau_tsim_mong"
    ISLANDS = "islands"
    KWAI_TSING = "kwai_tsing"
    NORTH = "north"
    SAI_KUNG = "sai_kung"
    SHA_TIN = "sha_tin"
    TAI_PO = "tai_po"
    TSUEN_WAN = "tsuen_wan"
    TUEN_MUN = "tuen_mun"
    YUEN_LONG = "yuen_long"


class EventCategory(str, Enum):
    """Event categories."""

    COMPETITION = "competition"
    LESSONS = "lessons"
    WATCHING = "watching"
    SOCIAL = "social"


class SkillLevel(str, Enum):
    """Required skill level for an event."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    ALL_LEVELS = "all_levels"


class ApprovalStatus(str, Enum):
    """Moderation status of an ingested entity."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SearchSource(str, Enum):
    """Provenance tag for ingested records. Observability only."""

    PERPLEXITY = "perplexity"
    GOOGLE_PLACES = "google_places"
    FALLBACK = "fallback"
    FILE_IMPORT = "file_import"
