"""Field normalization for provider output."""

from sportshub.ingestion.normalization.datetime_parser import (
    DEFAULT_TIME_RANGE,
    TimeRange,
    default_event_date,
    parse_date,
    parse_single_time,
    parse_time_range,
)
from sportshub.ingestion.normalization.field_normalizer import (
    filter_value,
    is_specific_filter,
    normalize_district,
    normalize_event_category,
    normalize_skill_level,
    normalize_sport_type,
    parse_int,
)
from sportshub.ingestion.normalization.location_parser import (
    HONG_KONG_BOUNDS,
    BoundingBox,
    haversine_m,
    parse_coordinates,
    placeholder_location,
)

__all__ = [
    "DEFAULT_TIME_RANGE",
    "HONG_KONG_BOUNDS",
    "BoundingBox",
    "TimeRange",
    "default_event_date",
    "filter_value",
    "haversine_m",
    "is_specific_filter",
    "normalize_district",
    "normalize_event_category",
    "normalize_skill_level",
    "normalize_sport_type",
    "parse_coordinates",
    "parse_date",
    "parse_int",
    "parse_single_time",
    "parse_time_range",
    "placeholder_location",
]
