"""
Search pipelines.

Each pipeline implements the BaseSearchPipeline interface to handle:
- Building the provider query from caller filters
- Parsing the provider response into raw records
- Normalizing records onto the closed enumerations
- Filtering invalid candidates, with fallback data when the provider fails
"""

from .base_pipeline import BaseSearchPipeline, PipelineConfig, SearchResult
from .event_pipeline import EventSearchPipeline, build_event_query
from .facility_pipeline import FacilitySearchPipeline, build_facility_query

__all__ = [
    "BaseSearchPipeline",
    "EventSearchPipeline",
    "FacilitySearchPipeline",
    "PipelineConfig",
    "SearchResult",
    "build_event_query",
    "build_facility_query",
]
