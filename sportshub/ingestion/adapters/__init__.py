"""
Provider Adapters for Ingestion.

Adapters provide a unified interface for calling the external providers:
- Places (structured location hits)
- Language-model search (free-text answers)

Usage:
    from sportshub.ingestion.adapters import PlacesAdapter, PlacesAdapterConfig

    adapter = PlacesAdapter(PlacesAdapterConfig(source_id="google_places", source_type=SourceType.PLACES))
    result = await adapter.fetch(sport_type="tennis", district="central")
"""

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType
from .language_model_adapter import LanguageModelAdapterConfig, LanguageModelSearchAdapter
from .places_adapter import PlacesAdapter, PlacesAdapterConfig

__all__ = [
    "AdapterConfig",
    "BaseSourceAdapter",
    "FetchResult",
    "LanguageModelAdapterConfig",
    "LanguageModelSearchAdapter",
    "PlacesAdapter",
    "PlacesAdapterConfig",
    "SourceType",
]
