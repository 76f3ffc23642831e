"""
Factory for config-driven wiring of the ingestion core.

Reads ``ingestion.yaml`` and Settings, builds the provider adapters and
search pipelines, and returns a ready IngestionOrchestrator.

Usage:
    from sportshub.ingestion.factory import build_orchestrator

    orchestrator = build_orchestrator()
    facilities = await orchestrator.search_facilities("tennis", "central")
"""

from __future__ import annotations

import logging
from typing import Any

from sportshub.configs.config import Config
from sportshub.configs.settings import Settings, get_settings
from sportshub.ingestion.adapters import (
    LanguageModelAdapterConfig,
    LanguageModelSearchAdapter,
    PlacesAdapter,
    PlacesAdapterConfig,
    SourceType,
)
from sportshub.ingestion.approval import ApprovalService
from sportshub.ingestion.deduplication import (
    DEFAULT_COORDINATE_TOLERANCE,
    EventDuplicateChecker,
    FacilityDuplicateChecker,
)
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.importers import FacilityFileImporter
from sportshub.ingestion.orchestrator import IngestionOrchestrator
from sportshub.ingestion.parsers import PlacesHitParser
from sportshub.ingestion.persist import CanonicalStore, InMemoryStore, PostgresStore
from sportshub.ingestion.pipelines import EventSearchPipeline, FacilitySearchPipeline, PipelineConfig
from sportshub.schemas.enums import SearchSource

logger = logging.getLogger(__name__)

PERPLEXITY = "perplexity"
GOOGLE_PLACES = "google_places"

PROVIDER_LABELS = {
    PERPLEXITY: "Perplexity API key",
    GOOGLE_PLACES: "Google Maps API key",
}

# Keys of a provider block that map straight onto adapter config fields
COMMON_ADAPTER_KEYS = ("request_timeout", "max_retries", "rate_limit_per_second")
PLACES_ADAPTER_KEYS = (
    "text_search_url",
    "nearby_search_url",
    "photo_url",
    "place_types",
    "search_radius_m",
    "region",
    "language",
)
LANGUAGE_MODEL_ADAPTER_KEYS = ("base_url", "model", "max_tokens", "temperature", "frequency_penalty")


def _adapter_kwargs(provider_config: dict, keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: provider_config[key] for key in (*COMMON_ADAPTER_KEYS, *keys) if provider_config.get(key) is not None}


def resolve_api_key(provider_name: str, provider_config: dict, settings: Settings) -> str | None:
    """
    Credential for a provider: the config block's ``api_key`` first, then Settings.

    Logs one WARNING when the provider is enabled but has no credential.
    """
    if not provider_config.get("enabled", True):
        logger.info(f"{provider_name} is disabled in configuration. Using fallback data instead.")
        return None

    api_key = (provider_config.get("api_key") or "").strip()
    if not api_key:
        secret = settings.PERPLEXITY_API_KEY if provider_name == PERPLEXITY else settings.GOOGLE_MAPS_API_KEY
        api_key = Settings.secret_value(secret) or ""

    if not api_key:
        logger.warning(f"{PROVIDER_LABELS[provider_name]} not configured. Using fallback data instead.")
        return None
    return api_key


def build_places_adapter(provider_config: dict, api_key: str) -> PlacesAdapter:
    """Places adapter from the ``providers.google_places`` block."""
    return PlacesAdapter(
        PlacesAdapterConfig(
            source_id=GOOGLE_PLACES,
            source_type=SourceType.PLACES,
            api_key=api_key,
            **_adapter_kwargs(provider_config, PLACES_ADAPTER_KEYS),
        )
    )


def build_language_model_adapter(provider_config: dict, api_key: str) -> LanguageModelSearchAdapter:
    """Chat-completions adapter from the ``providers.perplexity`` block."""
    return LanguageModelSearchAdapter(
        LanguageModelAdapterConfig(
            source_id=PERPLEXITY,
            source_type=SourceType.LANGUAGE_MODEL,
            api_key=api_key,
            system_prompt=provider_config.get("event_system_prompt", ""),
            **_adapter_kwargs(provider_config, LANGUAGE_MODEL_ADAPTER_KEYS),
        )
    )


def build_orchestrator(
    settings: Settings | None = None,
    store: CanonicalStore | None = None,
    config: dict | None = None,
) -> IngestionOrchestrator:
    """
    Build an orchestrator from configuration.

    Facilities are searched through Places when it has a key, through the
    language-model provider when only that has one, and served from the
    fallback dataset otherwise. Events are searched through the
    language-model provider or served from the fallback dataset.

    Args:
        settings: Application settings; defaults to the cached instance
        store: Canonical store; defaults to Postgres when DATABASE_URL is
            set and to an in-memory store otherwise
        config: Parsed ingestion.yaml; loaded from settings when omitted

    Returns:
        Configured IngestionOrchestrator
    """
    settings = settings or get_settings()
    config = config if config is not None else Config.load_ingestion_config(settings=settings)
    normalization = config.get("normalization") or {}

    if store is None:
        store = PostgresStore.connect(settings) if settings.DATABASE_URL else InMemoryStore()

    places_config = Config.get_provider_config(config, GOOGLE_PLACES)
    llm_config = Config.get_provider_config(config, PERPLEXITY)
    places_key = resolve_api_key(GOOGLE_PLACES, places_config, settings)
    llm_key = resolve_api_key(PERPLEXITY, llm_config, settings)

    places_adapter = build_places_adapter(places_config, places_key) if places_key else None
    llm_adapter = build_language_model_adapter(llm_config, llm_key) if llm_key else None
    fallback = FallbackDataset()

    # Facilities
    if places_adapter is not None:
        facility_adapter, facility_source = places_adapter, SearchSource.GOOGLE_PLACES
    elif llm_adapter is not None:
        facility_adapter, facility_source = llm_adapter, SearchSource.PERPLEXITY
    else:
        facility_adapter, facility_source = None, SearchSource.FALLBACK

    facility_config = PipelineConfig.from_normalization(
        "facilities",
        normalization,
        search_source=facility_source,
        system_prompt=llm_config.get("facility_system_prompt"),
    )
    places_parser = PlacesHitParser(
        photo_url=places_config.get("photo_url", PlacesAdapterConfig.photo_url),
        api_key=places_key,
        default_district=facility_config.default_district,
    )
    facility_pipeline = FacilitySearchPipeline(facility_config, facility_adapter, fallback, places_parser)

    # Events
    event_config = PipelineConfig.from_normalization(
        "events",
        normalization,
        search_source=SearchSource.PERPLEXITY if llm_adapter else SearchSource.FALLBACK,
        system_prompt=llm_config.get("event_system_prompt"),
        query_suffix=llm_config.get("event_query_suffix", ""),
    )
    event_pipeline = EventSearchPipeline(event_config, llm_adapter, fallback)

    tolerance = float(
        (config.get("deduplication") or {}).get("coordinate_tolerance", DEFAULT_COORDINATE_TOLERANCE)
    )
    orchestrator = IngestionOrchestrator(
        store=store,
        facility_pipeline=facility_pipeline,
        event_pipeline=event_pipeline,
        facility_checker=FacilityDuplicateChecker(store, tolerance_degrees=tolerance),
        event_checker=EventDuplicateChecker(store),
        places_adapter=places_adapter,
    )
    logger.info(
        f"Built orchestrator: facilities via {facility_source.value}, "
        f"events via {event_config.search_source.value}, store {type(store).__name__}"
    )
    return orchestrator


def build_approval_service(store: CanonicalStore) -> ApprovalService:
    """Approval service over the same store the orchestrator commits to."""
    return ApprovalService(store)


def build_importer(orchestrator: IngestionOrchestrator) -> FacilityFileImporter:
    """File importer committing through ``orchestrator``."""
    return FacilityFileImporter(orchestrator)
