"""
Places Source Adapter.

Adapter for the Google Places web service: text search for facility
discovery and nearby search for the "what is around this point" lookup.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from sportshub.ingestion.normalization.field_normalizer import (
    filter_value,
    is_specific_filter,
    normalize_district,
)
from sportshub.ingestion.normalization.location_parser import DISTRICT_CENTRES, PLACEHOLDER_COORDINATES

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType

logger = logging.getLogger(__name__)

# Statuses worth retrying; everything else is final
RETRYABLE_STATUSES = {"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}
SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}


@dataclass
class PlacesAdapterConfig(AdapterConfig):
    """Configuration for the Places adapter."""

    text_search_url: str = "https://maps.googleapis.com/maps/api/place/textsearch/json"
    nearby_search_url: str = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    photo_url: str = "https://maps.googleapis.com/maps/api/place/photo"
    place_types: str = "stadium|gym|park|sports_complex"
    search_radius_m: int = 50000
    region: str = "hk"
    language: str = "en"
    backoff_seconds: float = 0.5

    def __post_init__(self):
        """Set source type to PLACES."""
        self.source_type = SourceType.PLACES


def build_text_query(sport_type: str | None = None, district: str | None = None) -> str:
    """Natural-language query sent to Places text search."""
    sport = (filter_value(sport_type) or "").replace("_", " ") or None
    area = (filter_value(district) or "").replace("_", " ") or None
    if sport and area:
        return f"{sport} facilities in {area}, Hong Kong"
    if sport:
        return f"{sport} facilities in Hong Kong"
    if area:
        return f"sports facilities in {area}, Hong Kong"
    return "sports facilities in Hong Kong"


class PlacesAdapter(BaseSourceAdapter):
    """
    Adapter for the Places web service.

    Supports:
    - Text search biased towards a district centre
    - Nearby search around a point
    - Retry with exponential backoff on transport errors and on the
      OVER_QUERY_LIMIT / UNKNOWN_ERROR statuses
    """

    def __init__(self, config: PlacesAdapterConfig):
        self._client: httpx.AsyncClient | None = None
        super().__init__(config)

    @property
    def places_config(self) -> PlacesAdapterConfig:
        """Get typed config."""
        return self.config  # type: ignore[return-value]

    def _validate_config(self) -> None:
        """Validate Places configuration."""
        if not self.places_config.text_search_url:
            raise ValueError("Places adapter requires text_search_url")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(headers={"Accept": "application/json"})
        return self._client

    async def fetch(self, sport_type: str | None = None, district: str | None = None, **kwargs) -> FetchResult:
        """
        Text search for sports facilities.

        Args:
            sport_type: Requested sport, or None / "all" for any
            district: Requested district, or None / "all" for the whole city

        Returns:
            FetchResult whose raw_data holds the Places result dicts
        """
        if not self.is_configured:
            return self._not_configured()

        latitude, longitude = PLACEHOLDER_COORDINATES.latitude, PLACEHOLDER_COORDINATES.longitude
        if is_specific_filter(district):
            latitude, longitude = DISTRICT_CENTRES[normalize_district(district)]

        params = {
            "query": build_text_query(sport_type, district),
            "location": f"{latitude},{longitude}",
            "radius": self.places_config.search_radius_m,
            "type": self.places_config.place_types,
            "region": self.places_config.region,
            "language": self.places_config.language,
        }
        return await self._search(self.places_config.text_search_url, params)

    async def fetch_nearby(
        self,
        latitude: float,
        longitude: float,
        sport_type: str | None = None,
        radius_m: int = 1000,
    ) -> FetchResult:
        """Nearby search around a point."""
        if not self.is_configured:
            return self._not_configured()

        params: dict[str, Any] = {
            "location": f"{latitude},{longitude}",
            "radius": radius_m,
            "language": self.places_config.language,
        }
        if is_specific_filter(sport_type):
            params["keyword"] = f"{filter_value(sport_type).replace('_', ' ')} court"
        else:
            params["keyword"] = "sports facility"
        return await self._search(self.places_config.nearby_search_url, params)

    async def _search(self, url: str, params: dict[str, Any]) -> FetchResult:
        fetch_started = datetime.now(UTC)
        results: list[dict[str, Any]] = []
        errors: list[str] = []
        metadata: dict[str, Any] = {"api_calls": 0, "query": params.get("query") or params.get("keyword")}

        try:
            client = self._get_client()
            response = await self._make_request(client, url, {**params, "key": self.config.api_key})
            metadata["api_calls"] += 1

            if response is None:
                errors.append("Places request failed")
            else:
                metadata["status"] = response.get("status")
                results = response.get("results") or []

        except Exception as e:
            logger.error(f"Places fetch failed: {e}")
            errors.append(str(e))

        return FetchResult(
            success=not errors,
            source_type=SourceType.PLACES,
            raw_data=results,
            total_fetched=len(results),
            errors=errors,
            metadata=metadata,
            fetch_started_at=fetch_started,
            fetch_ended_at=datetime.now(UTC),
        )

    async def _make_request(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, Any],
        retry_count: int = 0,
    ) -> dict | None:
        """
        GET with retry logic.

        Args:
            client: Async HTTP client
            url: Endpoint URL
            params: Query parameters (including the key)
            retry_count: Current retry attempt

        Returns:
            Response JSON for OK / ZERO_RESULTS, None on failure
        """
        try:
            # Rate limiting
            await asyncio.sleep(1.0 / self.config.rate_limit_per_second)

            response = await client.get(url, params=params, timeout=self.config.request_timeout)
            response.raise_for_status()
            payload = response.json()
            status = payload.get("status")

            if status in SUCCESS_STATUSES:
                return payload
            if status not in RETRYABLE_STATUSES:
                logger.error(f"Places returned {status}: {payload.get('error_message', '')}")
                return None
            reason = f"status {status}"

        except httpx.HTTPError as e:
            reason = str(e)

        if retry_count < self.config.max_retries:
            wait_time = self.places_config.backoff_seconds * 2 ** (retry_count + 1)
            logger.warning(f"Places request failed ({reason}), retrying in {wait_time}s")
            await asyncio.sleep(wait_time)
            return await self._make_request(client, url, params, retry_count + 1)

        logger.error(f"Places request failed after {retry_count} retries: {reason}")
        return None

    async def close(self) -> None:
        """Close async HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
