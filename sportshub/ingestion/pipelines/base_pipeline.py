"""
Base Search Pipeline.

This module defines the abstract base class for the facility and event
search pipelines. A pipeline turns one caller search into a list of
validated candidates, using a provider adapter when one is configured and
the offline fallback dataset otherwise.

Architecture:
    SourceAdapter (Places / language model) → BaseSearchPipeline → Candidate

Workflow:
    START -> PROVIDER_CONFIGURED?
      no  -> USE_FALLBACK_DATA -> FILTERED -> RETURNED
      yes -> CALL_PROVIDER
               success -> PARSE -> NORMALIZE -> FILTER_INVALID -> RETURNED
               failure -> LOG -> USE_FALLBACK_DATA -> FILTERED -> RETURNED

Pipelines never write to the store; committing is the orchestrator's job.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from sportshub.ingestion.adapters import BaseSourceAdapter, FetchResult, SourceType
from sportshub.ingestion.errors import InvalidCandidate, ProviderUnavailable
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.normalization.datetime_parser import DEFAULT_TIME_RANGE, TimeRange
from sportshub.ingestion.normalization.location_parser import (
    HONG_KONG_BOUNDS,
    BoundingBox,
    parse_float,
    placeholder_location,
)
from sportshub.schemas.candidate import CandidateBase, Coordinates, LocationInfo
from sportshub.schemas.enums import CandidateKind, District, SearchSource


@dataclass
class PipelineConfig:
    """
    Configuration for a search pipeline instance.

    This is pipeline-level config (normalization defaults and filters),
    separate from adapter-level config (endpoints, retries, credentials).
    """

    source_name: str
    search_source: SearchSource = SearchSource.FALLBACK
    bounding_box: BoundingBox = HONG_KONG_BOUNDS
    default_district: District = District.CENTRAL
    default_time_range: TimeRange = DEFAULT_TIME_RANGE
    default_max_participants: int = 50
    placeholder: LocationInfo = field(default_factory=placeholder_location)
    system_prompt: str | None = None
    query_suffix: str = ""
    custom_config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_normalization(
        cls,
        source_name: str,
        normalization: dict | None = None,
        **overrides,
    ) -> PipelineConfig:
        """Build from the ``normalization`` block of ingestion.yaml."""
        normalization = normalization or {}
        config = cls(source_name=source_name, **overrides)

        if normalization.get("bounding_box"):
            config.bounding_box = BoundingBox.from_config(normalization["bounding_box"])
        if normalization.get("default_district"):
            config.default_district = District(normalization["default_district"])
        if normalization.get("default_start_time") or normalization.get("default_end_time"):
            config.default_time_range = TimeRange(
                normalization.get("default_start_time", DEFAULT_TIME_RANGE.start),
                normalization.get("default_end_time", DEFAULT_TIME_RANGE.end),
            )
        if normalization.get("default_max_participants"):
            config.default_max_participants = int(normalization["default_max_participants"])

        placeholder = normalization.get("placeholder_location") or {}
        latitude = parse_float(placeholder.get("latitude"))
        longitude = parse_float(placeholder.get("longitude"))
        if latitude is not None and longitude is not None:
            name = placeholder.get("name") or config.placeholder.name
            config.placeholder = LocationInfo(
                name=name,
                address=placeholder.get("address") or name,
                coordinates=Coordinates(latitude=latitude, longitude=longitude),
                is_confirmed=False,
            )
        return config


@dataclass
class SearchResult:
    """Result of one search: the candidates plus how they were obtained."""

    source_name: str
    execution_id: str
    started_at: datetime
    ended_at: datetime
    candidates: list[CandidateBase] = field(default_factory=list)
    used_fallback: bool = False
    dropped: int = 0
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        """Calculate execution duration."""
        return (self.ended_at - self.started_at).total_seconds()


class BaseSearchPipeline(ABC):
    """
    Abstract base class for the search pipelines.

    The live/offline decision is made once, at construction: a pipeline with
    a configured adapter calls the provider and drops to the fallback dataset
    only when that call fails; a pipeline without one always serves the
    fallback dataset.

    Subclasses must implement the provider-specific steps:
        - build_fetch_kwargs(): Turn search criteria into adapter arguments
        - parse(): Turn a FetchResult into raw record dicts
        - normalize(): Fix up one raw record
        - validate(): Reject records that must not be returned
        - fallback_records(): Offline records matching the criteria
    """

    kind: CandidateKind
    model: type[CandidateBase]

    def __init__(
        self,
        config: PipelineConfig,
        adapter: BaseSourceAdapter | None = None,
        fallback: FallbackDataset | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: PipelineConfig with normalization defaults
            adapter: Provider adapter, or None to serve fallback data only
            fallback: Offline dataset used when the provider is unavailable
        """
        self.config = config
        self.adapter = adapter
        self.fallback = fallback or FallbackDataset()
        self.live = adapter is not None and adapter.is_configured
        self.logger = logging.getLogger(f"pipeline.{config.source_name}")
        self.execution_id: str | None = None

    @property
    def source_type(self) -> SourceType | None:
        """Get the source type from the adapter."""
        return self.adapter.source_type if self.adapter else None

    # ========================================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # ========================================================================

    @abstractmethod
    def build_fetch_kwargs(self, **criteria) -> dict[str, Any]:
        """
        Build the keyword arguments for ``adapter.fetch``.

        Args:
            **criteria: Caller search filters

        Returns:
            Adapter-specific fetch arguments
        """

    @abstractmethod
    def parse(self, fetch_result: FetchResult, **criteria) -> list[dict[str, Any]]:
        """
        Parse a successful provider response into raw record dicts.

        Args:
            fetch_result: Successful adapter result
            **criteria: Caller search filters, used as parsing hints

        Returns:
            Records in provider order
        """

    @abstractmethod
    def normalize(self, record: dict[str, Any], **criteria) -> dict[str, Any]:
        """
        Map raw field values onto the closed enumerations and fill defaults.

        Args:
            record: Raw record dict (already known to have a name)
            **criteria: Caller search filters

        Returns:
            Record dict ready for model validation
        """

    @abstractmethod
    def validate(self, candidate: CandidateBase) -> None:
        """
        Reject a candidate that must not be returned.

        Raises:
            InvalidCandidate: If the candidate is missing required data
        """

    @abstractmethod
    def fallback_records(self, **criteria) -> list[dict[str, Any]]:
        """Offline records matching the criteria."""

    # ========================================================================
    # CONCRETE METHODS - Pipeline execution
    # ========================================================================

    async def execute(self, timeout: float | None = None, **criteria) -> SearchResult:
        """
        Execute one search.

        Args:
            timeout: Optional per-call bound on the provider call, in seconds
            **criteria: Search filters passed to the subclass hooks

        Returns:
            SearchResult; candidates come from the provider when it succeeds
            and from the fallback dataset otherwise
        """
        self.execution_id = self._generate_execution_id()
        started_at = datetime.now(UTC)
        errors: list[str] = []
        metadata: dict[str, Any] = {"criteria": {k: v for k, v in criteria.items() if v is not None}}
        candidates: list[CandidateBase] = []
        dropped = 0
        used_fallback = not self.live

        self.logger.info(f"Starting search {self.execution_id} (live={self.live})")

        if self.live:
            try:
                candidates, dropped, fetch_metadata = await self._search_live(timeout, **criteria)
                metadata.update(fetch_metadata)
            except ProviderUnavailable as e:
                self.logger.warning(f"{e}. Using fallback data instead.")
                errors.append(str(e))
                used_fallback = True

        if used_fallback:
            records = self.fallback_records(**criteria)
            candidates, dropped = self._process_records(records, SearchSource.FALLBACK, **criteria)

        result = SearchResult(
            source_name=self.config.source_name,
            execution_id=self.execution_id,
            started_at=started_at,
            ended_at=datetime.now(UTC),
            candidates=candidates,
            used_fallback=used_fallback,
            dropped=dropped,
            errors=errors,
            metadata=metadata,
        )
        self.logger.info(
            f"Search completed: {len(candidates)} candidates, {dropped} dropped, fallback={used_fallback}"
        )
        return result

    async def _search_live(
        self, timeout: float | None, **criteria
    ) -> tuple[list[CandidateBase], int, dict[str, Any]]:
        """
        Call the provider and process its response.

        Raises:
            ProviderUnavailable: On timeout, an unsuccessful fetch, an
                unparseable response, or a response with no usable candidate
        """
        source = self.config.source_name
        kwargs = self.build_fetch_kwargs(**criteria)

        try:
            fetch_result = await asyncio.wait_for(self.adapter.fetch(**kwargs), timeout=timeout)
        except TimeoutError as e:
            raise ProviderUnavailable(source, f"timed out after {timeout}s") from e

        if not fetch_result.success:
            raise ProviderUnavailable(source, "; ".join(fetch_result.errors) or "fetch failed")

        self.logger.info(f"Fetched {fetch_result.total_fetched} raw results")

        try:
            records = self.parse(fetch_result, **criteria)
        except Exception as e:
            raise ProviderUnavailable(source, f"unparseable response: {e}") from e

        candidates, dropped = self._process_records(records, self.config.search_source, **criteria)
        if not candidates:
            raise ProviderUnavailable(source, f"no usable candidates in {len(records)} parsed records")

        metadata = {**fetch_result.metadata, "fetch_duration_s": fetch_result.duration_seconds}
        return candidates, dropped, metadata

    def _process_records(
        self,
        records: list[dict[str, Any]],
        search_source: SearchSource,
        **criteria,
    ) -> tuple[list[CandidateBase], int]:
        """Normalize, validate and filter raw records."""
        candidates: list[CandidateBase] = []
        dropped = 0

        for idx, record in enumerate(records):
            name = (record.get("name") or "").strip()
            if not name:
                self.logger.debug(f"Dropping record {idx}: empty name")
                dropped += 1
                continue

            try:
                normalized = self.normalize(dict(record), **criteria)
                normalized["search_source"] = search_source.value
                candidate = self.model.model_validate(normalized)
                self.validate(candidate)
            except (InvalidCandidate, ValidationError) as e:
                self.logger.debug(f"Dropping record {idx} ({name!r}): {e}")
                dropped += 1
                continue

            candidates.append(candidate)

        return candidates, dropped

    def _generate_execution_id(self) -> str:
        """Generate unique execution identifier."""
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        unique_id = str(uuid.uuid4())[:8]
        return f"{self.config.source_name}_{timestamp}_{unique_id}"

    async def close(self) -> None:
        """Release the adapter's resources."""
        if self.adapter:
            await self.adapter.close()
