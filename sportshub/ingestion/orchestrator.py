"""
Ingestion Orchestrator.

Caller-facing entry point of the ingestion core: runs facility and event
searches through their pipelines, commits chosen candidates to the canonical
store in the ``pending`` state after a duplicate check, and looks up Places
hits around a point.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ValidationError

from sportshub.ingestion.adapters import PlacesAdapter
from sportshub.ingestion.deduplication import (
    DuplicateChecker,
    DuplicateVerdict,
    EventDuplicateChecker,
    FacilityDuplicateChecker,
)
from sportshub.ingestion.errors import DuplicateConflict, InvalidCandidate
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.normalization.field_normalizer import filter_value
from sportshub.ingestion.normalization.location_parser import haversine_m
from sportshub.ingestion.persist import CanonicalStore
from sportshub.ingestion.pipelines import (
    BaseSearchPipeline,
    EventSearchPipeline,
    FacilitySearchPipeline,
    SearchResult,
)
from sportshub.schemas.candidate import (
    CANDIDATE_MODELS,
    CandidateBase,
    EventCandidate,
    FacilityCandidate,
    NearbyPlace,
)
from sportshub.schemas.enums import ApprovalStatus, CandidateKind, SearchSource

DUPLICATE_REASONS = {
    CandidateKind.FACILITY: "Facility already exists or could not be imported",
    CandidateKind.EVENT: "Event already exists or could not be imported",
}


@dataclass
class CommitResult:
    """Outcome of committing one candidate."""

    committed: bool
    kind: CandidateKind
    entity_id: int | None = None
    matched_id: int | None = None
    reason: str | None = None


@dataclass
class OrchestratorStats:
    """Counters kept for observability."""

    searches: int = 0
    fallback_searches: int = 0
    candidates_returned: int = 0
    commits: int = 0
    duplicate_rejections: int = 0
    nearby_lookups: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class IngestionOrchestrator:
    """
    Coordinates searches, commits and nearby lookups.

    Responsibilities:
    - Run the facility and event search pipelines (never touching the store)
    - Check committed candidates for duplicates and insert new ones as pending
    - Tag Places hits near a point with whether the store already has them
    - Keep execution history and counters
    """

    def __init__(
        self,
        store: CanonicalStore,
        facility_pipeline: FacilitySearchPipeline,
        event_pipeline: EventSearchPipeline,
        facility_checker: FacilityDuplicateChecker | None = None,
        event_checker: EventDuplicateChecker | None = None,
        places_adapter: PlacesAdapter | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Canonical store committed candidates are written to
            facility_pipeline: Pipeline behind ``search_facilities``
            event_pipeline: Pipeline behind ``search_events``
            facility_checker: Duplicate check for facilities
            event_checker: Duplicate check for events
            places_adapter: Adapter for nearby lookups; defaults to the facility
                pipeline's adapter when that is a Places adapter
        """
        self.logger = logging.getLogger("orchestrator")
        self.store = store
        self.facility_pipeline = facility_pipeline
        self.event_pipeline = event_pipeline
        self.checkers: dict[CandidateKind, DuplicateChecker] = {
            CandidateKind.FACILITY: facility_checker or FacilityDuplicateChecker(store),
            CandidateKind.EVENT: event_checker or EventDuplicateChecker(store),
        }
        if places_adapter is None and isinstance(facility_pipeline.adapter, PlacesAdapter):
            places_adapter = facility_pipeline.adapter
        self.places_adapter = places_adapter
        self.execution_history: list[SearchResult] = []
        self._stats = OrchestratorStats()

    @property
    def facility_checker(self) -> FacilityDuplicateChecker:
        return self.checkers[CandidateKind.FACILITY]  # type: ignore[return-value]

    @property
    def fallback(self) -> FallbackDataset:
        return self.facility_pipeline.fallback

    # ========================================================================
    # SEARCH
    # ========================================================================

    async def search_facilities(
        self,
        sport_type: Any = None,
        district: Any = None,
        timeout: float | None = None,
    ) -> list[FacilityCandidate]:
        """
        Search for facilities. Never writes to the store.

        Args:
            sport_type: Sport filter, or None / "all"
            district: District filter, or None / "all"
            timeout: Optional bound on the provider call, in seconds

        Returns:
            Validated facility candidates, from the provider or the fallback data
        """
        result = await self._run(self.facility_pipeline, timeout, sport_type=sport_type, district=district)
        return result.candidates  # type: ignore[return-value]

    async def search_events(
        self,
        sport_type: Any = None,
        category: Any = None,
        start_date: date | None = None,
        end_date: date | None = None,
        timeout: float | None = None,
    ) -> list[EventCandidate]:
        """
        Search for events. Never writes to the store.

        Args:
            sport_type: Sport filter, or None / "all"
            category: Event category filter, or None / "all"
            start_date: Earliest event date of interest
            end_date: Latest event date of interest
            timeout: Optional bound on the provider call, in seconds

        Returns:
            Validated event candidates, from the provider or the fallback data
        """
        result = await self._run(
            self.event_pipeline,
            timeout,
            sport_type=sport_type,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )
        return result.candidates  # type: ignore[return-value]

    async def _run(self, pipeline: BaseSearchPipeline, timeout: float | None, **criteria) -> SearchResult:
        self.logger.info(f"Executing {pipeline.config.source_name} search: {criteria}")
        result = await pipeline.execute(timeout=timeout, **criteria)

        self.execution_history.append(result)
        self._stats.searches += 1
        self._stats.candidates_returned += len(result.candidates)
        if result.used_fallback:
            self._stats.fallback_searches += 1
        return result

    # ========================================================================
    # COMMIT
    # ========================================================================

    async def commit_facility(
        self,
        candidate: FacilityCandidate | dict[str, Any],
        raise_on_duplicate: bool = False,
    ) -> CommitResult:
        """
        Persist a facility candidate as pending unless it duplicates a stored one.

        Raises:
            InvalidCandidate: If a dict candidate does not validate, or the
                facility lacks confirmed coordinates inside the bounding box
            DuplicateConflict: On a duplicate, when ``raise_on_duplicate`` is set
        """
        return await self._commit(CandidateKind.FACILITY, candidate, raise_on_duplicate)

    async def commit_event(
        self,
        candidate: EventCandidate | dict[str, Any],
        raise_on_duplicate: bool = False,
    ) -> CommitResult:
        """
        Persist an event candidate as pending unless it duplicates a stored one.

        Raises:
            InvalidCandidate: If a dict candidate does not validate
            DuplicateConflict: On a duplicate, when ``raise_on_duplicate`` is set
        """
        return await self._commit(CandidateKind.EVENT, candidate, raise_on_duplicate)

    async def _commit(
        self,
        kind: CandidateKind,
        candidate: CandidateBase | dict[str, Any],
        raise_on_duplicate: bool,
    ) -> CommitResult:
        candidate = self._coerce(kind, candidate)
        # Same bounding-box and confirmed-location rules a search applies
        self._pipeline(kind).validate(candidate)

        verdict: DuplicateVerdict = await self.checkers[kind].check_candidate(candidate)
        if verdict.is_duplicate:
            self._stats.duplicate_rejections += 1
            reason = DUPLICATE_REASONS[kind]
            self.logger.info(
                f"Rejected {kind.value} {candidate.name!r}: duplicate of #{verdict.matched_id} "
                f"({verdict.reason.value if verdict.reason else 'unknown'})"
            )
            if raise_on_duplicate:
                raise DuplicateConflict(reason, matched_id=verdict.matched_id)
            return CommitResult(committed=False, kind=kind, matched_id=verdict.matched_id, reason=reason)

        fields = {**candidate.to_store_fields(), "approval_status": ApprovalStatus.PENDING.value}
        entity_id = await self.store.insert(kind, fields)
        self._stats.commits += 1
        self.logger.info(f"Committed {kind.value} #{entity_id} {candidate.name!r} as pending")
        return CommitResult(committed=True, kind=kind, entity_id=entity_id)

    def _pipeline(self, kind: CandidateKind) -> BaseSearchPipeline:
        return self.facility_pipeline if kind == CandidateKind.FACILITY else self.event_pipeline

    @staticmethod
    def _coerce(kind: CandidateKind, candidate: CandidateBase | dict[str, Any]) -> CandidateBase:
        """Validate a dict candidate through its pydantic model."""
        model = CANDIDATE_MODELS[kind]
        if isinstance(candidate, model):
            return candidate
        data = candidate.model_dump() if isinstance(candidate, CandidateBase) else dict(candidate)
        data["kind"] = kind.value
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise InvalidCandidate(f"Invalid {kind.value} candidate: {e}") from e

    # ========================================================================
    # NEARBY PLACES
    # ========================================================================

    async def find_nearby_places(
        self,
        latitude: float,
        longitude: float,
        sport_type: Any = None,
        radius_m: int = 1000,
        timeout: float | None = None,
    ) -> list[NearbyPlace]:
        """
        Places around a point, nearest first, each tagged ``exists_in_database``.

        Falls back to the offline facilities within ``radius_m`` when Places
        is unconfigured or the lookup fails.
        """
        self._stats.nearby_lookups += 1
        records, source = await self._nearby_records(latitude, longitude, sport_type, radius_m, timeout)

        places: list[NearbyPlace] = []
        for record in records:
            point = record["location"]["coordinates"]
            record.setdefault(
                "distance_m",
                round(haversine_m(latitude, longitude, point["latitude"], point["longitude"]), 1),
            )
            record["search_source"] = source.value
            try:
                place = NearbyPlace.model_validate(record)
            except ValidationError as e:
                self.logger.debug(f"Dropping nearby place {record.get('name')!r}: {e}")
                continue
            place.exists_in_database = await self.facility_checker.exists(place.name, place.latitude, place.longitude)
            places.append(place)

        return sorted(places, key=lambda p: p.distance_m if p.distance_m is not None else float("inf"))

    async def _nearby_records(
        self,
        latitude: float,
        longitude: float,
        sport_type: Any,
        radius_m: int,
        timeout: float | None,
    ) -> tuple[list[dict[str, Any]], SearchSource]:
        adapter = self.places_adapter
        if adapter is not None and adapter.is_configured:
            try:
                result = await asyncio.wait_for(
                    adapter.fetch_nearby(latitude, longitude, sport_type=filter_value(sport_type), radius_m=radius_m),
                    timeout=timeout,
                )
            except TimeoutError:
                self.logger.warning(f"Nearby lookup timed out after {timeout}s. Using fallback data instead.")
            else:
                if result.success:
                    parser = self.facility_pipeline.places_parser
                    return parser.parse(result.raw_data, filter_value(sport_type)), SearchSource.GOOGLE_PLACES
                self.logger.warning(f"Nearby lookup failed: {result.errors}. Using fallback data instead.")

        records = self.fallback.nearby(latitude, longitude, sport_type=sport_type, radius_m=radius_m)
        return records, SearchSource.FALLBACK

    # ========================================================================
    # HISTORY & STATS
    # ========================================================================

    def get_execution_history(self, source_name: str | None = None, limit: int = 10) -> list[SearchResult]:
        """Get search history, optionally filtered by pipeline."""
        results = self.execution_history
        if source_name:
            results = [r for r in results if r.source_name == source_name]
        return results[-limit:]

    def stats(self) -> dict[str, Any]:
        """Aggregate counters of searches, fallbacks, commits and duplicate rejections."""
        s = self._stats
        return {
            "searches": s.searches,
            "fallback_searches": s.fallback_searches,
            "fallback_rate": (s.fallback_searches / s.searches * 100) if s.searches else 0,
            "candidates_returned": s.candidates_returned,
            "commits": s.commits,
            "duplicate_rejections": s.duplicate_rejections,
            "nearby_lookups": s.nearby_lookups,
            "since": s.started_at.isoformat(),
        }

    async def close(self) -> None:
        """Release the pipelines' adapters."""
        await self.facility_pipeline.close()
        await self.event_pipeline.close()
        if self.places_adapter is not None and self.places_adapter is not self.facility_pipeline.adapter:
            await self.places_adapter.close()
