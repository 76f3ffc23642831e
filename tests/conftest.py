"""
Shared pytest fixtures for the sportshub test suite.

Provides factory fixtures for candidate objects, an in-memory store and an
offline orchestrator that serves fallback data.
"""

from datetime import date

import pytest

from sportshub.ingestion.approval import ApprovalService
from sportshub.ingestion.fallback import FallbackDataset
from sportshub.ingestion.orchestrator import IngestionOrchestrator
from sportshub.ingestion.persist import InMemoryStore
from sportshub.ingestion.pipelines import EventSearchPipeline, FacilitySearchPipeline, PipelineConfig
from sportshub.schemas.candidate import EventCandidate, FacilityCandidate

TODAY = date(2025, 3, 10)


@pytest.fixture
def create_facility():
    """
    Return a function that creates FacilityCandidate objects with sensible defaults.

    Example:
        facility = create_facility(name="Kowloon Tennis", latitude=22.31, longitude=114.17)
    """

    def _create_facility(
        name: str = "Test Sports Centre",
        latitude: float | None = 22.2830,
        longitude: float | None = 114.1571,
        **kwargs,
    ) -> FacilityCandidate:
        defaults = {
            "name": name,
            "sport_type": "basketball",
            "district": "central",
            "address": "1 Test Road, Central, Hong Kong",
            "latitude": latitude,
            "longitude": longitude,
        }
        defaults.update(kwargs)
        return FacilityCandidate(**defaults)

    return _create_facility


@pytest.fixture
def create_event_candidate():
    """
    Return a function that creates EventCandidate objects with sensible defaults.

    Example:
        event = create_event_candidate(name="Harbour Run", event_date=date(2025, 5, 1))
    """

    def _create_event_candidate(
        name: str = "Test Tournament",
        event_date: date | None = None,
        **kwargs,
    ) -> EventCandidate:
        defaults = {
            "name": name,
            "event_date": event_date or date(2025, 4, 12),
            "start_time": "09:00",
            "end_time": "18:00",
            "sport_type": "basketball",
            "category": "competition",
        }
        defaults.update(kwargs)
        return EventCandidate(**defaults)

    return _create_event_candidate


@pytest.fixture
def store():
    """Return an empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def facility_pipeline():
    """Facility pipeline without a provider: always serves fallback data."""
    return FacilitySearchPipeline(PipelineConfig(source_name="facilities"), adapter=None, fallback=FallbackDataset())


@pytest.fixture
def event_pipeline():
    """Event pipeline without a provider, pinned to a fixed 'today'."""
    return EventSearchPipeline(
        PipelineConfig(source_name="events"),
        adapter=None,
        fallback=FallbackDataset(),
        today=lambda: TODAY,
    )


@pytest.fixture
def orchestrator(store, facility_pipeline, event_pipeline):
    """Offline orchestrator over the in-memory store."""
    return IngestionOrchestrator(store, facility_pipeline, event_pipeline)


@pytest.fixture
def approval(store):
    """Approval service over the in-memory store."""
    return ApprovalService(store)
