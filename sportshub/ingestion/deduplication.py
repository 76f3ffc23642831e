"""
Module for commit-time duplicate checks.

Provides one checker per candidate kind using the Strategy pattern:
- FacilityDuplicateChecker: Name containment OR coordinate proximity
- EventDuplicateChecker: Name containment on the same event date

Checks are advisory: they scan the canonical store on every call and are not
backed by a store constraint, so two concurrent commits of the same record
can both pass.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum

from sportshub.schemas.candidate import CandidateBase, EventCandidate, FacilityCandidate
from sportshub.schemas.enums import CandidateKind

logger = logging.getLogger(__name__)

# ~100 m in decimal degrees on both axes
DEFAULT_COORDINATE_TOLERANCE = 0.001


class MatchReason(str, Enum):
    """Why a candidate was judged a duplicate."""

    NAME = "name"
    PROXIMITY = "proximity"


@dataclass(frozen=True)
class DuplicateVerdict:
    """Outcome of one duplicate check. Computed per commit, never stored."""

    is_duplicate: bool
    matched_id: int | None = None
    reason: MatchReason | None = None


NOT_DUPLICATE = DuplicateVerdict(is_duplicate=False)


def names_overlap(a: str | None, b: str | None) -> bool:
    """Case-insensitive substring containment in either direction; blanks never match."""
    a_clean = (a or "").strip().casefold()
    b_clean = (b or "").strip().casefold()
    if not a_clean or not b_clean:
        return False
    return a_clean in b_clean or b_clean in a_clean


def within_tolerance(
    lat1: float | None,
    lng1: float | None,
    lat2: float | None,
    lng2: float | None,
    tolerance: float = DEFAULT_COORDINATE_TOLERANCE,
) -> bool:
    """True when both points are present and closer than ``tolerance`` on both axes."""
    if None in (lat1, lng1, lat2, lng2):
        return False
    return abs(lat1 - lat2) < tolerance and abs(lng1 - lng2) < tolerance


class DuplicateChecker(ABC):
    """Abstract base for duplicate checks against the canonical store."""

    kind: CandidateKind

    def __init__(self, store):
        """
        Initialize with the store to scan.

        Args:
            store: CanonicalStore providing ``find_all(kind)``
        """
        self.store = store

    @abstractmethod
    async def check_candidate(self, candidate: CandidateBase) -> DuplicateVerdict:
        """Check one candidate against every stored entity of the same kind."""

    async def exists_candidate(self, candidate: CandidateBase) -> bool:
        """Boolean form of ``check_candidate``."""
        return (await self.check_candidate(candidate)).is_duplicate


class FacilityDuplicateChecker(DuplicateChecker):
    """
    A facility is a duplicate of a stored one when their names contain one
    another (ignoring case), or when both have coordinates closer than
    ``tolerance_degrees`` on both axes. Either test alone is enough.
    """

    kind = CandidateKind.FACILITY

    def __init__(self, store, tolerance_degrees: float = DEFAULT_COORDINATE_TOLERANCE):
        super().__init__(store)
        self.tolerance_degrees = tolerance_degrees

    async def check(
        self,
        name: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> DuplicateVerdict:
        """
        Scan stored facilities for a match.

        Returns:
            DuplicateVerdict naming the first matching facility
        """
        for facility in await self.store.find_all(self.kind):
            if names_overlap(name, facility.name):
                logger.info(f"Facility {name!r} matches #{facility.id} {facility.name!r} by name")
                return DuplicateVerdict(True, facility.id, MatchReason.NAME)
            if within_tolerance(latitude, longitude, facility.latitude, facility.longitude, self.tolerance_degrees):
                logger.info(f"Facility {name!r} matches #{facility.id} {facility.name!r} by proximity")
                return DuplicateVerdict(True, facility.id, MatchReason.PROXIMITY)
        return NOT_DUPLICATE

    async def exists(
        self,
        name: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> bool:
        """True when a matching facility is already stored."""
        return (await self.check(name, latitude, longitude)).is_duplicate

    async def check_candidate(self, candidate: FacilityCandidate) -> DuplicateVerdict:
        return await self.check(candidate.name, candidate.latitude, candidate.longitude)


class EventDuplicateChecker(DuplicateChecker):
    """An event is a duplicate when a stored event on the same date has an overlapping name."""

    kind = CandidateKind.EVENT

    async def check(self, name: str, event_date: date | None) -> DuplicateVerdict:
        for event in await self.store.find_all(self.kind):
            if event.event_date == event_date and names_overlap(name, event.name):
                logger.info(f"Event {name!r} on {event_date} matches #{event.id} {event.name!r}")
                return DuplicateVerdict(True, event.id, MatchReason.NAME)
        return NOT_DUPLICATE

    async def exists(self, name: str, event_date: date | None) -> bool:
        return (await self.check(name, event_date)).is_duplicate

    async def check_candidate(self, candidate: EventCandidate) -> DuplicateVerdict:
        return await self.check(candidate.name, candidate.event_date)


def get_duplicate_checker(
    kind: CandidateKind,
    store,
    tolerance_degrees: float = DEFAULT_COORDINATE_TOLERANCE,
) -> DuplicateChecker:
    """
    Factory function to get the checker for a candidate kind.

    Args:
        kind: Candidate kind
        store: CanonicalStore to scan
        tolerance_degrees: Facility proximity tolerance

    Returns:
        DuplicateChecker instance
    """
    if kind == CandidateKind.FACILITY:
        return FacilityDuplicateChecker(store, tolerance_degrees)
    return EventDuplicateChecker(store)
