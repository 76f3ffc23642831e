"""
Approval State Machine.

Moves committed facilities and events from ``pending`` to a terminal
decision. Callers are assumed to be authorized operators; this module does
not check identity.

Transitions:
    pending  -> approved
    pending  -> rejected
    approved -> approved   (no-op)
    rejected -> rejected   (no-op)

Decisions are terminal: nothing returns to ``pending`` and an approved
entity cannot be rejected (or vice versa).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from sportshub.ingestion.errors import InvalidTransition
from sportshub.ingestion.persist import CanonicalStore
from sportshub.schemas.entity import EntityBase
from sportshub.schemas.enums import ApprovalStatus, CandidateKind

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ApprovalStatus, set[ApprovalStatus]] = {
    ApprovalStatus.PENDING: {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED},
    ApprovalStatus.APPROVED: {ApprovalStatus.APPROVED},
    ApprovalStatus.REJECTED: {ApprovalStatus.REJECTED},
}

# Managed by the store or by the state machine, never by a field edit
PROTECTED_FIELDS = {"id", "kind", "approval_status", "search_source", "created_at", "updated_at"}


class ApprovalOutcome(str, Enum):
    """Result of an approve/reject call."""

    APPROVED = "approved"
    REJECTED = "rejected"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"


class ApprovalService:
    """Operator decisions and status-filtered reads over the canonical store."""

    def __init__(self, store: CanonicalStore):
        self.store = store

    async def approve(self, kind: CandidateKind, entity_id: int) -> ApprovalOutcome:
        """
        Approve a pending entity.

        Returns:
            APPROVED on a transition, UNCHANGED when already approved,
            NOT_FOUND for an unknown id

        Raises:
            InvalidTransition: If the entity was already rejected
        """
        return await self._decide(kind, entity_id, ApprovalStatus.APPROVED)

    async def reject(self, kind: CandidateKind, entity_id: int) -> ApprovalOutcome:
        """
        Reject a pending entity.

        Returns:
            REJECTED on a transition, UNCHANGED when already rejected,
            NOT_FOUND for an unknown id

        Raises:
            InvalidTransition: If the entity was already approved
        """
        return await self._decide(kind, entity_id, ApprovalStatus.REJECTED)

    async def _decide(self, kind: CandidateKind, entity_id: int, target: ApprovalStatus) -> ApprovalOutcome:
        kind = CandidateKind(kind)
        entity = await self.store.get(kind, entity_id)
        if entity is None:
            logger.info(f"Cannot mark {kind.value} #{entity_id} {target.value}: not found")
            return ApprovalOutcome.NOT_FOUND

        current = ApprovalStatus(entity.approval_status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(
                f"{kind.value} #{entity_id} is already {current.value} and cannot become {target.value}"
            )
        if current == target:
            return ApprovalOutcome.UNCHANGED

        if await self.store.update_status(kind, entity_id, target) is None:
            logger.info(f"Cannot mark {kind.value} #{entity_id} {target.value}: removed before the update")
            return ApprovalOutcome.NOT_FOUND
        logger.info(f"{kind.value} #{entity_id} {entity.name!r}: {current.value} -> {target.value}")
        return ApprovalOutcome(target.value)

    # ========================================================================
    # READS
    # ========================================================================

    async def list_by_status(self, kind: CandidateKind, status: ApprovalStatus) -> list[EntityBase]:
        """Entities in one approval state, ordered by id."""
        return await self.store.find_by_status(CandidateKind(kind), ApprovalStatus(status))

    async def list_pending(self, kind: CandidateKind) -> list[EntityBase]:
        """Entities awaiting a decision. Privileged."""
        return await self.list_by_status(kind, ApprovalStatus.PENDING)

    async def list_public(self, kind: CandidateKind) -> list[EntityBase]:
        """Entities ordinary users may see: approved only."""
        return await self.list_by_status(kind, ApprovalStatus.APPROVED)

    # ========================================================================
    # ADMINISTRATIVE EDITS
    # ========================================================================

    async def update_fields(self, kind: CandidateKind, entity_id: int, **fields: Any) -> EntityBase | None:
        """
        Edit plain columns of an entity without touching its approval state.

        Returns:
            The updated entity, or None for an unknown id

        Raises:
            ValueError: If a protected field is part of the edit
        """
        protected = PROTECTED_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Cannot change {', '.join(sorted(protected))} through a field edit")

        kind = CandidateKind(kind)
        updated = await self.store.update_fields(kind, entity_id, fields)
        if updated is not None:
            logger.info(f"Edited {kind.value} #{entity_id}: {', '.join(sorted(fields))}")
        return updated
