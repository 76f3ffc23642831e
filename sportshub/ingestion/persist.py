# Persistence layer for ingested data
"""
Persistence Layer for Ingestion.

Defines the canonical store interface the ingestion core writes candidates
to, with two implementations:
- InMemoryStore: dict-backed, used by tests and local runs
- PostgresStore: psycopg2-backed, mirrors the platform's facilities and
  events tables
"""

from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, time
from typing import Any

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from sportshub.ingestion.errors import StoreFailure
from sportshub.schemas.entity import ENTITY_MODELS, EntityBase
from sportshub.schemas.enums import ApprovalStatus, CandidateKind

logger = logging.getLogger(__name__)

Predicate = Callable[[EntityBase], bool]


class CanonicalStore(ABC):
    """
    Abstract persistent store for facilities and events.

    The store owns entities: every read returns fresh objects, and the
    ingestion core never keeps them beyond one call.
    """

    @abstractmethod
    async def insert(self, kind: CandidateKind, fields: dict[str, Any]) -> int:
        """Insert a row and return its store-assigned id."""

    @abstractmethod
    async def get(self, kind: CandidateKind, entity_id: int) -> EntityBase | None:
        """One entity by id, or None."""

    @abstractmethod
    async def read(self, kind: CandidateKind, predicate: Predicate | None = None) -> list[EntityBase]:
        """Entities of ``kind`` for which ``predicate`` holds, ordered by id."""

    @abstractmethod
    async def update_status(
        self, kind: CandidateKind, entity_id: int, status: ApprovalStatus
    ) -> EntityBase | None:
        """Set ``approval_status``; None when the id is unknown."""

    @abstractmethod
    async def update_fields(
        self, kind: CandidateKind, entity_id: int, fields: dict[str, Any]
    ) -> EntityBase | None:
        """Overwrite plain columns; None when the id is unknown."""

    async def find_all(self, kind: CandidateKind) -> list[EntityBase]:
        """Every entity of ``kind`` regardless of status."""
        return await self.read(kind)

    async def find_by_status(self, kind: CandidateKind, status: ApprovalStatus) -> list[EntityBase]:
        """Entities of ``kind`` in one approval state."""
        return await self.read(kind, lambda entity: entity.approval_status == status)


# ============================================================================
# IN-MEMORY STORE
# ============================================================================


class InMemoryStore(CanonicalStore):
    """Dict-backed store with sequential ids per kind."""

    def __init__(self):
        self._rows: dict[CandidateKind, dict[int, EntityBase]] = {kind: {} for kind in CandidateKind}
        self._next_id: dict[CandidateKind, int] = {kind: 1 for kind in CandidateKind}

    async def insert(self, kind: CandidateKind, fields: dict[str, Any]) -> int:
        entity_id = self._next_id[kind]
        now = datetime.now(UTC)
        entity = ENTITY_MODELS[kind].model_validate(
            {**fields, "id": entity_id, "created_at": now, "updated_at": now}
        )
        self._rows[kind][entity_id] = entity
        self._next_id[kind] = entity_id + 1
        return entity_id

    async def get(self, kind: CandidateKind, entity_id: int) -> EntityBase | None:
        entity = self._rows[kind].get(entity_id)
        return entity.model_copy(deep=True) if entity else None

    async def read(self, kind: CandidateKind, predicate: Predicate | None = None) -> list[EntityBase]:
        return [
            entity.model_copy(deep=True)
            for _, entity in sorted(self._rows[kind].items())
            if predicate is None or predicate(entity)
        ]

    async def update_status(
        self, kind: CandidateKind, entity_id: int, status: ApprovalStatus
    ) -> EntityBase | None:
        return await self.update_fields(kind, entity_id, {"approval_status": status})

    async def update_fields(
        self, kind: CandidateKind, entity_id: int, fields: dict[str, Any]
    ) -> EntityBase | None:
        entity = self._rows[kind].get(entity_id)
        if entity is None:
            return None
        data = {**entity.model_dump(), **fields, "updated_at": datetime.now(UTC)}
        updated = ENTITY_MODELS[kind].model_validate(data)
        self._rows[kind][entity_id] = updated
        return updated.model_copy(deep=True)


# ============================================================================
# POSTGRES STORE
# ============================================================================

TABLES = {
    CandidateKind.FACILITY: "facilities",
    CandidateKind.EVENT: "events",
}

# Entity field -> column, where the platform schema names them differently
COLUMN_NAMES = {
    CandidateKind.FACILITY: {"sport_type": "type", "rating": "average_rating"},
    CandidateKind.EVENT: {},
}

COLUMNS = {
    CandidateKind.FACILITY: [
        "name",
        "description",
        "type",
        "district",
        "address",
        "latitude",
        "longitude",
        "image_url",
        "average_rating",
        "external_id",
        "approval_status",
        "search_source",
    ],
    CandidateKind.EVENT: [
        "name",
        "description",
        "event_date",
        "start_time",
        "end_time",
        "sport_type",
        "category",
        "skill_level",
        "max_participants",
        "website",
        "image_url",
        "location",
        "approval_status",
        "search_source",
    ],
}

DDL = """
CREATE TABLE IF NOT EXISTS facilities (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL,
    district TEXT NOT NULL,
    address TEXT NOT NULL DEFAULT '',
    latitude DOUBLE PRECISION,
    longitude DOUBLE PRECISION,
    image_url TEXT,
    average_rating DOUBLE PRECISION,
    external_id TEXT,
    approval_status TEXT NOT NULL DEFAULT 'pending',
    search_source TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS events (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    event_date DATE NOT NULL,
    start_time TIME NOT NULL,
    end_time TIME NOT NULL,
    sport_type TEXT,
    category TEXT,
    skill_level TEXT,
    max_participants INTEGER,
    website TEXT,
    image_url TEXT,
    location JSON,
    approval_status TEXT NOT NULL DEFAULT 'pending',
    search_source TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


class PostgresStore(CanonicalStore):
    """
    Store backed by the platform's PostgreSQL facilities and events tables.

    psycopg2 is blocking, so every statement runs in a worker thread; a lock
    serializes use of the single connection. Each write is its own
    transaction: committed on success, rolled back and re-raised as
    StoreFailure on error.
    """

    def __init__(self, db_connection) -> None:
        """Initialize with an active psycopg2 connection."""
        self.conn = db_connection
        self._lock = threading.Lock()

    @classmethod
    def connect(cls, settings) -> PostgresStore:
        """Open a connection from ``Settings.get_psycopg2_params()``."""
        return cls(psycopg2.connect(**settings.get_psycopg2_params()))

    def create_tables(self) -> None:
        """Create the facilities and events tables when missing."""
        self._execute(lambda cur: cur.execute(DDL), write=True)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _to_row(self, kind: CandidateKind, fields: dict[str, Any]) -> dict[str, Any]:
        aliases = COLUMN_NAMES[kind]
        row = {}
        for key, value in fields.items():
            column = aliases.get(key, key)
            if column not in COLUMNS[kind]:
                continue
            if hasattr(value, "value"):
                value = value.value
            if column == "location" and value is not None:
                value = Json(value)
            row[column] = value
        return row

    def _to_entity(self, kind: CandidateKind, row: dict[str, Any]) -> EntityBase:
        reverse = {column: key for key, column in COLUMN_NAMES[kind].items()}
        data = {}
        for column, value in row.items():
            if isinstance(value, time):
                value = value.strftime("%H:%M")
            data[reverse.get(column, column)] = value
        data["kind"] = kind
        return ENTITY_MODELS[kind].model_validate(data)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, work: Callable, write: bool = False):
        """Run ``work(cursor)`` under the connection lock."""
        with self._lock:
            try:
                with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                    result = work(cur)
                if write:
                    self.conn.commit()
                return result
            except Exception as e:
                self.conn.rollback()
                logger.error(f"Store operation failed: {e}")
                raise StoreFailure(str(e)) from e

    async def _run(self, work: Callable, write: bool = False):
        return await asyncio.to_thread(self._execute, work, write)

    # ------------------------------------------------------------------
    # CanonicalStore
    # ------------------------------------------------------------------

    async def insert(self, kind: CandidateKind, fields: dict[str, Any]) -> int:
        row = self._to_row(kind, fields)
        columns = list(row)
        sql = (
            f"INSERT INTO {TABLES[kind]} ({', '.join(columns)}) "
            f"VALUES ({', '.join(['%s'] * len(columns))}) RETURNING id;"
        )

        def work(cur):
            cur.execute(sql, [row[c] for c in columns])
            return cur.fetchone()["id"]

        return await self._run(work, write=True)

    async def get(self, kind: CandidateKind, entity_id: int) -> EntityBase | None:
        def work(cur):
            cur.execute(f"SELECT * FROM {TABLES[kind]} WHERE id = %s;", (entity_id,))
            return cur.fetchone()

        row = await self._run(work)
        return self._to_entity(kind, row) if row else None

    async def read(self, kind: CandidateKind, predicate: Predicate | None = None) -> list[EntityBase]:
        def work(cur):
            cur.execute(f"SELECT * FROM {TABLES[kind]} ORDER BY id;")
            return cur.fetchall()

        entities = [self._to_entity(kind, row) for row in await self._run(work)]
        return [e for e in entities if predicate is None or predicate(e)]

    async def find_by_status(self, kind: CandidateKind, status: ApprovalStatus) -> list[EntityBase]:
        def work(cur):
            cur.execute(
                f"SELECT * FROM {TABLES[kind]} WHERE approval_status = %s ORDER BY id;",
                (ApprovalStatus(status).value,),
            )
            return cur.fetchall()

        return [self._to_entity(kind, row) for row in await self._run(work)]

    async def update_status(
        self, kind: CandidateKind, entity_id: int, status: ApprovalStatus
    ) -> EntityBase | None:
        return await self.update_fields(kind, entity_id, {"approval_status": status})

    async def update_fields(
        self, kind: CandidateKind, entity_id: int, fields: dict[str, Any]
    ) -> EntityBase | None:
        row = self._to_row(kind, fields)
        if not row:
            return await self.get(kind, entity_id)
        assignments = ", ".join(f"{column} = %s" for column in row)
        sql = f"UPDATE {TABLES[kind]} SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING *;"

        def work(cur):
            cur.execute(sql, [*row.values(), entity_id])
            return cur.fetchone()

        updated = await self._run(work, write=True)
        return self._to_entity(kind, updated) if updated else None

    def close(self) -> None:
        """Close the underlying connection."""
        self.conn.close()
