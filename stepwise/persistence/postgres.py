"""PostgreSQL implementation of the state store."""

from __future__ import annotations

import logging

import asyncpg

from ..errors import RunNotFoundError, StoreError
from ..models import ExecutionRecord
from .store import StateStore

logger = logging.getLogger(__name__)

# InterfaceError covers connections dropped mid-query
_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresStateStore(StateStore):
    """Persist execution records using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        try:
            conn = await asyncpg.connect(self._dsn)
        except (OSError, *_DB_ERRORS) as exc:
            raise StoreError(f"cannot connect to postgres store: {exc}") from exc
        if not self._initialized:
            try:
                await self._ensure_schema(conn)
            except (OSError, *_DB_ERRORS) as exc:
                await conn.close()
                raise StoreError(f"cannot create postgres schema: {exc}") from exc
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS execution_records (
                id TEXT PRIMARY KEY,
                created_at TIMESTAMPTZ NOT NULL,
                status TEXT NOT NULL,
                completed BOOLEAN NOT NULL,
                document JSONB NOT NULL
            )
            """
        )

    # ------------------------------------------------------------------
    async def save_state(self, record: ExecutionRecord) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO execution_records (id, created_at, status, completed, document)
                VALUES ($1, $2, $3, $4, $5::jsonb)
                ON CONFLICT (id) DO UPDATE SET
                    status = EXCLUDED.status,
                    completed = EXCLUDED.completed,
                    document = EXCLUDED.document
                """,
                record.id,
                record.timestamp,
                record.status,
                record.completed,
                record.to_json(),
            )
        except _DB_ERRORS as exc:
            raise StoreError(f"postgres write failed: {exc}") from exc
        finally:
            await conn.close()
        logger.debug(f"Saved run {record.id} ({record.status})")

    async def restore_state(self, run_id: str) -> ExecutionRecord:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT document::text AS document FROM execution_records WHERE id = $1",
                run_id,
            )
        except _DB_ERRORS as exc:
            raise StoreError(f"postgres read failed: {exc}") from exc
        finally:
            await conn.close()
        if not row:
            raise RunNotFoundError(run_id)
        return ExecutionRecord.from_json(row["document"])

    async def list_states(self) -> list[ExecutionRecord]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT document::text AS document FROM execution_records ORDER BY created_at"
            )
        except _DB_ERRORS as exc:
            raise StoreError(f"postgres read failed: {exc}") from exc
        finally:
            await conn.close()
        return [ExecutionRecord.from_json(r["document"]) for r in rows]
