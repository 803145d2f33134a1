"""SQLite implementation of the state store."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from ..errors import RunNotFoundError, StoreError
from ..models import ExecutionRecord
from .store import StateStore

logger = logging.getLogger(__name__)


class SQLiteStateStore(StateStore):
    """Persist execution records using SQLite.

    Each record is a single row holding the full JSON document, so a save is
    one atomic upsert.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open sqlite store {self.db_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS execution_records (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                status TEXT NOT NULL,
                completed INTEGER NOT NULL,
                document TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(query, params)
            except sqlite3.Error as exc:
                raise StoreError(f"sqlite write failed: {exc}") from exc

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self._conn.execute(query, params).fetchone()
            except sqlite3.Error as exc:
                raise StoreError(f"sqlite read failed: {exc}") from exc

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(query, params).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(f"sqlite read failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Store API
    async def save_state(self, record: ExecutionRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO execution_records (id, created_at, status, completed, document)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                completed = excluded.completed,
                document = excluded.document
            """,
            record.id,
            record.timestamp.isoformat(),
            record.status,
            int(record.completed),
            record.to_json(),
        )
        logger.debug(f"Saved run {record.id} ({record.status})")

    async def restore_state(self, run_id: str) -> ExecutionRecord:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT document FROM execution_records WHERE id = ?",
            run_id,
        )
        if not row:
            raise RunNotFoundError(run_id)
        return ExecutionRecord.from_json(row["document"])

    async def list_states(self) -> list[ExecutionRecord]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT document FROM execution_records ORDER BY created_at",
        )
        return [ExecutionRecord.from_json(r["document"]) for r in rows]
