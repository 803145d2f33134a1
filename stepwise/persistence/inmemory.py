"""In-memory implementation of the state store."""

from __future__ import annotations

import threading
from typing import Dict

from ..errors import RunNotFoundError
from ..models import ExecutionRecord
from .store import StateStore


class InMemoryStateStore(StateStore):
    """Store execution records in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Records are copied on the way in and
    out so the stored snapshot only changes through ``save_state``.
    """

    def __init__(self) -> None:
        self._states: Dict[str, ExecutionRecord] = {}
        # one lock for all keys; safe across threads running separate loops
        self._lock = threading.Lock()

    async def save_state(self, record: ExecutionRecord) -> None:
        snapshot = record.model_copy(deep=True)
        with self._lock:
            self._states[record.id] = snapshot

    async def restore_state(self, run_id: str) -> ExecutionRecord:
        with self._lock:
            record = self._states.get(run_id)
        if record is None:
            raise RunNotFoundError(run_id)
        return record.model_copy(deep=True)

    async def list_states(self) -> list[ExecutionRecord]:
        with self._lock:
            records = list(self._states.values())
        return [r.model_copy(deep=True) for r in records]
