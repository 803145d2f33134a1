"""Store abstraction for execution record persistence."""

from __future__ import annotations

from typing import Protocol

from ..models import ExecutionRecord


class StateStore(Protocol):
    """Protocol for execution record persistence backends.

    A backend keeps exactly one record per run id. ``save_state`` overwrites
    the previous version atomically and ``restore_state`` returns the most
    recently saved one. Concurrent saves for different ids must be safe and
    saves for the same id are serialized, last write wins.
    """

    async def save_state(self, record: ExecutionRecord) -> None:
        """Persist ``record`` under ``record.id``."""

    async def restore_state(self, run_id: str) -> ExecutionRecord:
        """Return the last saved record or raise ``RunNotFoundError``."""

    async def list_states(self) -> list[ExecutionRecord]:
        """Return all persisted records."""
