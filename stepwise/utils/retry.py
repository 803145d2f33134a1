from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..errors import RunError

if TYPE_CHECKING:
    from ..manager import ExecutionManager

logger = logging.getLogger(__name__)


def compute_backoff(attempt: int, base: float = 1.5, jitter: float = 0.5) -> float:
    """Compute exponential backoff with jitter."""
    delay = base ** attempt
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int) -> None:
    """Sleep for computed backoff delay before retrying."""
    delay = compute_backoff(attempt)
    await asyncio.sleep(delay)


async def resume_until_complete(
    manager: "ExecutionManager",
    run_id: str,
    max_attempts: int,
    backoff: bool = False,
    context: Optional[Mapping[str, Any]] = None,
) -> int:
    """Resume ``run_id`` until it completes or ``max_attempts`` is exhausted.

    Only step failures are retried; ``UnknownRunError`` and store errors
    propagate immediately. Returns the number of resume calls it took.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    for attempt in range(1, max_attempts):
        try:
            await manager.restore_event(run_id, context=context)
            return attempt
        except RunError as exc:
            logger.info(f"resume {attempt}/{max_attempts} of run {run_id} failed: {exc}")
            if backoff:
                await schedule_retry(attempt)
    await manager.restore_event(run_id, context=context)
    return max_attempts
