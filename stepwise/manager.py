"""Execution manager: runs actions in order and checkpoints every step."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from .actions import Action, ActionContext, ActionRegistry, invoke
from .errors import (
    ActionError,
    RunNotFoundError,
    StepFailedError,
    UnknownActionError,
    UnknownRunError,
)
from .models import ActionStatus, ExecutionRecord, as_document
from .persistence import StateStore, get_store

logger = logging.getLogger(__name__)


class ExecutionManager:
    """Drives execution records through their actions.

    Every status change is saved to the store before the manager moves on,
    so an interrupted run loses at most the step that was in flight. Resuming
    skips steps that already succeeded and re-attempts everything else.
    Actions are expected to be idempotent: a step that was ``started`` when
    the process died runs again on resume.
    """

    def __init__(
        self,
        actions: ActionRegistry | Mapping[str, Action] | Sequence[Action],
        store: StateStore | None = None,
    ) -> None:
        self._actions = ActionRegistry.coerce(actions)
        self._store = store or get_store()

    @property
    def actions(self) -> ActionRegistry:
        return self._actions

    @property
    def store(self) -> StateStore:
        return self._store

    async def execute_event(
        self,
        input: Optional[Mapping[str, Any]] = None,
        actions: Optional[Sequence[str]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Start a new run and execute it.

        Args:
            input: Caller payload; each step gets a copy derived from it.
            actions: Ordered action identifiers. Defaults to every registered
                action in registration order.
            context: Values made available to actions via ``ActionContext``.

        Returns:
            The run identifier.

        Raises:
            StepFailedError: An action raised. ``run_id`` is set on the error.
            UnknownActionError: An identifier is not registered.
        """
        if actions is None:
            actions = self._actions.identifiers
        record = ExecutionRecord.new(input, actions)
        logger.info(f"event execution {record.id}: {list(record.actions)}")
        await self._store.save_state(record)
        return await self._execute_actions(record, context)

    async def restore_event(
        self, run_id: str, context: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Resume ``run_id`` from its first step that has not succeeded."""
        try:
            record = await self._store.restore_state(run_id)
        except RunNotFoundError as exc:
            logger.warning(f"unknown event {run_id}")
            raise UnknownRunError(run_id) from exc
        logger.info(f"restoring event {run_id} at step {record.last_completed + 1}")
        return await self._execute_actions(record, context)

    async def get_record(self, run_id: str) -> ExecutionRecord:
        try:
            return await self._store.restore_state(run_id)
        except RunNotFoundError as exc:
            raise UnknownRunError(run_id) from exc

    async def _execute_actions(
        self, record: ExecutionRecord, context: Optional[Mapping[str, Any]]
    ) -> str:
        if record.completed:
            logger.debug(f"run {record.id} already completed")
            return record.id

        for index, action_id in enumerate(record.actions):
            state = record.step(index)
            if state.status is ActionStatus.SUCCEEDED:
                logger.debug(f"step {index}, action {action_id}: already succeeded")
                continue

            action = self._actions.get(action_id)
            if action is None:
                logger.error(f"run {record.id}: unknown action {action_id!r} at step {index}")
                raise UnknownActionError(record.id, index, action_id)

            logger.info(f"step {index}, action {action_id} (run {record.id})")
            state.start()
            await self._store.save_state(record)

            ctx = ActionContext(
                run_id=record.id,
                step=index,
                action=action_id,
                attempt=state.attempts,
                values=dict(context or {}),
            )
            try:
                result = await invoke(action, ctx, as_document(state.input))
                output = as_document(result)
            except Exception as exc:
                partial = exc.output if isinstance(exc, ActionError) else None
                try:
                    partial = as_document(partial)
                except (TypeError, ValueError):
                    partial = None
                state.fail(f"{type(exc).__name__}: {exc}", partial)
                await self._store.save_state(record)
                logger.error(
                    f"an error during action execution: run {record.id}, "
                    f"step {index}, action {action_id}: {exc}"
                )
                raise StepFailedError(record.id, index, action_id, exc) from exc

            state.succeed(output)
            await self._store.save_state(record)

        record.completed = True
        await self._store.save_state(record)
        logger.info(f"run {record.id} completed")
        return record.id
