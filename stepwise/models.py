"""Durable data model for execution records and their steps."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, JsonValue, TypeAdapter

from .errors import InvalidTransitionError

Document = dict[str, JsonValue]

_document_adapter: TypeAdapter[Document] = TypeAdapter(Document)


def as_document(value: Optional[Mapping[str, Any]]) -> Document:
    """Validate ``value`` as a JSON-compatible document and return a copy."""
    return _document_adapter.validate_python(copy.deepcopy(dict(value or {})))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActionStatus(str, Enum):
    NOT_EXECUTED = "not_executed"
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# started -> started covers a step interrupted by a crash or cancellation.
_TRANSITIONS: dict[ActionStatus, frozenset[ActionStatus]] = {
    ActionStatus.NOT_EXECUTED: frozenset({ActionStatus.STARTED}),
    ActionStatus.STARTED: frozenset(
        {ActionStatus.STARTED, ActionStatus.SUCCEEDED, ActionStatus.FAILED}
    ),
    ActionStatus.FAILED: frozenset({ActionStatus.STARTED}),
    ActionStatus.SUCCEEDED: frozenset(),
}


class ActionState(BaseModel):
    """Status slot for one step of one run."""

    input: Document = Field(default_factory=dict)
    output: Document = Field(default_factory=dict)
    status: ActionStatus = ActionStatus.NOT_EXECUTED
    attempts: int = 0
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def _move(self, target: ActionStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, target)
        self.status = target

    def start(self) -> None:
        """Mark the step as started and count the attempt."""
        self._move(ActionStatus.STARTED)
        self.attempts += 1
        self.error = None
        self.started_at = _utcnow()
        self.finished_at = None

    def succeed(self, output: Document) -> None:
        self._move(ActionStatus.SUCCEEDED)
        self.output = output
        self.finished_at = _utcnow()

    def fail(self, error: str, output: Optional[Document] = None) -> None:
        self._move(ActionStatus.FAILED)
        self.output = output or {}
        self.error = error
        self.finished_at = _utcnow()

    @property
    def is_done(self) -> bool:
        return self.status is ActionStatus.SUCCEEDED


def derive_step_input(root: Mapping[str, Any], action: str, index: int) -> Document:
    """Return the input handed to step ``index``.

    A mapping stored under the action identifier wins, then a mapping stored
    under the step index. Otherwise the step receives the whole root input.
    The result is always a private copy.
    """
    for key in (action, str(index)):
        value = root.get(key)
        if isinstance(value, Mapping):
            return as_document(value)
    return as_document(root)


class ExecutionRecord(BaseModel):
    """Durable record of one workflow run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)
    timestamp: datetime = Field(default_factory=_utcnow, frozen=True)
    input: Document = Field(default_factory=dict, frozen=True)
    actions: tuple[str, ...] = Field(default_factory=tuple, frozen=True)
    action_states: list[ActionState] = Field(default_factory=list)
    completed: bool = False

    @classmethod
    def new(
        cls, input: Optional[Mapping[str, Any]], actions: Sequence[str]
    ) -> "ExecutionRecord":
        """Create a fresh record with every step ``not_executed``."""
        root = as_document(input)
        return cls(
            input=root,
            actions=tuple(actions),
            action_states=[
                ActionState(input=derive_step_input(root, action, index))
                for index, action in enumerate(actions)
            ],
        )

    def step(self, index: int) -> ActionState:
        return self.action_states[index]

    @property
    def last_completed(self) -> int:
        """Index of the last step in the leading run of succeeded steps."""
        last = -1
        for index, state in enumerate(self.action_states):
            if not state.is_done:
                break
            last = index
        return last

    @property
    def failed_step(self) -> Optional[int]:
        for index, state in enumerate(self.action_states):
            if state.status is ActionStatus.FAILED:
                return index
        return None

    @property
    def status(self) -> str:
        if self.completed:
            return "completed"
        if self.failed_step is not None:
            return "failed"
        if any(s.status is not ActionStatus.NOT_EXECUTED for s in self.action_states):
            return "running"
        return "pending"

    def to_json(self) -> str:
        """Serialize record to JSON."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "ExecutionRecord":
        """Deserialize record from JSON."""
        return cls.model_validate_json(data)
