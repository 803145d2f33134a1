"""Action contract and the immutable registry handed to the manager."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterator, Sequence, Union

from .models import Document


@dataclass(frozen=True)
class ActionContext:
    """Context passed to every action invocation."""

    run_id: str
    step: int
    action: str
    attempt: int
    values: Mapping[str, Any] = field(default_factory=dict)


Action = Callable[[ActionContext, Document], Union[Document, Awaitable[Document]]]


async def invoke(action: Action, context: ActionContext, input: Document) -> Any:
    """Call ``action`` and await the result when it is a coroutine."""
    result = action(context, input)
    if inspect.isawaitable(result):
        result = await result
    return result


class ActionRegistry(Mapping):
    """Read-only mapping of action identifiers to actions.

    Built once and injected into :class:`~stepwise.manager.ExecutionManager`;
    there is no way to add or replace actions afterwards.
    """

    def __init__(self, actions: Mapping[str, Action] | None = None) -> None:
        items = dict(actions or {})
        for name, action in items.items():
            if not isinstance(name, str):
                raise TypeError(f"action identifier must be a string, got {name!r}")
            if not callable(action):
                raise TypeError(f"action {name!r} is not callable")
        self._actions = MappingProxyType(items)

    @classmethod
    def from_sequence(cls, actions: Sequence[Action]) -> "ActionRegistry":
        """Register ``actions`` under their positions ``"0"``, ``"1"``, ..."""
        return cls({str(index): action for index, action in enumerate(actions)})

    @classmethod
    def coerce(
        cls, actions: "ActionRegistry | Mapping[str, Action] | Sequence[Action]"
    ) -> "ActionRegistry":
        if isinstance(actions, ActionRegistry):
            return actions
        if isinstance(actions, Mapping):
            return cls(actions)
        return cls.from_sequence(list(actions))

    @property
    def identifiers(self) -> tuple[str, ...]:
        """Identifiers in registration order."""
        return tuple(self._actions)

    def __getitem__(self, name: str) -> Action:
        return self._actions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ActionRegistry({list(self._actions)!r})"
