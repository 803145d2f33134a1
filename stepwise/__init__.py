"""Stepwise: durable, resumable execution of ordered actions."""

from .actions import Action, ActionContext, ActionRegistry
from .errors import (
    ActionError,
    InvalidTransitionError,
    RunNotFoundError,
    StepFailedError,
    StepwiseError,
    StoreError,
    UnknownActionError,
    UnknownRunError,
)
from .manager import ExecutionManager
from .models import ActionState, ActionStatus, Document, ExecutionRecord
from .persistence import get_store

__version__ = "0.1.0"
__all__ = [
    "Action",
    "ActionContext",
    "ActionError",
    "ActionRegistry",
    "ActionState",
    "ActionStatus",
    "Document",
    "ExecutionManager",
    "ExecutionRecord",
    "InvalidTransitionError",
    "RunNotFoundError",
    "StepFailedError",
    "StepwiseError",
    "StoreError",
    "UnknownActionError",
    "UnknownRunError",
    "get_store",
]
