"""Exception types raised by stepwise."""

from __future__ import annotations

from typing import Any, Optional


class StepwiseError(Exception):
    """Base class for all stepwise errors."""


class InvalidTransitionError(StepwiseError):
    """A step status change that the state machine does not allow."""

    def __init__(self, current: Any, target: Any) -> None:
        self.current = current
        self.target = target
        super().__init__(f"invalid step transition: {current.value} -> {target.value}")


class RunNotFoundError(StepwiseError, KeyError):
    """Raised by a store when no record was ever saved under ``run_id``."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"event not found: {run_id}")

    def __str__(self) -> str:
        return self.args[0]


class StoreError(StepwiseError):
    """The persistence backend failed to save or load a record."""


class UnknownRunError(StepwiseError):
    """Resume was requested for a run id that was never issued."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"unknown event: {run_id}")


class RunError(StepwiseError):
    """Failure of a specific step within a run.

    ``run_id`` is always set so callers can resume the run later.
    """

    def __init__(self, message: str, run_id: str, step: int, action: str) -> None:
        self.run_id = run_id
        self.step = step
        self.action = action
        super().__init__(message)


class UnknownActionError(RunError):
    def __init__(self, run_id: str, step: int, action: str) -> None:
        super().__init__(
            f"unknown action {action!r} at step {step} of run {run_id}",
            run_id,
            step,
            action,
        )


class StepFailedError(RunError):
    def __init__(self, run_id: str, step: int, action: str, error: BaseException) -> None:
        super().__init__(
            f"an error during action execution: {action!r} at step {step}: {error}",
            run_id,
            step,
            action,
        )


class ActionError(Exception):
    """Raised by actions to report failure along with a partial output."""

    def __init__(self, message: str, output: Optional[dict[str, Any]] = None) -> None:
        self.output = output or {}
        super().__init__(message)
