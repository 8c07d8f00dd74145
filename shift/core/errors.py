"""Error taxonomy for task tracking."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .events import EventKind, TaskState


class ShiftError(Exception):
    """Base class for every error raised by shift."""


class InvalidTransition(ShiftError):
    """An action is not legal from the task's current state."""

    def __init__(
        self,
        state: TaskState,
        kind: EventKind,
        reason: str,
        task_name: str | None = None,
    ):
        self.state = state
        self.kind = kind
        self.reason = reason
        self.task_name = task_name
        subject = f"'{task_name}'" if task_name else "task"
        super().__init__(
            f"Cannot {kind.value} {subject}: {reason} (currently {state.value})"
        )

    def for_task(self, task_name: str) -> InvalidTransition:
        """Return a copy of this error naming the task."""
        return InvalidTransition(self.state, self.kind, self.reason, task_name=task_name)


class InvalidTimestamp(ShiftError):
    """A new event would land before the task's latest event or in the future.

    Exactly one of ``latest`` (the task's latest event time) or ``now``
    (the current time) names the bound that was crossed.
    """

    def __init__(
        self,
        task_name: str,
        timestamp: datetime,
        latest: datetime | None = None,
        now: datetime | None = None,
    ):
        self.task_name = task_name
        self.timestamp = timestamp
        self.latest = latest
        self.now = now
        if latest is not None:
            detail = f"its latest event is at {latest.isoformat()}"
        else:
            detail = f"that is in the future (now is {now.isoformat()})"
        super().__init__(f"Cannot record '{task_name}' at {timestamp.isoformat()}: {detail}")


class AmbiguousTarget(ShiftError):
    """No task name was given and zero or several tasks qualify."""

    def __init__(self, action: str, candidates: list[str]):
        self.action = action
        self.candidates = sorted(candidates)
        if self.candidates:
            detail = "multiple candidates: " + ", ".join(self.candidates)
        else:
            detail = "no candidates"
        super().__init__(f"Could not decide which task to {action} ({detail})")


class DataIntegrityError(ShiftError):
    """The stored event log cannot be replayed for a task."""

    def __init__(self, task_name: str, detail: str):
        self.task_name = task_name
        self.detail = detail
        super().__init__(f"Event log for '{task_name}' is corrupt: {detail}")


class StoreError(ShiftError):
    """The underlying event store failed."""
