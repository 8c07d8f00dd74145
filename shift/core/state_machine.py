"""Task lifecycle state machine.

    Stopped -> Running -> {Paused <-> Running} -> Stopped

Every transition is decided by ``(current state, event kind)`` alone;
timestamps are never looked at here.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import InvalidTransition
from .events import EventKind, TaskEvent, TaskState

NOT_RUNNING = "not running"
ALREADY_RUNNING = "already running"
ALREADY_PAUSED = "already paused"
NOT_PAUSED = "not paused"

_TRANSITIONS: dict[tuple[TaskState, EventKind], TaskState | str] = {
    (TaskState.STOPPED, EventKind.START): TaskState.RUNNING,
    (TaskState.STOPPED, EventKind.STOP): NOT_RUNNING,
    (TaskState.STOPPED, EventKind.PAUSE): NOT_RUNNING,
    (TaskState.STOPPED, EventKind.RESUME): NOT_RUNNING,
    (TaskState.RUNNING, EventKind.START): ALREADY_RUNNING,
    (TaskState.RUNNING, EventKind.STOP): TaskState.STOPPED,
    (TaskState.RUNNING, EventKind.PAUSE): TaskState.PAUSED,
    (TaskState.RUNNING, EventKind.RESUME): NOT_PAUSED,
    (TaskState.PAUSED, EventKind.START): ALREADY_RUNNING,
    (TaskState.PAUSED, EventKind.STOP): TaskState.STOPPED,
    (TaskState.PAUSED, EventKind.PAUSE): ALREADY_PAUSED,
    (TaskState.PAUSED, EventKind.RESUME): TaskState.RUNNING,
}

# States from which each kind is accepted.
SOURCE_STATES: dict[EventKind, frozenset[TaskState]] = {
    kind: frozenset(
        state
        for (state, candidate), outcome in _TRANSITIONS.items()
        if candidate is kind and isinstance(outcome, TaskState)
    )
    for kind in EventKind
}


def validate_transition(state: TaskState, kind: EventKind) -> TaskState:
    """Return the state reached by applying ``kind`` in ``state``.

    Raises:
        InvalidTransition: when the table rejects the pair.
    """
    outcome = _TRANSITIONS[(state, kind)]
    if isinstance(outcome, str):
        raise InvalidTransition(state, kind, outcome)
    return outcome


def is_allowed(state: TaskState, kind: EventKind) -> bool:
    return state in SOURCE_STATES[kind]


def fold_state(events: Iterable[TaskEvent]) -> TaskState:
    """Fold an ordered event sequence into the resulting state."""
    state = TaskState.STOPPED
    for event in events:
        state = validate_transition(state, event.kind)
    return state
