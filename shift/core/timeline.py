"""Replay of a task's events into running intervals."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timedelta

from .errors import DataIntegrityError, InvalidTransition
from .events import EventKind, Interval, TaskEvent, TaskState
from .state_machine import validate_transition


class TaskTimeline:
    """Running intervals of one task, recomputed on every iteration.

    Iterating walks the events from the beginning, so the timeline can be
    consumed any number of times and always yields the same intervals.
    A sequence the state machine rejects, an event of another task, or a
    timestamp going backwards raises ``DataIntegrityError``.
    """

    def __init__(self, task_name: str, events: Sequence[TaskEvent]):
        self.task_name = task_name
        self.events = tuple(events)

    def __iter__(self) -> Iterator[Interval]:
        for interval, _ in self._replay():
            if interval is not None:
                yield interval

    def __repr__(self) -> str:
        return f"TaskTimeline({self.task_name!r}, events={len(self.events)})"

    @property
    def state(self) -> TaskState:
        """Derived state after the last event."""
        state = TaskState.STOPPED
        for _, state in self._replay():
            pass
        return state

    @property
    def last_event(self) -> TaskEvent | None:
        return self.events[-1] if self.events else None

    def intervals(self) -> list[Interval]:
        return list(self)

    def total(self, now: datetime | None = None) -> timedelta:
        """Sum of all running time, the open interval measured to ``now``."""
        return sum((interval.duration(now) for interval in self), timedelta())

    def current_session(self) -> list[Interval]:
        """Intervals since the most recent start event."""
        session_start = None
        for event in self.events:
            if event.kind is EventKind.START:
                session_start = event.timestamp
        if session_start is None:
            return []
        return [interval for interval in self if interval.start >= session_start]

    def _replay(self) -> Iterator[tuple[Interval | None, TaskState]]:
        """Yield ``(closed interval or None, state)`` after each event."""
        state = TaskState.STOPPED
        open_start: datetime | None = None
        previous: datetime | None = None

        for event in self.events:
            if event.task_name != self.task_name:
                raise DataIntegrityError(
                    self.task_name,
                    f"event {event.id} belongs to '{event.task_name}'",
                )
            if previous is not None and event.timestamp < previous:
                raise DataIntegrityError(
                    self.task_name,
                    f"event {event.id} at {event.timestamp.isoformat()} "
                    f"precedes {previous.isoformat()}",
                )
            previous = event.timestamp

            try:
                state = validate_transition(state, event.kind)
            except InvalidTransition as exc:
                raise DataIntegrityError(
                    self.task_name,
                    f"event {event.id} ({event.kind.value}) is illegal: {exc.reason}",
                ) from exc

            closed = None
            if event.kind in (EventKind.START, EventKind.RESUME):
                open_start = event.timestamp
            elif open_start is not None:
                closed = Interval(self.task_name, open_start, event.timestamp)
                open_start = None
            yield closed, state

        if open_start is not None:
            yield Interval(self.task_name, open_start, None), state


def replay(task_name: str, events: Iterable[TaskEvent]) -> TaskTimeline:
    """Build the timeline of ``task_name`` from its ordered events."""
    return TaskTimeline(task_name, list(events))
