"""Event and interval models for the task event log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from ..utils import format_timestamp, utc_now
from .schemas import EventResponse, IntervalResponse


class EventKind(Enum):
    """Lifecycle action recorded for a task."""

    START = "start"
    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"


class TaskState(Enum):
    """State of a task derived by folding its events."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"

    @property
    def is_ongoing(self) -> bool:
        return self is not TaskState.STOPPED


@dataclass(frozen=True)
class TaskEvent:
    """A single immutable entry of the event log."""

    id: int
    task_name: str
    kind: EventKind
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_name": self.task_name,
            "kind": self.kind.value,
            "timestamp": format_timestamp(self.timestamp),
        }

    def to_response(self) -> EventResponse:
        return EventResponse(**self.to_dict())


@dataclass(frozen=True)
class Interval:
    """A maximal span during which a task was running.

    ``end`` is ``None`` while the span is still open, i.e. the task is
    running right now. Open intervals are measured against the query time.
    """

    task_name: str
    start: datetime
    end: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def resolved_end(self, now: datetime | None = None) -> datetime:
        """Concrete end of the interval, using ``now`` for an open one."""
        if self.end is not None:
            return self.end
        return now or utc_now()

    def duration(self, now: datetime | None = None) -> timedelta:
        """Running time, never negative; an open interval starting after ``now`` counts zero."""
        return max(self.resolved_end(now) - self.start, timedelta())

    def to_response(self, now: datetime | None = None) -> IntervalResponse:
        return IntervalResponse(
            start=format_timestamp(self.start),
            end=format_timestamp(self.end) if self.end is not None else None,
            seconds=self.duration(now).total_seconds(),
        )
