"""Command orchestration: user intents to validated event-log writes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..utils import format_timestamp, to_utc, utc_now
from .errors import AmbiguousTarget, InvalidTimestamp, InvalidTransition
from .events import EventKind, TaskEvent, TaskState
from .report import Report, Window, build_report, resolve_target, tasks_in_state, timeline_for
from .schemas import StatusResponse
from .state_machine import ALREADY_RUNNING, SOURCE_STATES, validate_transition
from .store import EventStore
from .timeline import TaskTimeline

logger = logging.getLogger(__name__)

# Without a task name, stop and pause only consider running tasks.
UNNAMED_SOURCES: dict[EventKind, frozenset[TaskState]] = {
    EventKind.STOP: frozenset({TaskState.RUNNING}),
    EventKind.PAUSE: frozenset({TaskState.RUNNING}),
    EventKind.RESUME: frozenset({TaskState.PAUSED}),
}

ONGOING = frozenset({TaskState.RUNNING, TaskState.PAUSED})


@dataclass
class TaskStatus:
    """An ongoing task and its current session."""

    task_name: str
    state: TaskState
    since: datetime
    elapsed: timedelta

    def to_response(self) -> StatusResponse:
        return StatusResponse(
            task_name=self.task_name,
            state=self.state.value,
            since=format_timestamp(self.since),
            elapsed_seconds=self.elapsed.total_seconds(),
        )


class TaskTracker:
    """Start, stop, pause and resume tasks on top of an event store.

    Every write is checked against the state machine before it is appended,
    and every read is a fresh replay of the log.
    """

    def __init__(self, store: EventStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def timeline(self, task_name: str) -> TaskTimeline:
        return timeline_for(self.store, task_name)

    def state_of(self, task_name: str) -> TaskState:
        return self.timeline(task_name).state

    def start(self, task_name: str, at: datetime | None = None) -> TaskEvent:
        moment = self._moment(at)
        self._check(task_name, EventKind.START, moment)
        return self._append(task_name, EventKind.START, moment)

    def stop(
        self,
        task_name: str | None = None,
        at: datetime | None = None,
        all_tasks: bool = False,
    ) -> list[TaskEvent]:
        return self._apply(EventKind.STOP, task_name, at, all_tasks)

    def pause(
        self,
        task_name: str | None = None,
        at: datetime | None = None,
        all_tasks: bool = False,
    ) -> list[TaskEvent]:
        return self._apply(EventKind.PAUSE, task_name, at, all_tasks)

    def resume(
        self,
        task_name: str | None = None,
        at: datetime | None = None,
        all_tasks: bool = False,
    ) -> list[TaskEvent]:
        return self._apply(EventKind.RESUME, task_name, at, all_tasks)

    def switch(self, task_name: str, at: datetime | None = None) -> list[TaskEvent]:
        """Stop every ongoing task and start ``task_name`` at the same instant."""
        moment = self._moment(at)
        state = self.state_of(task_name)
        if state.is_ongoing:
            raise InvalidTransition(state, EventKind.START, ALREADY_RUNNING, task_name=task_name)

        ongoing = tasks_in_state(self.store, ONGOING)
        for name in ongoing:
            self._check(name, EventKind.STOP, moment)
        self._check(task_name, EventKind.START, moment)

        with self.store.transaction():
            events = [self._append(name, EventKind.STOP, moment) for name in ongoing]
            events.append(self._append(task_name, EventKind.START, moment))
        return events

    def status(self) -> list[TaskStatus]:
        """Running and paused tasks, sorted by name."""
        now = to_utc(self.clock())
        statuses = []
        for name in tasks_in_state(self.store, ONGOING):
            timeline = self.timeline(name)
            session_start = max(
                event.timestamp for event in timeline.events if event.kind is EventKind.START
            )
            elapsed = sum(
                (interval.duration(now) for interval in timeline.current_session()),
                timedelta(),
            )
            statuses.append(TaskStatus(name, timeline.state, session_start, elapsed))
        return statuses

    def log(
        self,
        window: Window | None = None,
        tasks: Collection[str] | None = None,
    ) -> Report:
        """Running time per task over ``window``; every task when ``tasks`` is empty."""
        now = to_utc(self.clock())
        return build_report(self.store, window, task_filter=tasks or None, now=now)

    def events(
        self,
        window: Window | None = None,
        tasks: Collection[str] | None = None,
        count: int | None = None,
    ) -> list[TaskEvent]:
        return self.store.list_events(window=window, tasks=tasks, count=count)

    def _apply(
        self,
        kind: EventKind,
        task_name: str | None,
        at: datetime | None,
        all_tasks: bool,
    ) -> list[TaskEvent]:
        if task_name is not None and all_tasks:
            raise ValueError("Give either a task name or all_tasks, not both")
        moment = self._moment(at)

        if task_name is not None:
            targets = [task_name]
        elif all_tasks:
            targets = tasks_in_state(self.store, SOURCE_STATES[kind])
            if not targets:
                raise AmbiguousTarget(kind.value, [])
        else:
            targets = [resolve_target(self.store, kind.value, UNNAMED_SOURCES[kind])]

        for name in targets:
            self._check(name, kind, moment)
        with self.store.transaction():
            return [self._append(name, kind, moment) for name in targets]

    def _check(self, task_name: str, kind: EventKind, moment: datetime) -> None:
        """Reject an event the state machine or the task's history forbids."""
        if not task_name or not task_name.strip():
            raise ValueError("Task name must not be empty")
        timeline = self.timeline(task_name)
        try:
            validate_transition(timeline.state, kind)
        except InvalidTransition as exc:
            raise exc.for_task(task_name) from None
        latest = timeline.last_event
        if latest is not None and moment < latest.timestamp:
            raise InvalidTimestamp(task_name, moment, latest=latest.timestamp)
        now = to_utc(self.clock())
        if moment > now:
            raise InvalidTimestamp(task_name, moment, now=now)

    def _append(self, task_name: str, kind: EventKind, moment: datetime) -> TaskEvent:
        event = self.store.append(task_name, kind, moment)
        logger.info("Recorded %s for '%s' at %s", kind.value, task_name, format_timestamp(moment))
        return event

    def _moment(self, at: datetime | None) -> datetime:
        return to_utc(at if at is not None else self.clock())
