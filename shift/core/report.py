"""Windowed duration reports and ongoing-task queries."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..utils import format_timestamp, utc_now
from .errors import AmbiguousTarget
from .events import Interval, TaskState
from .schemas import ReportResponse, TaskReportResponse
from .store import EventLog
from .timeline import TaskTimeline, replay


@dataclass(frozen=True)
class Window:
    """A ``[start, end]`` query bound; ``None`` on either side is unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    def intersect(self, other: Window) -> Window:
        """Narrow this window by ``other``."""
        starts = [bound for bound in (self.start, other.start) if bound is not None]
        ends = [bound for bound in (self.end, other.end) if bound is not None]
        return Window(
            start=max(starts) if starts else None,
            end=min(ends) if ends else None,
        )

    def clip(self, interval: Interval, now: datetime | None = None) -> Interval | None:
        """Clip ``interval`` to the window.

        An open interval is closed at ``now`` first. Returns ``None`` when
        nothing of positive length is left.
        """
        start = interval.start
        end = interval.resolved_end(now)
        if self.start is not None and self.start > start:
            start = self.start
        if self.end is not None and self.end < end:
            end = self.end
        if end <= start:
            return None
        return Interval(interval.task_name, start, end)


@dataclass
class TaskReport:
    """Clipped intervals and total running time for one task."""

    task_name: str
    intervals: list[Interval] = field(default_factory=list)

    @property
    def total(self) -> timedelta:
        return sum((interval.duration() for interval in self.intervals), timedelta())

    def recent(self, count: int | None = None) -> list[Interval]:
        """The latest ``count`` intervals, oldest first; every interval for ``None``."""
        if count is None:
            return list(self.intervals)
        return self.intervals[max(len(self.intervals) - count, 0):]

    def to_response(self, count: int | None = None) -> TaskReportResponse:
        return TaskReportResponse(
            task_name=self.task_name,
            intervals=[interval.to_response() for interval in self.recent(count)],
            total_seconds=self.total.total_seconds(),
        )


@dataclass
class Report:
    """Per-task running time over a window, measured at ``generated_at``."""

    window: Window
    generated_at: datetime
    tasks: dict[str, TaskReport] = field(default_factory=dict)

    @property
    def total(self) -> timedelta:
        return sum((task.total for task in self.tasks.values()), timedelta())

    def __getitem__(self, task_name: str) -> TaskReport:
        return self.tasks[task_name]

    def to_response(self, count: int | None = None) -> ReportResponse:
        """JSON form; ``count`` limits the intervals listed per task, not the totals."""
        start, end = self.window.start, self.window.end
        return ReportResponse(
            window_from=format_timestamp(start) if start is not None else None,
            window_to=format_timestamp(end) if end is not None else None,
            generated_at=format_timestamp(self.generated_at),
            tasks=[self.tasks[name].to_response(count) for name in sorted(self.tasks)],
            total_seconds=self.total.total_seconds(),
        )


def report_task(
    timeline: Iterable[Interval],
    task_name: str,
    window: Window,
    now: datetime,
) -> TaskReport:
    """Clip every interval of one task to ``window``."""
    clipped = (window.clip(interval, now) for interval in timeline)
    return TaskReport(task_name, [interval for interval in clipped if interval is not None])


def build_report(
    store: EventLog,
    window: Window | None = None,
    task_filter: Collection[str] | None = None,
    now: datetime | None = None,
) -> Report:
    """Aggregate running time per task over ``window``.

    Args:
        store: Event log to replay.
        window: Bounds to clip to; ``None`` means the full history.
        task_filter: Task names to include; ``None`` includes every task.
            A name without events reports zero.
        now: Query time used to close open intervals.
    """
    window = window or Window()
    now = now or utc_now()
    names = set(task_filter) if task_filter is not None else store.all_task_names()

    report = Report(window=window, generated_at=now)
    for name in sorted(names):
        report.tasks[name] = report_task(timeline_for(store, name), name, window, now)
    return report


def timeline_for(store: EventLog, task_name: str) -> TaskTimeline:
    return replay(task_name, store.events_for(task_name))


def task_states(store: EventLog) -> dict[str, TaskState]:
    """Current derived state of every task in the store."""
    return {name: timeline_for(store, name).state for name in sorted(store.all_task_names())}


def tasks_in_state(store: EventLog, states: Collection[TaskState]) -> list[str]:
    """Names of tasks currently in one of ``states``, sorted."""
    return [name for name, state in task_states(store).items() if state in states]


def resolve_target(store: EventLog, action: str, states: Collection[TaskState]) -> str:
    """Return the only task in ``states``.

    Raises:
        AmbiguousTarget: when zero or several tasks qualify.
    """
    candidates = tasks_in_state(store, states)
    if len(candidates) != 1:
        raise AmbiguousTarget(action, candidates)
    return candidates[0]
