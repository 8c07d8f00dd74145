"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from shift.core import EventKind, EventStore, TaskEvent, TaskTracker

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """A clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def store(tmp_path):
    """A fresh event store in a temporary directory."""
    with EventStore.open(tmp_path / "events.db") as event_store:
        yield event_store


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def tracker(store, clock):
    return TaskTracker(store, clock=clock)


@pytest.fixture
def make_events():
    """Build an in-memory event sequence from ``(kind, minutes after T0)`` pairs."""

    def _make(task_name: str, *steps: tuple[str, float]) -> list[TaskEvent]:
        return [
            TaskEvent(
                id=index,
                task_name=task_name,
                kind=EventKind(kind),
                timestamp=T0 + timedelta(minutes=minutes),
            )
            for index, (kind, minutes) in enumerate(steps, start=1)
        ]

    return _make
