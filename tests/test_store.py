"""Tests for the sqlite event store."""

import sqlite3
from datetime import timedelta

import pytest

from shift.core.errors import StoreError
from shift.core.events import EventKind
from shift.core.report import Window
from shift.core.store import EventStore


def at(t0, minutes):
    return t0 + timedelta(minutes=minutes)


class TestAppend:
    def test_append_returns_event_with_id(self, store, t0):
        first = store.append("task1", EventKind.START, t0)
        second = store.append("task1", EventKind.STOP, at(t0, 5))

        assert first.id < second.id
        assert first.kind is EventKind.START
        assert first.timestamp == t0
        assert first.timestamp.tzinfo is not None

    def test_events_are_persisted(self, tmp_path, t0):
        path = tmp_path / "events.db"
        with EventStore.open(path) as store:
            store.append("task1", EventKind.START, t0)

        with EventStore.open(path) as reopened:
            events = reopened.events_for("task1")

        assert [event.kind for event in events] == [EventKind.START]

    def test_open_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "events.db"
        with EventStore.open(path):
            pass

        assert path.exists()

    def test_in_memory_store(self, t0):
        with EventStore.open() as store:
            store.append("task1", EventKind.START, t0)
            assert store.count() == 1


class TestOrdering:
    def test_events_for_sorted_by_timestamp(self, store, t0):
        store.append("task1", EventKind.STOP, at(t0, 10))
        store.append("task1", EventKind.START, t0)

        events = store.events_for("task1")

        assert [event.kind for event in events] == [EventKind.START, EventKind.STOP]

    def test_equal_timestamps_keep_insertion_order(self, store, t0):
        for kind in (EventKind.START, EventKind.PAUSE, EventKind.RESUME, EventKind.STOP):
            store.append("task1", kind, t0)

        events = store.events_for("task1")

        assert [event.kind for event in events] == [
            EventKind.START,
            EventKind.PAUSE,
            EventKind.RESUME,
            EventKind.STOP,
        ]

    def test_events_for_only_returns_one_task(self, store, t0):
        store.append("task1", EventKind.START, t0)
        store.append("task2", EventKind.START, t0)

        assert {event.task_name for event in store.events_for("task1")} == {"task1"}
        assert store.events_for("missing") == []

    def test_all_task_names(self, store, t0):
        store.append("task1", EventKind.START, t0)
        store.append("task2", EventKind.START, t0)
        store.append("task1", EventKind.STOP, at(t0, 1))

        assert store.all_task_names() == {"task1", "task2"}


class TestListEvents:
    @pytest.fixture
    def populated(self, store, t0):
        store.append("task1", EventKind.START, t0)
        store.append("task2", EventKind.START, at(t0, 10))
        store.append("task1", EventKind.STOP, at(t0, 20))
        store.append("task2", EventKind.STOP, at(t0, 30))
        return store

    def test_newest_first(self, populated):
        events = populated.list_events()

        timestamps = [event.timestamp for event in events]
        assert timestamps == sorted(timestamps, reverse=True)
        assert len(events) == 4

    def test_count(self, populated, t0):
        events = populated.list_events(count=2)

        assert [event.timestamp for event in events] == [at(t0, 30), at(t0, 20)]

    def test_zero_count(self, populated):
        assert populated.list_events(count=0) == []

    def test_task_filter(self, populated):
        events = populated.list_events(tasks=["task2"])

        assert {event.task_name for event in events} == {"task2"}
        assert len(events) == 2

    def test_window_is_inclusive(self, populated, t0):
        events = populated.list_events(window=Window(at(t0, 10), at(t0, 20)))

        assert [event.timestamp for event in events] == [at(t0, 20), at(t0, 10)]

    def test_open_ended_window(self, populated, t0):
        events = populated.list_events(window=Window(start=at(t0, 25)))

        assert len(events) == 1


class TestTransaction:
    def test_commit_on_success(self, store, t0):
        with store.transaction():
            store.append("task1", EventKind.START, t0)
            store.append("task2", EventKind.START, t0)

        assert store.count() == 2

    def test_rollback_on_error(self, store, t0):
        store.append("task0", EventKind.START, t0)

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.append("task1", EventKind.START, t0)
                raise RuntimeError("boom")

        assert store.count() == 1
        assert store.all_task_names() == {"task0"}

    def test_nested_transactions_commit_once(self, store, t0):
        with store.transaction():
            with store.transaction():
                store.append("task1", EventKind.START, t0)
            store.append("task2", EventKind.START, t0)

        assert store.count() == 2


class TestFailures:
    def test_closed_store_raises_store_error(self, tmp_path):
        store = EventStore.open(tmp_path / "events.db")
        store.close()

        with pytest.raises(StoreError):
            store.all_task_names()

    def test_unreadable_timestamp(self, tmp_path, t0):
        path = tmp_path / "events.db"
        with EventStore.open(path) as store:
            store.append("task1", EventKind.START, t0)

        raw = sqlite3.connect(path)
        raw.execute(
            "INSERT INTO task_events (task_name, kind, timestamp) VALUES (?, ?, ?)",
            ("task1", "stop", "yesterday"),
        )
        raw.commit()
        raw.close()

        with EventStore.open(path) as store:
            with pytest.raises(StoreError):
                store.events_for("task1")

    def test_unknown_kind_rejected_by_schema(self, tmp_path):
        path = tmp_path / "events.db"
        with EventStore.open(path):
            pass

        raw = sqlite3.connect(path)
        with pytest.raises(sqlite3.IntegrityError):
            raw.execute(
                "INSERT INTO task_events (task_name, kind, timestamp) VALUES (?, ?, ?)",
                ("task1", "restart", "2026-03-02T09:00:00.000000+00:00"),
            )
        raw.close()

    def test_directory_that_cannot_be_created(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(StoreError) as excinfo:
            EventStore.open(blocker / "sub" / "events.db")
        assert isinstance(excinfo.value.__cause__, OSError)
