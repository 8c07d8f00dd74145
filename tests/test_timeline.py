"""Tests for replaying events into running intervals."""

from datetime import timedelta

import pytest

from shift.core.errors import DataIntegrityError
from shift.core.events import EventKind, Interval, TaskEvent, TaskState
from shift.core.timeline import TaskTimeline, replay


class TestReplay:
    """Tests for interval reconstruction."""

    def test_start_stop(self, make_events, t0):
        timeline = replay("task1", make_events("task1", ("start", 0), ("stop", 30)))

        assert list(timeline) == [Interval("task1", t0, t0 + timedelta(minutes=30))]
        assert timeline.state is TaskState.STOPPED

    def test_pause_excludes_paused_span(self, make_events, t0):
        events = make_events("task1", ("start", 0), ("pause", 10), ("resume", 20), ("stop", 30))
        timeline = replay("task1", events)

        assert timeline.intervals() == [
            Interval("task1", t0, t0 + timedelta(minutes=10)),
            Interval("task1", t0 + timedelta(minutes=20), t0 + timedelta(minutes=30)),
        ]
        assert timeline.total() == timedelta(minutes=20)

    def test_stop_while_paused(self, make_events, t0):
        events = make_events("task1", ("start", 0), ("pause", 15), ("stop", 45))
        timeline = replay("task1", events)

        assert timeline.intervals() == [Interval("task1", t0, t0 + timedelta(minutes=15))]
        assert timeline.state is TaskState.STOPPED

    def test_trailing_start_is_open(self, make_events, t0):
        timeline = replay("task1", make_events("task1", ("start", 0)))

        intervals = timeline.intervals()
        assert len(intervals) == 1
        assert intervals[0].is_open
        assert timeline.state is TaskState.RUNNING
        assert timeline.total(now=t0 + timedelta(hours=1)) == timedelta(hours=1)

    def test_paused_task_has_no_open_interval(self, make_events):
        timeline = replay("task1", make_events("task1", ("start", 0), ("pause", 5)))

        assert all(not interval.is_open for interval in timeline)
        assert timeline.state is TaskState.PAUSED

    def test_zero_duration_interval(self, make_events):
        timeline = replay("task1", make_events("task1", ("start", 0), ("stop", 0)))

        intervals = timeline.intervals()
        assert len(intervals) == 1
        assert intervals[0].duration() == timedelta(0)

    def test_several_sessions(self, make_events):
        events = make_events(
            "task1", ("start", 0), ("stop", 10), ("start", 60), ("pause", 70),
            ("resume", 80), ("stop", 100),
        )
        timeline = replay("task1", events)

        assert len(timeline.intervals()) == 3
        assert timeline.total() == timedelta(minutes=40)

    def test_empty_history(self):
        timeline = replay("task1", [])

        assert timeline.intervals() == []
        assert timeline.state is TaskState.STOPPED
        assert timeline.last_event is None
        assert timeline.total() == timedelta(0)

    def test_restartable_and_deterministic(self, make_events):
        events = make_events("task1", ("start", 0), ("pause", 10), ("resume", 20), ("stop", 30))
        timeline = replay("task1", events)

        first = list(timeline)
        second = list(timeline)
        assert first == second
        assert replay("task1", events).intervals() == first

    def test_current_session(self, make_events, t0):
        events = make_events(
            "task1", ("start", 0), ("stop", 10), ("start", 60), ("pause", 70), ("resume", 80),
        )
        session = replay("task1", events).current_session()

        assert [interval.start for interval in session] == [
            t0 + timedelta(minutes=60),
            t0 + timedelta(minutes=80),
        ]


class TestIntegrity:
    """Replay must refuse corrupt histories."""

    def test_illegal_transition(self, make_events):
        timeline = replay("task1", make_events("task1", ("stop", 0)))

        with pytest.raises(DataIntegrityError) as excinfo:
            list(timeline)
        assert excinfo.value.task_name == "task1"
        assert "not running" in str(excinfo.value)

    def test_illegal_transition_breaks_state(self, make_events):
        timeline = replay("task1", make_events("task1", ("start", 0), ("start", 5)))

        with pytest.raises(DataIntegrityError):
            timeline.state

    def test_non_monotonic_timestamps(self, make_events):
        events = make_events("task1", ("start", 10), ("stop", 5))

        with pytest.raises(DataIntegrityError) as excinfo:
            replay("task1", events).intervals()
        assert "precedes" in str(excinfo.value)

    def test_equal_timestamps_are_accepted(self, make_events):
        events = make_events("task1", ("start", 0), ("pause", 0), ("resume", 0), ("stop", 0))

        assert replay("task1", events).total() == timedelta(0)

    def test_foreign_event(self, t0):
        events = [
            TaskEvent(1, "task1", EventKind.START, t0),
            TaskEvent(2, "task2", EventKind.STOP, t0 + timedelta(minutes=1)),
        ]

        with pytest.raises(DataIntegrityError):
            list(TaskTimeline("task1", events))

    def test_error_raised_at_corrupt_event_only(self, make_events):
        events = make_events("task1", ("start", 0), ("stop", 10), ("pause", 20))
        intervals = iter(replay("task1", events))

        assert next(intervals).task_name == "task1"
        with pytest.raises(DataIntegrityError):
            next(intervals)


def test_open_interval_starting_after_now_counts_zero(make_events, t0):
    timeline = replay("task1", make_events("task1", ("start", 10)))

    assert timeline.total(now=t0) == timedelta(0)
    assert timeline.intervals()[0].to_response(now=t0).seconds == 0
