"""Core business logic for shift."""

from .errors import (
    AmbiguousTarget,
    DataIntegrityError,
    InvalidTimestamp,
    InvalidTransition,
    ShiftError,
    StoreError,
)
from .events import EventKind, Interval, TaskEvent, TaskState
from .report import Report, TaskReport, Window, build_report, resolve_target, tasks_in_state
from .runtime import default_db_path, resolve_data_home
from .state_machine import fold_state, validate_transition
from .store import EventLog, EventStore
from .timeline import TaskTimeline, replay
from .tracker import TaskStatus, TaskTracker

__all__ = [
    "AmbiguousTarget",
    "DataIntegrityError",
    "InvalidTimestamp",
    "InvalidTransition",
    "ShiftError",
    "StoreError",
    "EventKind",
    "Interval",
    "TaskEvent",
    "TaskState",
    "Report",
    "TaskReport",
    "Window",
    "build_report",
    "resolve_target",
    "tasks_in_state",
    "default_db_path",
    "resolve_data_home",
    "fold_state",
    "validate_transition",
    "EventLog",
    "EventStore",
    "TaskTimeline",
    "replay",
    "TaskStatus",
    "TaskTracker",
]
