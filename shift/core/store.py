"""Append-only sqlite event log."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..utils import format_timestamp, parse_iso
from .errors import StoreError
from .events import EventKind, TaskEvent

if TYPE_CHECKING:
    from .report import Window

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS task_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_name TEXT NOT NULL,
        kind TEXT NOT NULL CHECK (kind IN ('start', 'stop', 'pause', 'resume')),
        timestamp TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_task_events_task
        ON task_events(task_name, timestamp, id);
    CREATE INDEX IF NOT EXISTS idx_task_events_time
        ON task_events(timestamp);
"""


class EventLog(Protocol):
    """What the tracker needs from an event store."""

    def append(self, task_name: str, kind: EventKind, timestamp: datetime) -> TaskEvent: ...

    def events_for(self, task_name: str) -> list[TaskEvent]: ...

    def all_task_names(self) -> set[str]: ...


class EventStore:
    """Task events in a single sqlite table.

    Rows are only ever inserted. Events of one task come back ordered by
    timestamp, ties broken by insertion order. Use as a context manager to
    release the connection when a command is done::

        with EventStore.open(path) as store:
            ...
    """

    def __init__(self, connection: sqlite3.Connection, path: str = ":memory:"):
        self.path = path
        self._conn = connection
        self._conn.row_factory = sqlite3.Row
        self._batch_depth = 0
        self._run_migrations()

    @classmethod
    def open(cls, path: Path | str = ":memory:") -> EventStore:
        """Open (and create if needed) the store at ``path``."""
        target = str(path)
        try:
            if target != ":memory:":
                Path(target).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(target)
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"Could not open event store at {target}: {exc}") from exc
        store = cls(connection, path=target)
        logger.debug("Event store opened at %s", target)
        return store

    def __enter__(self) -> EventStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()
        logger.debug("Event store at %s closed", self.path)

    @contextmanager
    def transaction(self) -> Iterator[EventStore]:
        """Group several appends so they land together or not at all."""
        self._batch_depth += 1
        try:
            yield self
        except Exception:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._conn.rollback()
            raise
        self._batch_depth -= 1
        if self._batch_depth == 0:
            self._commit()

    def append(self, task_name: str, kind: EventKind, timestamp: datetime) -> TaskEvent:
        """Insert one event and return it with its new id."""
        stamp = format_timestamp(timestamp)
        try:
            cursor = self._conn.execute(
                "INSERT INTO task_events (task_name, kind, timestamp) VALUES (?, ?, ?)",
                (task_name, kind.value, stamp),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Could not append {kind.value} for '{task_name}': {exc}") from exc
        if self._batch_depth == 0:
            self._commit()
        event = TaskEvent(
            id=int(cursor.lastrowid),
            task_name=task_name,
            kind=kind,
            timestamp=parse_iso(stamp),
        )
        logger.debug("Appended event %s: %s %s at %s", event.id, kind.value, task_name, stamp)
        return event

    def events_for(self, task_name: str) -> list[TaskEvent]:
        """Events of one task, oldest first."""
        rows = self._query(
            "SELECT * FROM task_events WHERE task_name = ? ORDER BY timestamp, id",
            (task_name,),
        )
        return [_row_to_event(row) for row in rows]

    def all_task_names(self) -> set[str]:
        rows = self._query("SELECT DISTINCT task_name FROM task_events", ())
        return {row["task_name"] for row in rows}

    def list_events(
        self,
        window: Window | None = None,
        tasks: Collection[str] | None = None,
        count: int | None = None,
    ) -> list[TaskEvent]:
        """Events newest first, optionally bounded by time, task and count."""
        clauses: list[str] = []
        params: list = []
        if window is not None and window.start is not None:
            clauses.append("timestamp >= ?")
            params.append(format_timestamp(window.start))
        if window is not None and window.end is not None:
            clauses.append("timestamp <= ?")
            params.append(format_timestamp(window.end))
        if tasks:
            names = sorted(set(tasks))
            clauses.append(f"task_name IN ({', '.join('?' for _ in names)})")
            params.extend(names)

        query = "SELECT * FROM task_events"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(-1 if count is None else count)
        return [_row_to_event(row) for row in self._query(query, tuple(params))]

    def count(self) -> int:
        rows = self._query("SELECT COUNT(*) AS total FROM task_events", ())
        return int(rows[0]["total"])

    def _query(self, query: str, params: tuple) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read event store: {exc}") from exc

    def _commit(self) -> None:
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not commit to event store: {exc}") from exc

    def _run_migrations(self) -> None:
        try:
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not initialize event store at {self.path}: {exc}") from exc


def _row_to_event(row: sqlite3.Row) -> TaskEvent:
    """Convert a database row to a TaskEvent."""
    timestamp = parse_iso(row["timestamp"])
    if timestamp is None:
        raise StoreError(f"Event {row['id']} has an unreadable timestamp: {row['timestamp']!r}")
    try:
        kind = EventKind(row["kind"])
    except ValueError as exc:
        raise StoreError(f"Event {row['id']} has an unknown kind: {row['kind']!r}") from exc
    return TaskEvent(id=int(row["id"]), task_name=row["task_name"], kind=kind, timestamp=timestamp)
