"""SQLite storage with the calendar service's schema."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

_STORAGE_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    start_time TIMESTAMP NOT NULL,
    end_time TIMESTAMP NOT NULL,
    all_day BOOLEAN NOT NULL DEFAULT 0,
    location TEXT,
    recurrence_rule TEXT,
    external_id TEXT,
    source TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL,
    timezone TEXT
);
CREATE TABLE IF NOT EXISTS reminders (
    id TEXT PRIMARY KEY NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    due_time TIMESTAMP NOT NULL,
    completed BOOLEAN NOT NULL DEFAULT 0,
    recurrence_rule TEXT,
    linked_event_id TEXT,
    notified_at TIMESTAMP,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE TABLE IF NOT EXISTS event_attachments (
    id TEXT PRIMARY KEY NOT NULL,
    event_id TEXT NOT NULL,
    file_id TEXT,
    name TEXT,
    note TEXT
);
CREATE TABLE IF NOT EXISTS event_attendees (
    id TEXT PRIMARY KEY NOT NULL,
    event_id TEXT NOT NULL,
    email TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS calendar_connections (
    id TEXT PRIMARY KEY NOT NULL,
    user_id TEXT NOT NULL,
    provider TEXT NOT NULL,
    access_token TEXT NOT NULL,
    refresh_token TEXT,
    expires_at TIMESTAMP,
    sync_cursor TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL,
    email TEXT,
    caldav_url TEXT
);
CREATE TABLE IF NOT EXISTS task_lists (
    id TEXT PRIMARY KEY NOT NULL,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    color TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    notes TEXT,
    done BOOLEAN NOT NULL DEFAULT 0,
    due_date TIMESTAMP,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE TABLE IF NOT EXISTS task_list_memberships (
    task_id TEXT NOT NULL,
    list_id TEXT NOT NULL,
    PRIMARY KEY (task_id, list_id)
);
CREATE INDEX IF NOT EXISTS idx_reminders_user ON reminders (user_id, due_time);
CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks (user_id, position);
CREATE INDEX IF NOT EXISTS idx_memberships_list ON task_list_memberships (list_id);
"""


def _adapt_timestamp(value: datetime) -> str:
    # A fixed-width text form keeps lexical order equal to time order.
    return value.strftime(_STORAGE_FORMAT)


def _convert_timestamp(raw: bytes) -> datetime:
    text = raw.decode()
    try:
        return datetime.strptime(text, _STORAGE_FORMAT)
    except ValueError:
        return datetime.fromisoformat(text)


def _convert_boolean(raw: bytes) -> bool:
    return bool(int(raw))


sqlite3.register_adapter(datetime, _adapt_timestamp)
sqlite3.register_converter("TIMESTAMP", _convert_timestamp)
sqlite3.register_converter("BOOLEAN", _convert_boolean)


class Database:
    """A SQLite database holding the calendar tables.

    One connection is shared between threads and guarded by a lock, so an
    in-memory database behaves the same as a file.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        with self._lock:
            self._conn.executescript(_SCHEMA)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection; commit on success, roll back on error."""
        with self._lock:
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            else:
                self._conn.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection inside an explicit transaction."""
        with self._lock:
            if self._conn.in_transaction:
                self._conn.commit()
            self._conn.execute("BEGIN")
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            else:
                self._conn.commit()

    def check_health(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.connection() as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error:
            return False
        return True