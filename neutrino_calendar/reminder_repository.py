"""Storage of reminders."""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from .common import InternalError, NotFoundError
from .database import Database
from .reminder_models import NewReminderRecord, ReminderChanges, ReminderRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, title, due_time, completed, recurrence_rule, "
    "linked_event_id, notified_at, created_at, updated_at"
)


def _record(row: sqlite3.Row) -> ReminderRecord:
    return ReminderRecord(**dict(row))


class RemindersRepository:
    """Reads and writes the reminders table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._db.connection() as conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("DB %s error: %r", action, exc)
            raise InternalError("Database error") from exc

    def _fetch(self, conn: sqlite3.Connection, reminder_id: str) -> ReminderRecord:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE id = ?", (reminder_id,)
        ).fetchone()
        if row is None:
            raise InternalError("Database error")
        return _record(row)

    def insert(self, record: NewReminderRecord) -> ReminderRecord:
        values = dataclasses.asdict(record)
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        with self._session("insert reminder") as conn:
            conn.execute(
                f"INSERT INTO reminders ({columns}) VALUES ({marks})", tuple(values.values())
            )
            return self._fetch(conn, record.id)

    def find_by_user(self, user_id: str) -> list[ReminderRecord]:
        with self._session("list reminders") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM reminders WHERE user_id = ? ORDER BY due_time ASC",
                (user_id,),
            ).fetchall()
        return [_record(row) for row in rows]

    def find_by_event(self, user_id: str, event_id: str) -> list[ReminderRecord]:
        with self._session("list event reminders") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM reminders "
                "WHERE user_id = ? AND linked_event_id = ? ORDER BY due_time ASC",
                (user_id, event_id),
            ).fetchall()
        return [_record(row) for row in rows]

    def find_by_id(self, reminder_id: str, user_id: str) -> ReminderRecord:
        with self._session("get reminder") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM reminders WHERE id = ? AND user_id = ?",
                (reminder_id, user_id),
            ).fetchone()
        if row is None:
            raise NotFoundError("Reminder not found")
        return _record(row)

    def update(
        self, reminder_id: str, user_id: str, changes: ReminderChanges
    ) -> ReminderRecord:
        assignments = {
            field.name: getattr(changes, field.name)
            for field in dataclasses.fields(changes)
            if getattr(changes, field.name) is not None
        }
        clause = ", ".join(f"{column} = ?" for column in assignments)
        with self._session("update reminder") as conn:
            cursor = conn.execute(
                f"UPDATE reminders SET {clause} WHERE id = ? AND user_id = ?",
                (*assignments.values(), reminder_id, user_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Reminder not found")
            return self._fetch(conn, reminder_id)

    def delete(self, reminder_id: str, user_id: str) -> None:
        with self._session("delete reminder") as conn:
            cursor = conn.execute(
                "DELETE FROM reminders WHERE id = ? AND user_id = ?", (reminder_id, user_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Reminder not found")

    def find_due(self, cutoff: datetime) -> list[ReminderRecord]:
        """Return reminders due by ``cutoff`` that are neither completed nor notified."""
        with self._session("find due reminders") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM reminders "
                "WHERE due_time <= ? AND completed = 0 AND notified_at IS NULL",
                (cutoff,),
            ).fetchall()
        return [_record(row) for row in rows]

    def mark_notified(self, reminder_id: str, at: datetime) -> None:
        """Stamp ``notified_at`` so the reminder is not fired again."""
        with self._session("mark reminder notified") as conn:
            conn.execute(
                "UPDATE reminders SET notified_at = ?, updated_at = ? WHERE id = ?",
                (at, at, reminder_id),
            )