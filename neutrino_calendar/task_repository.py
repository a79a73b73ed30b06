"""Storage of task lists, tasks and list memberships."""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional

from .common import InternalError, NotFoundError
from .database import Database
from .task_models import (
    NewTaskListRecord,
    NewTaskRecord,
    TaskChanges,
    TaskListChanges,
    TaskListMembershipRecord,
    TaskListRecord,
    TaskRecord,
)

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("id", "user_id", "name", "color", "created_at", "updated_at")
_TASK_FIELDS = (
    "id", "user_id", "title", "notes", "done", "due_date", "position", "created_at", "updated_at"
)
_LIST_COLUMNS = ", ".join(_LIST_FIELDS)
_TASK_COLUMNS = ", ".join(_TASK_FIELDS)
_TASK_COLUMNS_T = ", ".join(f"t.{name} AS {name}" for name in _TASK_FIELDS)
_TASK_ORDER = "ORDER BY position ASC, created_at ASC"
_TASK_ORDER_T = "ORDER BY t.position ASC, t.created_at ASC"


def _list_record(row: sqlite3.Row) -> TaskListRecord:
    return TaskListRecord(**{name: row[name] for name in _LIST_FIELDS})


def _task_record(row: sqlite3.Row) -> TaskRecord:
    return TaskRecord(**{name: row[name] for name in _TASK_FIELDS})


def _assignments(changes) -> dict:
    return {
        field.name: getattr(changes, field.name)
        for field in dataclasses.fields(changes)
        if getattr(changes, field.name) is not None
    }


def _insert(conn: sqlite3.Connection, table: str, record) -> None:
    values = dataclasses.asdict(record)
    columns = ", ".join(values)
    marks = ", ".join("?" for _ in values)
    conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({marks})", tuple(values.values()))


class TasksRepository:
    """Reads and writes the task_lists, tasks and task_list_memberships tables."""

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

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._db.transaction() as conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("DB %s error: %r", action, exc)
            raise InternalError("Database error") from exc

    # ── Task lists ────────────────────────────────────────────────────────────

    def _fetch_list(self, conn: sqlite3.Connection, list_id: str) -> TaskListRecord:
        row = conn.execute(
            f"SELECT {_LIST_COLUMNS} FROM task_lists WHERE id = ?", (list_id,)
        ).fetchone()
        if row is None:
            raise InternalError("Database error")
        return _list_record(row)

    def insert(self, record: NewTaskListRecord) -> TaskListRecord:
        with self._session("insert task_list") as conn:
            _insert(conn, "task_lists", record)
            return self._fetch_list(conn, record.id)

    def find_by_user(self, user_id: str) -> list[TaskListRecord]:
        with self._session("list task_lists") as conn:
            rows = conn.execute(
                f"SELECT {_LIST_COLUMNS} FROM task_lists WHERE user_id = ? ORDER BY name ASC",
                (user_id,),
            ).fetchall()
        return [_list_record(row) for row in rows]

    def find_by_id(self, list_id: str, user_id: str) -> TaskListRecord:
        with self._session("get task_list") as conn:
            row = conn.execute(
                f"SELECT {_LIST_COLUMNS} FROM task_lists WHERE id = ? AND user_id = ?",
                (list_id, user_id),
            ).fetchone()
        if row is None:
            raise NotFoundError("Task list not found")
        return _list_record(row)

    def update(self, list_id: str, user_id: str, changes: TaskListChanges) -> TaskListRecord:
        assignments = _assignments(changes)
        clause = ", ".join(f"{column} = ?" for column in assignments)
        with self._session("update task_list") as conn:
            cursor = conn.execute(
                f"UPDATE task_lists SET {clause} WHERE id = ? AND user_id = ?",
                (*assignments.values(), list_id, user_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Task list not found")
            return self._fetch_list(conn, list_id)

    def delete(self, list_id: str, user_id: str) -> None:
        with self._session("delete task_list") as conn:
            cursor = conn.execute(
                "DELETE FROM task_lists WHERE id = ? AND user_id = ?", (list_id, user_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Task list not found")

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def _fetch_task(self, conn: sqlite3.Connection, task_id: str) -> TaskRecord:
        row = conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        if row is None:
            raise InternalError("Database error")
        return _task_record(row)

    def insert_task(self, record: NewTaskRecord) -> TaskRecord:
        with self._session("insert task") as conn:
            _insert(conn, "tasks", record)
            return self._fetch_task(conn, record.id)

    def find_all_tasks_by_user(self, user_id: str) -> list[TaskRecord]:
        with self._session("list all tasks") as conn:
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE user_id = ? {_TASK_ORDER}",
                (user_id,),
            ).fetchall()
        return [_task_record(row) for row in rows]

    def find_all_tasks_with_list_id_by_user(
        self, user_id: str
    ) -> list[tuple[TaskRecord, Optional[str]]]:
        """Return each task with the list it belongs to; a task in several lists repeats."""
        with self._session("list all tasks with list_id") as conn:
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS_T}, m.list_id AS list_id FROM tasks t "
                "LEFT JOIN task_list_memberships m ON m.task_id = t.id "
                f"WHERE t.user_id = ? {_TASK_ORDER_T}",
                (user_id,),
            ).fetchall()
        return [(_task_record(row), row["list_id"]) for row in rows]

    def find_tasks_by_list_id(self, user_id: str, list_id: str) -> list[TaskRecord]:
        with self._session("list tasks by list") as conn:
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS_T} FROM tasks t "
                "JOIN task_list_memberships m ON m.task_id = t.id "
                f"WHERE t.user_id = ? AND m.list_id = ? {_TASK_ORDER_T}",
                (user_id, list_id),
            ).fetchall()
        return [_task_record(row) for row in rows]

    def find_task_by_id(self, task_id: str, user_id: str) -> TaskRecord:
        with self._session("get task") as conn:
            row = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND user_id = ?",
                (task_id, user_id),
            ).fetchone()
        if row is None:
            raise NotFoundError("Task not found")
        return _task_record(row)

    def update_task(self, task_id: str, user_id: str, changes: TaskChanges) -> TaskRecord:
        assignments = _assignments(changes)
        clause = ", ".join(f"{column} = ?" for column in assignments)
        with self._session("update task") as conn:
            cursor = conn.execute(
                f"UPDATE tasks SET {clause} WHERE id = ? AND user_id = ?",
                (*assignments.values(), task_id, user_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Task not found")
            return self._fetch_task(conn, task_id)

    def bulk_insert_tasks_with_memberships(
        self,
        task_records: Iterable[NewTaskRecord],
        membership_records: Iterable[TaskListMembershipRecord],
    ) -> list[TaskRecord]:
        """Insert tasks and their memberships in one transaction; all or nothing."""
        task_records = list(task_records)
        membership_records = list(membership_records)
        ids = [record.id for record in task_records]
        marks = ", ".join("?" for _ in ids)
        with self._transaction("bulk_insert_tasks_with_memberships") as conn:
            for record in task_records:
                _insert(conn, "tasks", record)
            for membership in membership_records:
                _insert(conn, "task_list_memberships", membership)
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id IN ({marks}) {_TASK_ORDER}",
                ids,
            ).fetchall()
        return [_task_record(row) for row in rows]

    def bulk_update_positions(
        self, user_id: str, updates: Iterable[tuple[str, int]], now: datetime
    ) -> None:
        """Set the position of each given task of the user in one transaction."""
        with self._transaction("bulk_update_positions") as conn:
            conn.executemany(
                "UPDATE tasks SET position = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                [(position, now, task_id, user_id) for task_id, position in updates],
            )

    def delete_task(self, task_id: str, user_id: str) -> None:
        with self._session("delete task") as conn:
            cursor = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Task not found")

    def delete_memberships_by_list(self, list_id: str) -> None:
        with self._session("delete memberships by list") as conn:
            conn.execute("DELETE FROM task_list_memberships WHERE list_id = ?", (list_id,))

    # ── Memberships ───────────────────────────────────────────────────────────

    def insert_membership(self, record: TaskListMembershipRecord) -> TaskListMembershipRecord:
        with self._session("insert membership") as conn:
            _insert(conn, "task_list_memberships", record)
            row = conn.execute(
                "SELECT task_id, list_id FROM task_list_memberships "
                "WHERE task_id = ? AND list_id = ?",
                (record.task_id, record.list_id),
            ).fetchone()
            if row is None:
                raise InternalError("Database error")
        return TaskListMembershipRecord(task_id=row["task_id"], list_id=row["list_id"])

    def delete_membership(self, task_id: str, list_id: str) -> None:
        with self._session("delete membership") as conn:
            cursor = conn.execute(
                "DELETE FROM task_list_memberships WHERE task_id = ? AND list_id = ?",
                (task_id, list_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Membership not found")

    def membership_exists(self, task_id: str, list_id: str) -> bool:
        with self._session("membership exists check") as conn:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM task_list_memberships WHERE task_id = ? AND list_id = ?",
                (task_id, list_id),
            ).fetchone()
        return count > 0