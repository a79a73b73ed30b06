"""Task and task-list records and the request and response shapes of the tasks API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from .common import BadRequestError

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


# ── Stored records ────────────────────────────────────────────────────────────


@dataclass
class TaskListRecord:
    """A row of the task_lists table."""

    id: str
    user_id: str
    name: str
    color: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass
class NewTaskListRecord:
    """The values stored when a task list is created."""

    id: str
    user_id: str
    name: str
    color: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass
class TaskListChanges:
    """A partial update of a task list; None keeps the stored value."""

    updated_at: datetime
    name: Optional[str] = None
    color: Optional[str] = None


@dataclass
class TaskRecord:
    """A row of the tasks table."""

    id: str
    user_id: str
    title: str
    notes: Optional[str]
    done: bool
    due_date: Optional[datetime]
    position: int
    created_at: datetime
    updated_at: datetime


@dataclass
class NewTaskRecord:
    """The values stored when a task is created."""

    id: str
    user_id: str
    title: str
    notes: Optional[str]
    done: bool
    due_date: Optional[datetime]
    position: int
    created_at: datetime
    updated_at: datetime


@dataclass
class TaskChanges:
    """A partial update of a task; None keeps the stored value."""

    updated_at: datetime
    title: Optional[str] = None
    notes: Optional[str] = None
    done: Optional[bool] = None
    due_date: Optional[datetime] = None
    position: Optional[int] = None


@dataclass(frozen=True)
class TaskListMembershipRecord:
    """A task's membership of a task list."""

    task_id: str
    list_id: str


# ── Request parsing helpers ───────────────────────────────────────────────────


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise BadRequestError("Request body must be a JSON object")
    return data


def _required_str(data: Mapping[str, Any], key: str) -> str:
    if data.get(key) is None:
        raise BadRequestError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise BadRequestError(f"invalid type for `{key}`: expected a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise BadRequestError(f"invalid type for `{key}`: expected a string")
    return value


def _optional_bool(data: Mapping[str, Any], key: str) -> Optional[bool]:
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise BadRequestError(f"invalid type for `{key}`: expected a boolean")
    return value


def _optional_i32(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequestError(f"invalid type for `{key}`: expected an integer")
    if not _I32_MIN <= value <= _I32_MAX:
        raise BadRequestError(f"invalid value for `{key}`: out of range")
    return value


def _required_list(data: Mapping[str, Any], key: str) -> list:
    if data.get(key) is None:
        raise BadRequestError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, list):
        raise BadRequestError(f"invalid type for `{key}`: expected a sequence")
    return value


# ── Task list requests and responses ──────────────────────────────────────────


@dataclass
class CreateTaskListRequest:
    """Body of a task list creation request."""

    name: str
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CreateTaskListRequest":
        data = _as_mapping(data)
        return cls(name=_required_str(data, "name"), color=_optional_str(data, "color"))


@dataclass
class UpdateTaskListRequest:
    """Body of a task list update request; every field is optional."""

    name: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "UpdateTaskListRequest":
        data = _as_mapping(data)
        return cls(name=_optional_str(data, "name"), color=_optional_str(data, "color"))


@dataclass
class TaskListResponse:
    """A task list as returned to clients."""

    id: str
    name: str
    color: Optional[str]
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ── Task requests and responses ───────────────────────────────────────────────


@dataclass
class CreateTaskRequest:
    """Body of a task creation request; due_date is ISO 8601."""

    title: str
    notes: Optional[str] = None
    due_date: Optional[str] = None
    position: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CreateTaskRequest":
        data = _as_mapping(data)
        return cls(
            title=_required_str(data, "title"),
            notes=_optional_str(data, "notes"),
            due_date=_optional_str(data, "dueDate"),
            position=_optional_i32(data, "position"),
        )


@dataclass
class BulkCreateTaskItem:
    """One task of a bulk creation request."""

    title: str
    notes: Optional[str] = None
    due_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "BulkCreateTaskItem":
        data = _as_mapping(data)
        return cls(
            title=_required_str(data, "title"),
            notes=_optional_str(data, "notes"),
            due_date=_optional_str(data, "dueDate"),
        )


@dataclass
class BulkCreateTasksRequest:
    """Tasks to create together, all added to the given list."""

    list_id: str
    tasks: list[BulkCreateTaskItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "BulkCreateTasksRequest":
        data = _as_mapping(data)
        list_id = _required_str(data, "listId")
        items = [BulkCreateTaskItem.from_dict(item) for item in _required_list(data, "tasks")]
        return cls(list_id=list_id, tasks=items)


@dataclass
class UpdateTaskRequest:
    """Body of a task update request; every field is optional."""

    title: Optional[str] = None
    notes: Optional[str] = None
    done: Optional[bool] = None
    due_date: Optional[str] = None
    position: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "UpdateTaskRequest":
        data = _as_mapping(data)
        return cls(
            title=_optional_str(data, "title"),
            notes=_optional_str(data, "notes"),
            done=_optional_bool(data, "done"),
            due_date=_optional_str(data, "dueDate"),
            position=_optional_i32(data, "position"),
        )


@dataclass
class ReorderTasksRequest:
    """The tasks of a list in their desired new order (first is position 0)."""

    list_id: str
    task_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ReorderTasksRequest":
        data = _as_mapping(data)
        list_id = _required_str(data, "listId")
        task_ids = _required_list(data, "taskIds")
        if not all(isinstance(task_id, str) for task_id in task_ids):
            raise BadRequestError("invalid type for `taskIds`: expected strings")
        return cls(list_id=list_id, task_ids=list(task_ids))


@dataclass
class TaskResponse:
    """A task as returned to clients."""

    id: str
    title: str
    notes: Optional[str]
    done: bool
    due_date: Optional[str]
    position: int
    list_id: Optional[str]
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "notes": self.notes,
            "done": self.done,
            "dueDate": self.due_date,
            "position": self.position,
            "listId": self.list_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }