"""Reminder records and the request and response shapes of the reminders API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from .common import BadRequestError


@dataclass
class ReminderRecord:
    """A row of the reminders table."""

    id: str
    user_id: str
    title: str
    due_time: datetime
    completed: bool
    recurrence_rule: Optional[str]
    linked_event_id: Optional[str]
    notified_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


@dataclass
class NewReminderRecord:
    """The values stored when a reminder is created."""

    id: str
    user_id: str
    title: str
    due_time: datetime
    completed: bool
    recurrence_rule: Optional[str]
    linked_event_id: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass
class ReminderChanges:
    """A partial update; fields left as None keep their stored value."""

    updated_at: datetime
    title: Optional[str] = None
    due_time: Optional[datetime] = None
    completed: Optional[bool] = None
    recurrence_rule: Optional[str] = None
    notified_at: Optional[datetime] = None


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise BadRequestError("Request body must be a JSON object")
    return data


def _required_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data or data[key] is None:
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


@dataclass
class CreateReminderRequest:
    """Body of a reminder creation request; due_time is ISO 8601."""

    title: str
    due_time: str
    recurrence_rule: Optional[str] = None
    linked_event_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CreateReminderRequest":
        data = _as_mapping(data)
        return cls(
            title=_required_str(data, "title"),
            due_time=_required_str(data, "dueTime"),
            recurrence_rule=_optional_str(data, "recurrenceRule"),
            linked_event_id=_optional_str(data, "linkedEventId"),
        )


@dataclass
class UpdateReminderRequest:
    """Body of a reminder update request; every field is optional."""

    title: Optional[str] = None
    due_time: Optional[str] = None
    completed: Optional[bool] = None
    recurrence_rule: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "UpdateReminderRequest":
        data = _as_mapping(data)
        return cls(
            title=_optional_str(data, "title"),
            due_time=_optional_str(data, "dueTime"),
            completed=_optional_bool(data, "completed"),
            recurrence_rule=_optional_str(data, "recurrenceRule"),
        )


@dataclass
class ReminderResponse:
    """A reminder as returned to clients."""

    id: str
    title: str
    due_time: str
    completed: bool
    recurrence_rule: Optional[str]
    linked_event_id: Optional[str]
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "dueTime": self.due_time,
            "completed": self.completed,
            "recurrenceRule": self.recurrence_rule,
            "linkedEventId": self.linked_event_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }