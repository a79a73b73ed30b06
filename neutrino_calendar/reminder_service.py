"""Business operations on reminders."""

from __future__ import annotations

import uuid
from typing import Optional

from .common import AuthenticatedUser, format_datetime, parse_datetime, utc_now
from .reminder_models import (
    CreateReminderRequest,
    NewReminderRecord,
    ReminderChanges,
    ReminderRecord,
    ReminderResponse,
    UpdateReminderRequest,
)
from .reminder_repository import RemindersRepository


class RemindersService:
    """Creates, reads, updates and deletes a user's reminders."""

    def __init__(self, repo: RemindersRepository) -> None:
        self._repo = repo

    def list_reminders(
        self, user: AuthenticatedUser, event_id: Optional[str] = None
    ) -> list[ReminderResponse]:
        if event_id is not None:
            records = self._repo.find_by_event(user.user_id, event_id)
        else:
            records = self._repo.find_by_user(user.user_id)
        return [reminder_to_response(record) for record in records]

    def create_reminder(
        self, user: AuthenticatedUser, request: CreateReminderRequest
    ) -> ReminderResponse:
        now = utc_now()
        record = NewReminderRecord(
            id=str(uuid.uuid4()),
            user_id=user.user_id,
            title=request.title,
            due_time=parse_datetime(request.due_time),
            completed=False,
            recurrence_rule=request.recurrence_rule,
            linked_event_id=request.linked_event_id,
            created_at=now,
            updated_at=now,
        )
        return reminder_to_response(self._repo.insert(record))

    def get_reminder(self, user: AuthenticatedUser, reminder_id: str) -> ReminderResponse:
        return reminder_to_response(self._repo.find_by_id(reminder_id, user.user_id))

    def update_reminder(
        self, user: AuthenticatedUser, reminder_id: str, request: UpdateReminderRequest
    ) -> ReminderResponse:
        due_time = parse_datetime(request.due_time) if request.due_time is not None else None
        changes = ReminderChanges(
            updated_at=utc_now(),
            title=request.title,
            due_time=due_time,
            completed=request.completed,
            recurrence_rule=request.recurrence_rule,
        )
        return reminder_to_response(self._repo.update(reminder_id, user.user_id, changes))

    def delete_reminder(self, user: AuthenticatedUser, reminder_id: str) -> None:
        self._repo.delete(reminder_id, user.user_id)


def reminder_to_response(record: ReminderRecord) -> ReminderResponse:
    """Shape a stored reminder for clients."""
    return ReminderResponse(
        id=record.id,
        title=record.title,
        due_time=format_datetime(record.due_time),
        completed=record.completed,
        recurrence_rule=record.recurrence_rule,
        linked_event_id=record.linked_event_id,
        created_at=format_datetime(record.created_at),
        updated_at=format_datetime(record.updated_at),
    )