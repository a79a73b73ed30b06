"""Business operations on task lists, tasks and list memberships."""

from __future__ import annotations

import uuid
from typing import Optional

from .common import (
    AuthenticatedUser,
    BadRequestError,
    format_datetime,
    parse_datetime,
    utc_now,
)
from .task_models import (
    BulkCreateTasksRequest,
    CreateTaskListRequest,
    CreateTaskRequest,
    NewTaskListRecord,
    NewTaskRecord,
    ReorderTasksRequest,
    TaskChanges,
    TaskListChanges,
    TaskListMembershipRecord,
    TaskListRecord,
    TaskListResponse,
    TaskRecord,
    TaskResponse,
    UpdateTaskListRequest,
    UpdateTaskRequest,
)
from .task_repository import TasksRepository

MAX_BULK_TASKS = 200


def _optional_datetime(text: Optional[str]):
    return parse_datetime(text) if text is not None else None


class TasksService:
    """Manages a user's task lists, tasks and which lists each task belongs to."""

    def __init__(self, repo: TasksRepository) -> None:
        self._repo = repo

    # ── Task lists ────────────────────────────────────────────────────────────

    def list_task_lists(self, user: AuthenticatedUser) -> list[TaskListResponse]:
        return [task_list_to_response(record) for record in self._repo.find_by_user(user.user_id)]

    def create_task_list(
        self, user: AuthenticatedUser, request: CreateTaskListRequest
    ) -> TaskListResponse:
        now = utc_now()
        record = NewTaskListRecord(
            id=str(uuid.uuid4()),
            user_id=user.user_id,
            name=request.name,
            color=request.color,
            created_at=now,
            updated_at=now,
        )
        return task_list_to_response(self._repo.insert(record))

    def get_task_list(self, user: AuthenticatedUser, list_id: str) -> TaskListResponse:
        return task_list_to_response(self._repo.find_by_id(list_id, user.user_id))

    def update_task_list(
        self, user: AuthenticatedUser, list_id: str, request: UpdateTaskListRequest
    ) -> TaskListResponse:
        changes = TaskListChanges(updated_at=utc_now(), name=request.name, color=request.color)
        return task_list_to_response(self._repo.update(list_id, user.user_id, changes))

    def delete_task_list(self, user: AuthenticatedUser, list_id: str) -> None:
        """Delete a list; its tasks are kept, only their memberships go."""
        self._repo.find_by_id(list_id, user.user_id)
        self._repo.delete_memberships_by_list(list_id)
        self._repo.delete(list_id, user.user_id)

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def list_tasks(
        self, user: AuthenticatedUser, list_id: Optional[str] = None
    ) -> list[TaskResponse]:
        if list_id is not None:
            self._repo.find_by_id(list_id, user.user_id)
            records = self._repo.find_tasks_by_list_id(user.user_id, list_id)
            return [task_to_response(record, list_id) for record in records]
        return [
            task_to_response(record, member_of)
            for record, member_of in self._repo.find_all_tasks_with_list_id_by_user(user.user_id)
        ]

    def create_task(self, user: AuthenticatedUser, request: CreateTaskRequest) -> TaskResponse:
        now = utc_now()
        record = NewTaskRecord(
            id=str(uuid.uuid4()),
            user_id=user.user_id,
            title=request.title,
            notes=request.notes,
            done=False,
            due_date=_optional_datetime(request.due_date),
            position=request.position if request.position is not None else 0,
            created_at=now,
            updated_at=now,
        )
        return task_to_response(self._repo.insert_task(record), None)

    def bulk_create_tasks(
        self, user: AuthenticatedUser, request: BulkCreateTasksRequest
    ) -> list[TaskResponse]:
        """Create up to 200 tasks at once, all added to the given list."""
        if not request.tasks:
            raise BadRequestError("tasks must not be empty")
        if len(request.tasks) > MAX_BULK_TASKS:
            raise BadRequestError("tasks must not exceed 200 per request")
        self._repo.find_by_id(request.list_id, user.user_id)

        now = utc_now()
        task_records: list[NewTaskRecord] = []
        memberships: list[TaskListMembershipRecord] = []
        for position, item in enumerate(request.tasks):
            task_id = str(uuid.uuid4())
            task_records.append(
                NewTaskRecord(
                    id=task_id,
                    user_id=user.user_id,
                    title=item.title,
                    notes=item.notes,
                    done=False,
                    due_date=_optional_datetime(item.due_date),
                    position=position,
                    created_at=now,
                    updated_at=now,
                )
            )
            memberships.append(TaskListMembershipRecord(task_id=task_id, list_id=request.list_id))

        saved = self._repo.bulk_insert_tasks_with_memberships(task_records, memberships)
        return [task_to_response(record, None) for record in saved]

    def get_task(self, user: AuthenticatedUser, task_id: str) -> TaskResponse:
        return task_to_response(self._repo.find_task_by_id(task_id, user.user_id), None)

    def update_task(
        self, user: AuthenticatedUser, task_id: str, request: UpdateTaskRequest
    ) -> TaskResponse:
        changes = TaskChanges(
            updated_at=utc_now(),
            title=request.title,
            notes=request.notes,
            done=request.done,
            due_date=_optional_datetime(request.due_date),
            position=request.position,
        )
        return task_to_response(self._repo.update_task(task_id, user.user_id, changes), None)

    def delete_task(self, user: AuthenticatedUser, task_id: str) -> None:
        self._repo.delete_task(task_id, user.user_id)

    def reorder_tasks(self, user: AuthenticatedUser, request: ReorderTasksRequest) -> None:
        """Give the listed tasks positions in the order they are named."""
        self._repo.find_by_id(request.list_id, user.user_id)
        in_list = {
            task.id for task in self._repo.find_tasks_by_list_id(user.user_id, request.list_id)
        }
        for task_id in request.task_ids:
            if task_id not in in_list:
                raise BadRequestError(f"Task {task_id} is not in list {request.list_id}")
        updates = [(task_id, position) for position, task_id in enumerate(request.task_ids)]
        self._repo.bulk_update_positions(user.user_id, updates, utc_now())

    # ── Memberships ───────────────────────────────────────────────────────────

    def add_task_to_list(self, user: AuthenticatedUser, task_id: str, list_id: str) -> None:
        """Add a task to a list; adding it twice is not an error."""
        self._repo.find_task_by_id(task_id, user.user_id)
        self._repo.find_by_id(list_id, user.user_id)
        if self._repo.membership_exists(task_id, list_id):
            return
        self._repo.insert_membership(TaskListMembershipRecord(task_id=task_id, list_id=list_id))

    def remove_task_from_list(
        self, user: AuthenticatedUser, task_id: str, list_id: str
    ) -> None:
        self._repo.find_task_by_id(task_id, user.user_id)
        self._repo.find_by_id(list_id, user.user_id)
        self._repo.delete_membership(task_id, list_id)


def task_list_to_response(record: TaskListRecord) -> TaskListResponse:
    """Shape a stored task list for clients."""
    return TaskListResponse(
        id=record.id,
        name=record.name,
        color=record.color,
        created_at=format_datetime(record.created_at),
        updated_at=format_datetime(record.updated_at),
    )


def task_to_response(record: TaskRecord, list_id: Optional[str]) -> TaskResponse:
    """Shape a stored task for clients, with the list it was found through."""
    return TaskResponse(
        id=record.id,
        title=record.title,
        notes=record.notes,
        done=record.done,
        due_date=format_datetime(record.due_date) if record.due_date is not None else None,
        position=record.position,
        list_id=list_id,
        created_at=format_datetime(record.created_at),
        updated_at=format_datetime(record.updated_at),
    )