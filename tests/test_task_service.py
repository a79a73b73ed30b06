from datetime import datetime

import pytest

from neutrino_calendar.common import AuthenticatedUser, BadRequestError, NotFoundError
from neutrino_calendar.database import Database
from neutrino_calendar.task_models import (
    BulkCreateTaskItem,
    BulkCreateTasksRequest,
    CreateTaskListRequest,
    CreateTaskRequest,
    ReorderTasksRequest,
    TaskListRecord,
    TaskRecord,
    UpdateTaskListRequest,
    UpdateTaskRequest,
)
from neutrino_calendar.task_repository import TasksRepository
from neutrino_calendar.task_service import (
    TasksService,
    task_list_to_response,
    task_to_response,
)

ALICE = AuthenticatedUser("alice")
BOB = AuthenticatedUser("bob")


@pytest.fixture
def service():
    return TasksService(TasksRepository(Database(":memory:")))


def _list(service, name="Inbox", user=ALICE):
    return service.create_task_list(user, CreateTaskListRequest(name=name))


def _task(service, title="Task", user=ALICE, **kwargs):
    return service.create_task(user, CreateTaskRequest(title=title, **kwargs))


def test_create_and_get_task_list(service):
    created = service.create_task_list(ALICE, CreateTaskListRequest(name="Work", color="#ff0000"))
    fetched = service.get_task_list(ALICE, created.id)
    assert fetched == created
    assert fetched.name == "Work"
    assert fetched.color == "#ff0000"


def test_task_lists_are_ordered_by_name_and_per_user(service):
    _list(service, "Zeta")
    _list(service, "Alpha")
    _list(service, "Other", user=BOB)
    names = [item.name for item in service.list_task_lists(ALICE)]
    assert names == ["Alpha", "Zeta"]


def test_get_task_list_of_other_user_is_not_found(service):
    created = _list(service)
    with pytest.raises(NotFoundError, match="Task list not found"):
        service.get_task_list(BOB, created.id)


def test_update_task_list_keeps_unset_fields(service):
    created = service.create_task_list(ALICE, CreateTaskListRequest(name="Work", color="blue"))
    updated = service.update_task_list(ALICE, created.id, UpdateTaskListRequest(name="Jobs"))
    assert updated.name == "Jobs"
    assert updated.color == "blue"


def test_update_missing_task_list_raises(service):
    with pytest.raises(NotFoundError):
        service.update_task_list(ALICE, "missing", UpdateTaskListRequest(name="x"))


def test_delete_task_list_keeps_tasks(service):
    task_list = _list(service)
    task = _task(service)
    service.add_task_to_list(ALICE, task.id, task_list.id)
    service.delete_task_list(ALICE, task_list.id)
    with pytest.raises(NotFoundError):
        service.get_task_list(ALICE, task_list.id)
    assert service.get_task(ALICE, task.id).id == task.id
    assert [t.list_id for t in service.list_tasks(ALICE)] == [None]


def test_create_task_defaults(service):
    task = _task(service, title="Write", notes="draft")
    assert task.position == 0
    assert task.done is False
    assert task.due_date is None
    assert task.list_id is None
    assert task.notes == "draft"


def test_create_task_parses_due_date(service):
    task = _task(service, due_date="2024-01-02T03:04:05Z", position=4)
    assert task.due_date == "2024-01-02T03:04:05Z"
    assert task.position == 4


def test_create_task_with_invalid_due_date(service):
    with pytest.raises(BadRequestError, match="Invalid datetime: tomorrow"):
        _task(service, due_date="tomorrow")


def test_list_tasks_with_and_without_list(service):
    task_list = _list(service)
    inside = _task(service, title="inside", position=1)
    outside = _task(service, title="outside", position=2)
    service.add_task_to_list(ALICE, inside.id, task_list.id)

    in_list = service.list_tasks(ALICE, task_list.id)
    assert [(t.id, t.list_id) for t in in_list] == [(inside.id, task_list.id)]

    everything = service.list_tasks(ALICE)
    assert [(t.id, t.list_id) for t in everything] == [
        (inside.id, task_list.id),
        (outside.id, None),
    ]


def test_list_tasks_unknown_list(service):
    with pytest.raises(NotFoundError):
        service.list_tasks(ALICE, "missing")


def test_bulk_create_assigns_positions_and_memberships(service):
    task_list = _list(service)
    request = BulkCreateTasksRequest(
        list_id=task_list.id,
        tasks=[BulkCreateTaskItem(title=f"t{i}") for i in range(3)],
    )
    created = service.bulk_create_tasks(ALICE, request)
    assert [t.title for t in created] == ["t0", "t1", "t2"]
    assert [t.position for t in created] == [0, 1, 2]
    assert all(t.list_id is None for t in created)
    listed = service.list_tasks(ALICE, task_list.id)
    assert {t.id for t in listed} == {t.id for t in created}


def test_bulk_create_empty(service):
    task_list = _list(service)
    with pytest.raises(BadRequestError, match="tasks must not be empty"):
        service.bulk_create_tasks(ALICE, BulkCreateTasksRequest(list_id=task_list.id, tasks=[]))


def test_bulk_create_too_many(service):
    task_list = _list(service)
    items = [BulkCreateTaskItem(title="t") for _ in range(201)]
    with pytest.raises(BadRequestError, match="must not exceed 200"):
        service.bulk_create_tasks(ALICE, BulkCreateTasksRequest(list_id=task_list.id, tasks=items))


def test_bulk_create_accepts_exactly_200(service):
    task_list = _list(service)
    items = [BulkCreateTaskItem(title="t") for _ in range(200)]
    created = service.bulk_create_tasks(
        ALICE, BulkCreateTasksRequest(list_id=task_list.id, tasks=items)
    )
    assert len(created) == len(items)


def test_bulk_create_unknown_list(service):
    with pytest.raises(NotFoundError):
        service.bulk_create_tasks(
            ALICE, BulkCreateTasksRequest(list_id="missing", tasks=[BulkCreateTaskItem("t")])
        )


def test_bulk_create_with_bad_date_creates_nothing(service):
    task_list = _list(service)
    items = [BulkCreateTaskItem(title="ok"), BulkCreateTaskItem(title="bad", due_date="nope")]
    with pytest.raises(BadRequestError):
        service.bulk_create_tasks(ALICE, BulkCreateTasksRequest(list_id=task_list.id, tasks=items))
    assert service.list_tasks(ALICE) == []


def test_update_task(service):
    task = _task(service, title="old", notes="n")
    updated = service.update_task(
        ALICE, task.id, UpdateTaskRequest(title="new", done=True, due_date="2024-05-06T07:08:09Z")
    )
    assert updated.title == "new"
    assert updated.done is True
    assert updated.notes == "n"
    assert updated.due_date == "2024-05-06T07:08:09Z"


def test_update_task_of_other_user(service):
    task = _task(service)
    with pytest.raises(NotFoundError, match="Task not found"):
        service.update_task(BOB, task.id, UpdateTaskRequest(title="x"))


def test_delete_task(service):
    task = _task(service)
    service.delete_task(ALICE, task.id)
    with pytest.raises(NotFoundError):
        service.get_task(ALICE, task.id)
    with pytest.raises(NotFoundError):
        service.delete_task(ALICE, task.id)


def test_reorder_tasks(service):
    task_list = _list(service)
    created = service.bulk_create_tasks(
        ALICE,
        BulkCreateTasksRequest(
            list_id=task_list.id, tasks=[BulkCreateTaskItem(title=n) for n in "abc"]
        ),
    )
    new_order = [created[2].id, created[0].id, created[1].id]
    service.reorder_tasks(ALICE, ReorderTasksRequest(list_id=task_list.id, task_ids=new_order))
    assert [t.id for t in service.list_tasks(ALICE, task_list.id)] == new_order


def test_reorder_rejects_task_outside_list(service):
    task_list = _list(service)
    stray = _task(service)
    with pytest.raises(BadRequestError) as info:
        service.reorder_tasks(
            ALICE, ReorderTasksRequest(list_id=task_list.id, task_ids=[stray.id])
        )
    assert info.value.message == f"Task {stray.id} is not in list {task_list.id}"


def test_add_task_to_list_is_idempotent(service):
    task_list = _list(service)
    task = _task(service)
    service.add_task_to_list(ALICE, task.id, task_list.id)
    service.add_task_to_list(ALICE, task.id, task_list.id)
    assert [t.id for t in service.list_tasks(ALICE, task_list.id)] == [task.id]


def test_add_task_to_other_users_list(service):
    task_list = _list(service, user=BOB)
    task = _task(service)
    with pytest.raises(NotFoundError, match="Task list not found"):
        service.add_task_to_list(ALICE, task.id, task_list.id)


def test_remove_task_from_list(service):
    task_list = _list(service)
    task = _task(service)
    service.add_task_to_list(ALICE, task.id, task_list.id)
    service.remove_task_from_list(ALICE, task.id, task_list.id)
    assert service.list_tasks(ALICE, task_list.id) == []
    with pytest.raises(NotFoundError, match="Membership not found"):
        service.remove_task_from_list(ALICE, task.id, task_list.id)


def test_response_helpers_format_timestamps():
    stamp = datetime(2024, 1, 2, 3, 4, 5, 678000)
    list_response = task_list_to_response(
        TaskListRecord(id="l1", user_id="u", name="n", color=None, created_at=stamp, updated_at=stamp)
    )
    assert list_response.created_at == "2024-01-02T03:04:05Z"
    task_response = task_to_response(
        TaskRecord(
            id="t1", user_id="u", title="t", notes=None, done=False, due_date=stamp,
            position=3, created_at=stamp, updated_at=stamp,
        ),
        "l1",
    )
    assert task_response.due_date == "2024-01-02T03:04:05Z"
    assert task_response.list_id == "l1"
    assert task_response.position == 3