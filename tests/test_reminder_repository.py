from datetime import datetime, timedelta

import pytest

from neutrino_calendar.common import NotFoundError
from neutrino_calendar.database import Database
from neutrino_calendar.reminder_models import NewReminderRecord, ReminderChanges
from neutrino_calendar.reminder_repository import RemindersRepository

BASE = datetime(2024, 5, 1, 9, 0, 0)


@pytest.fixture
def repo():
    return RemindersRepository(Database(":memory:"))


def make(rid, user="u1", due=BASE, linked=None, completed=False, rule=None):
    return NewReminderRecord(
        id=rid,
        user_id=user,
        title=f"title-{rid}",
        due_time=due,
        completed=completed,
        recurrence_rule=rule,
        linked_event_id=linked,
        created_at=BASE,
        updated_at=BASE,
    )


def test_insert_returns_stored_record(repo):
    saved = repo.insert(make("r1", linked="ev1"))
    assert saved.id == "r1"
    assert saved.linked_event_id == "ev1"
    assert saved.due_time == BASE
    assert saved.notified_at is None
    assert saved.completed is False


def test_find_by_user_sorted_and_scoped(repo):
    repo.insert(make("late", due=BASE + timedelta(hours=2)))
    repo.insert(make("early", due=BASE))
    repo.insert(make("other", user="u2"))
    assert [r.id for r in repo.find_by_user("u1")] == ["early", "late"]


def test_find_by_event(repo):
    repo.insert(make("a", linked="ev1"))
    repo.insert(make("b", linked="ev2"))
    repo.insert(make("c", user="u2", linked="ev1"))
    assert [r.id for r in repo.find_by_event("u1", "ev1")] == ["a"]


def test_find_by_id_other_user(repo):
    repo.insert(make("r1"))
    with pytest.raises(NotFoundError) as info:
        repo.find_by_id("r1", "u2")
    assert info.value.message == "Reminder not found"


def test_update_changes_only_given_fields(repo):
    repo.insert(make("r1", rule="FREQ=DAILY"))
    later = BASE + timedelta(days=1)
    updated = repo.update("r1", "u1", ReminderChanges(updated_at=later, title="new"))
    assert updated.title == "new"
    assert updated.recurrence_rule == "FREQ=DAILY"
    assert updated.due_time == BASE
    assert updated.updated_at == later


def test_update_completed(repo):
    repo.insert(make("r1"))
    updated = repo.update("r1", "u1", ReminderChanges(updated_at=BASE, completed=True))
    assert updated.completed is True


def test_update_missing(repo):
    with pytest.raises(NotFoundError):
        repo.update("nope", "u1", ReminderChanges(updated_at=BASE, title="x"))


def test_delete(repo):
    repo.insert(make("r1"))
    repo.delete("r1", "u1")
    with pytest.raises(NotFoundError):
        repo.find_by_id("r1", "u1")
    with pytest.raises(NotFoundError):
        repo.delete("r1", "u1")


def test_find_due_filters(repo):
    repo.insert(make("due", due=BASE))
    repo.insert(make("future", due=BASE + timedelta(hours=1)))
    repo.insert(make("done", due=BASE, completed=True))
    repo.insert(make("fired", due=BASE))
    repo.mark_notified("fired", BASE)
    assert [r.id for r in repo.find_due(BASE)] == ["due"]


def test_mark_notified_sets_timestamps(repo):
    repo.insert(make("r1"))
    at = BASE + timedelta(minutes=5)
    repo.mark_notified("r1", at)
    stored = repo.find_by_id("r1", "u1")
    assert stored.notified_at == at
    assert stored.updated_at == at