import threading
import time
from datetime import datetime, timedelta

import pytest

from neutrino_calendar.common import InternalError
from neutrino_calendar.database import Database
from neutrino_calendar.reminder_engine import process_due, run
from neutrino_calendar.reminder_models import NewReminderRecord, ReminderRecord
from neutrino_calendar.reminder_repository import RemindersRepository

BASE = datetime(2024, 5, 1, 9, 0, 0)


@pytest.fixture
def repo():
    return RemindersRepository(Database(":memory:"))


def add(repo, rid, due):
    repo.insert(
        NewReminderRecord(
            id=rid, user_id="u1", title=rid, due_time=due, completed=False,
            recurrence_rule=None, linked_event_id=None, created_at=BASE, updated_at=BASE,
        )
    )


def test_process_due_fires_once(repo):
    add(repo, "due", BASE)
    add(repo, "future", BASE + timedelta(hours=1))
    fired = process_due(repo, BASE)
    assert [r.id for r in fired] == ["due"]
    assert repo.find_by_id("due", "u1").notified_at == BASE
    assert repo.find_by_id("future", "u1").notified_at is None
    assert process_due(repo, BASE) == []


def test_process_due_query_failure_returns_empty():
    class FailingRepo:
        def find_due(self, cutoff):
            raise InternalError("Database error")

    assert process_due(FailingRepo(), BASE) == []


def test_process_due_continues_when_marking_fails():
    record = ReminderRecord(
        id="r1", user_id="u", title="t", due_time=BASE, completed=False,
        recurrence_rule=None, linked_event_id=None, notified_at=None,
        created_at=BASE, updated_at=BASE,
    )
    other = ReminderRecord(**{**record.__dict__, "id": "r2"})
    attempts = []

    class FlakyRepo:
        def find_due(self, cutoff):
            return [record, other]

        def mark_notified(self, reminder_id, at):
            attempts.append(reminder_id)
            raise InternalError("Database error")

    fired = process_due(FlakyRepo(), BASE)
    assert [r.id for r in fired] == ["r1", "r2"]
    assert attempts == ["r1", "r2"]


def test_run_fires_and_stops(repo):
    add(repo, "due", BASE)
    stop = threading.Event()
    worker = threading.Thread(target=run, args=(repo, 0.01, stop))
    worker.start()
    deadline = time.monotonic() + 5
    while repo.find_by_id("due", "u1").notified_at is None and time.monotonic() < deadline:
        time.sleep(0.01)
    stop.set()
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert repo.find_by_id("due", "u1").notified_at is not None
    assert repo.find_due(BASE + timedelta(days=365)) == []


def test_run_returns_when_already_stopped(repo):
    add(repo, "due", BASE)
    stop = threading.Event()
    stop.set()
    run(repo, 0.01, stop)
    assert repo.find_by_id("due", "u1").notified_at is None