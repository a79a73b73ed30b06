"""Background worker that fires due reminders."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Optional

from .common import ApiError, utc_now
from .reminder_models import ReminderRecord
from .reminder_repository import RemindersRepository

logger = logging.getLogger(__name__)


def process_due(repo: RemindersRepository, now: datetime) -> list[ReminderRecord]:
    """Fire every reminder due by ``now`` and stamp it as notified.

    Returns the reminders that were due. Recurring reminders are treated
    like one-time reminders once fired.
    """
    try:
        due = repo.find_due(now)
    except ApiError as exc:
        logger.error("Reminder engine: failed to query due reminders: %r", exc)
        return []
    if not due:
        return []

    logger.info("Reminder engine: %d reminder(s) due", len(due))
    for reminder in due:
        logger.warning(
            "REMINDER FIRED — notification pending delivery "
            "(reminder_id=%s user_id=%s title=%s due_time=%s)",
            reminder.id,
            reminder.user_id,
            reminder.title,
            reminder.due_time,
        )
        try:
            repo.mark_notified(reminder.id, now)
        except ApiError as exc:
            logger.error(
                "Reminder engine: failed to mark reminder %s notified: %r", reminder.id, exc
            )
    return due


def run(
    repo: RemindersRepository,
    poll_secs: float = 60,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Poll for due reminders every ``poll_secs`` seconds until ``stop_event`` is set."""
    stop = stop_event or threading.Event()
    logger.info("Reminder engine started (poll interval: %ss)", poll_secs)
    while not stop.is_set():
        process_due(repo, utc_now())
        if stop.wait(poll_secs):
            break