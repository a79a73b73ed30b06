"""Calendar service with reminders, task lists and tasks over a JSON HTTP API backed by SQLite."""

__version__ = "0.2.0"