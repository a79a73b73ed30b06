# neutrino-calendar

A small calendar back end that keeps reminders, task lists and tasks for
many users in a single SQLite database and serves them as JSON over HTTP.
Requests are authenticated with an HS256 bearer JWT whose `sub` claim names
the user; every record belongs to that user, and one user never sees
another's data.

A background reminder engine wakes up every 60 seconds, finds reminders
whose due time has passed and that are neither completed nor already
notified, logs a warning for each and stamps it as notified so it fires only
once.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Running the server

```
JWT_SECRET=secret neutrino-calendar
```

This creates the database tables on first use, starts the reminder engine
in a background thread and serves the API with Flask's built-in server.

Settings come from the environment:

| Variable       | Default       | Meaning |
|----------------|---------------|---------|
| `JWT_SECRET`   | (required)    | signing secret for bearer tokens; the command exits with status 1 if it is unset |
| `DATABASE_URL` | `calendar.db` | SQLite database path; a leading `sqlite://` is removed |
| `PORT`         | `8080`        | port to listen on (1–65535) |
| `LOG_LEVEL`    | `info`        | logging level name |

Command-line options override them:

```
neutrino-calendar --database calendar.db --host 127.0.0.1 --port 9000
```

## Embedding the application

The Flask application can also be built in code, for example to serve it
with a WSGI server of your choice or to use it in tests:

```python
from neutrino_calendar.app import create_app, jwt_user_resolver

jwt_secret = "secret"
app = create_app("calendar.db", jwt_user_resolver(jwt_secret))
```

`jwt_user_resolver` reads the `Authorization: Bearer <token>` header,
verifies the token with the given secret and yields the
`AuthenticatedUser` the handlers act on. Any callable taking the Flask
request and returning an `AuthenticatedUser` (or raising an `ApiError`)
can be passed instead. Note that `create_app` does not start the reminder
engine; only the `neutrino-calendar` command does.

Every response carries permissive CORS headers, and trailing slashes in
paths are ignored.

## HTTP API

All times are UTC. Input accepts an ISO 8601 value with an offset
(`2024-05-01T09:30:00Z`, `2024-05-01T11:30:00+02:00`), which is converted
to UTC, or a naive one with a `T` separator (`2024-05-01T09:30:00`), taken
as UTC. Output is always `YYYY-MM-DDTHH:MM:SSZ`. JSON field names are
camelCase.

Errors come back as

```json
{"error": {"code": "NOT_FOUND", "message": "Task not found"}}
```

with status 400 (`BAD_REQUEST`) for invalid input, 401 (`UNAUTHORIZED`) for
a missing or bad token, 404 (`NOT_FOUND`) for unknown or foreign records and
500 (`INTERNAL_ERROR`) for database failures.

### Health

| Method | Path      | Result |
|--------|-----------|--------|
| GET    | `/health` | `{"status": "ok"}`, or 503 with code `DB_UNHEALTHY` when a trivial query fails |

### Reminders

| Method | Path                          | Result |
|--------|-------------------------------|--------|
| GET    | `/api/v1/reminders`           | `{"reminders": [...]}` ordered by due time; `?eventId=` filters by linked event |
| POST   | `/api/v1/reminders`           | 201 with the new reminder (`title`, `dueTime`, optional `recurrenceRule`, `linkedEventId`) |
| GET    | `/api/v1/reminders/{id}`      | the reminder |
| PATCH  | `/api/v1/reminders/{id}`      | updates `title`, `dueTime`, `completed`, `recurrenceRule` |
| DELETE | `/api/v1/reminders/{id}`      | 204 |

### Task lists

| Method | Path                          | Result |
|--------|-------------------------------|--------|
| GET    | `/api/v1/tasks/lists`         | `{"taskLists": [...]}` ordered by name |
| POST   | `/api/v1/tasks/lists`         | 201 with the new list (`name`, optional `color`) |
| GET    | `/api/v1/tasks/lists/{id}`    | the list |
| PATCH  | `/api/v1/tasks/lists/{id}`    | updates `name`, `color` |
| DELETE | `/api/v1/tasks/lists/{id}`    | 204; the tasks themselves are kept, only their membership goes |

### Tasks

| Method | Path                                 | Result |
|--------|--------------------------------------|--------|
| GET    | `/api/v1/tasks`                      | array of tasks ordered by position, then creation, each with the `listId` it belongs to (a task in several lists appears once per list); `?listId=` restricts to one list |
| POST   | `/api/v1/tasks`                      | 201 with the new task (`title`, optional `notes`, `dueDate`, `position`, default 0) |
| POST   | `/api/v1/tasks/bulk`                 | 201 with `{"tasks": [...]}`; 1 to 200 tasks created in one transaction into `listId`, positioned 0, 1, 2, … |
| POST   | `/api/v1/tasks/reorder`              | 200; `taskIds` of one `listId` receive positions 0, 1, 2, …; 400 if an id is not in the list |
| GET    | `/api/v1/tasks/{id}`                 | the task |
| PATCH  | `/api/v1/tasks/{id}`                 | updates `title`, `notes`, `done`, `dueDate`, `position` |
| DELETE | `/api/v1/tasks/{id}`                 | 204 |
| POST   | `/api/v1/tasks/{id}/lists/{listId}`  | 204; adds the task to the list, succeeding quietly if it is already there |
| DELETE | `/api/v1/tasks/{id}/lists/{listId}`  | 204; 404 if the task was not in the list |

## Using the services directly

The layers below the HTTP API are usable on their own:

```python
from neutrino_calendar.common import AuthenticatedUser
from neutrino_calendar.database import Database
from neutrino_calendar.task_models import CreateTaskListRequest
from neutrino_calendar.task_repository import TasksRepository
from neutrino_calendar.task_service import TasksService

database = Database("calendar.db")
service = TasksService(TasksRepository(database))
user = AuthenticatedUser(user_id="user-1")

groceries = service.create_task_list(user, CreateTaskListRequest(name="Groceries", color=None))
print(groceries.to_dict())
```

The reminder side works the same way with `RemindersRepository` and
`RemindersService`. `reminder_engine.process_due(repo, now)` fires the
reminders due by `now` once and returns them; `reminder_engine.run(repo,
poll_secs, stop_event)` polls until the event is set.

Failures are raised as subclasses of `ApiError` — `BadRequestError`,
`NotFoundError` and `InternalError` — whose `to_dict()` gives the JSON error
body shown above.

## What it does not do

- Only reminders, task lists and tasks are served. The database also
  holds tables for events, event attendees, event attachments and external
  calendar connections, but no routes or services read or write them.
- Fired reminders are only logged; no e-mail, push or in-app notification
  is sent. Recurring reminders fire once, like one-time reminders.
- There is no generated OpenAPI document or API browser.