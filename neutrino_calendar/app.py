"""The calendar web application and its command-line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
import sys
import threading
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable, Mapping, Optional, Sequence

import jwt
from flask import Flask, Request, jsonify

from . import reminder_engine
from .common import ApiError, AuthenticatedUser
from .database import Database
from .reminder_api import create_blueprint as create_reminders_blueprint
from .reminder_repository import RemindersRepository
from .reminder_service import RemindersService
from .task_api import create_blueprint as create_tasks_blueprint
from .task_repository import TasksRepository
from .task_service import TasksService

logger = logging.getLogger(__name__)

UserResolver = Callable[[Request], AuthenticatedUser]

EXTENSION_KEY = "neutrino_calendar"
REMINDER_POLL_SECS = 60


class _UnauthorizedError(ApiError):
    status_code = HTTPStatus.UNAUTHORIZED
    code = "UNAUTHORIZED"


def jwt_user_resolver(secret: str) -> UserResolver:
    """Return a resolver that takes the user from an HS256 bearer token's ``sub`` claim."""

    def resolve(req) -> AuthenticatedUser:
        header = req.headers.get("Authorization", "")
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            raise _UnauthorizedError("Missing or invalid authorization token")
        try:
            claims = jwt.decode(credentials.strip(), secret, algorithms=["HS256"])
        except jwt.PyJWTError as exc:
            raise _UnauthorizedError("Missing or invalid authorization token") from exc
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise _UnauthorizedError("Missing or invalid authorization token")
        return AuthenticatedUser(subject)

    return resolve


@dataclass
class _Components:
    database: Database
    reminders_repo: RemindersRepository


def _error_response(exc: ApiError):
    return jsonify(exc.to_dict()), int(exc.status_code)


def create_app(database_path: str, user_resolver: UserResolver) -> Flask:
    """Build the application over the SQLite database at ``database_path``."""
    database = Database(database_path)
    reminders_repo = RemindersRepository(database)
    reminders_service = RemindersService(reminders_repo)
    tasks_service = TasksService(TasksRepository(database))

    app = Flask(__name__)
    app.url_map.strict_slashes = False
    app.extensions[EXTENSION_KEY] = _Components(database, reminders_repo)
    app.register_error_handler(ApiError, _error_response)

    @app.get("/health")
    def health():
        if database.check_health():
            return jsonify({"status": "ok"})
        logger.error("Health check DB query failed")
        body = {"error": {"code": "DB_UNHEALTHY", "message": "Database health check failed"}}
        return jsonify(body), 503

    @app.after_request
    def allow_any_origin(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"
        return response

    app.register_blueprint(
        create_reminders_blueprint(reminders_service, user_resolver), url_prefix="/api/v1"
    )
    app.register_blueprint(
        create_tasks_blueprint(tasks_service, user_resolver), url_prefix="/api/v1"
    )
    return app


@dataclass
class _Config:
    database_url: str
    jwt_secret: str
    port: int
    log_level: str

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "_Config":
        secret = env.get("JWT_SECRET")
        if not secret:
            raise ValueError("JWT_SECRET must be set")
        raw_port = env.get("PORT", "8080")
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError(f"PORT must be a number, got {raw_port!r}") from exc
        if not 0 < port < 65536:
            raise ValueError(f"PORT out of range: {port}")
        database_url = env.get("DATABASE_URL", "calendar.db")
        database_url = database_url.removeprefix("sqlite://")
        return cls(database_url, secret, port, env.get("LOG_LEVEL", "info"))


def _configure_logging(level: str) -> None:
    try:
        logging.basicConfig(level=level.upper())
    except ValueError:
        logging.basicConfig(level=logging.INFO)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the calendar service; settings come from the environment."""
    parser = argparse.ArgumentParser(prog="neutrino-calendar", description=__doc__)
    parser.add_argument("--database", help="SQLite database path (overrides DATABASE_URL)")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, help="port to listen on (overrides PORT)")
    args = parser.parse_args(argv)

    try:
        config = _Config.from_env(os.environ)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    _configure_logging(config.log_level)
    database_path = args.database or config.database_url
    port = args.port if args.port is not None else config.port

    logger.info("Starting Neutrino Calendar service")
    logger.info("Connecting to database: %s", database_path)
    try:
        app = create_app(database_path, jwt_user_resolver(config.jwt_secret))
    except sqlite3.Error as exc:
        logger.error("Failed to open database: %s", exc)
        return 1

    components: _Components = app.extensions[EXTENSION_KEY]
    stop = threading.Event()
    worker = threading.Thread(
        target=reminder_engine.run,
        args=(components.reminders_repo, REMINDER_POLL_SECS, stop),
        name="reminder-engine",
        daemon=True,
    )
    worker.start()

    logger.info("Listening on %s:%s", args.host, port)
    try:
        app.run(host=args.host, port=port, threaded=True)
    finally:
        stop.set()
    return 0