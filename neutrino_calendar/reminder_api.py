"""HTTP routes for reminders."""

from __future__ import annotations

from typing import Any, Callable

from flask import Blueprint, Request, jsonify, request

from .common import ApiError, AuthenticatedUser, BadRequestError
from .reminder_models import CreateReminderRequest, UpdateReminderRequest
from .reminder_service import RemindersService

UserResolver = Callable[[Request], AuthenticatedUser]


def _json_body() -> Any:
    body = request.get_json(silent=True)
    if body is None:
        raise BadRequestError("Request body must be valid JSON")
    return body


def _error_response(exc: ApiError):
    return jsonify(exc.to_dict()), int(exc.status_code)


def create_blueprint(service: RemindersService, user_resolver: UserResolver) -> Blueprint:
    """Build the reminders routes.

    ``user_resolver`` receives the current request and returns the
    authenticated user, raising an ApiError when there is none.
    """
    bp = Blueprint("reminders", __name__)
    bp.register_error_handler(ApiError, _error_response)

    def current_user() -> AuthenticatedUser:
        return user_resolver(request)

    @bp.get("/reminders")
    def list_reminders():
        user = current_user()
        event_id = request.args.get("eventId")
        reminders = service.list_reminders(user, event_id)
        return jsonify({"reminders": [reminder.to_dict() for reminder in reminders]})

    @bp.post("/reminders")
    def create_reminder():
        user = current_user()
        payload = CreateReminderRequest.from_dict(_json_body())
        return jsonify(service.create_reminder(user, payload).to_dict()), 201

    @bp.get("/reminders/<reminder_id>")
    def get_reminder(reminder_id: str):
        user = current_user()
        return jsonify(service.get_reminder(user, reminder_id).to_dict())

    @bp.patch("/reminders/<reminder_id>")
    def update_reminder(reminder_id: str):
        user = current_user()
        payload = UpdateReminderRequest.from_dict(_json_body())
        return jsonify(service.update_reminder(user, reminder_id, payload).to_dict())

    @bp.delete("/reminders/<reminder_id>")
    def delete_reminder(reminder_id: str):
        user = current_user()
        service.delete_reminder(user, reminder_id)
        return "", 204

    return bp