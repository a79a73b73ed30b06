"""HTTP routes for task lists, tasks and list memberships."""

from __future__ import annotations

from typing import Any, Callable

from flask import Blueprint, Request, jsonify, request

from .common import ApiError, AuthenticatedUser, BadRequestError
from .task_models import (
    BulkCreateTasksRequest,
    CreateTaskListRequest,
    CreateTaskRequest,
    ReorderTasksRequest,
    UpdateTaskListRequest,
    UpdateTaskRequest,
)
from .task_service import TasksService

UserResolver = Callable[[Request], AuthenticatedUser]


def _json_body() -> Any:
    body = request.get_json(silent=True)
    if body is None:
        raise BadRequestError("Request body must be valid JSON")
    return body


def _error_response(exc: ApiError):
    return jsonify(exc.to_dict()), int(exc.status_code)


def create_blueprint(service: TasksService, user_resolver: UserResolver) -> Blueprint:
    """Build the task routes.

    ``user_resolver`` receives the current request and returns the
    authenticated user, raising an ApiError when there is none.
    """
    bp = Blueprint("tasks", __name__)
    bp.register_error_handler(ApiError, _error_response)

    def current_user() -> AuthenticatedUser:
        return user_resolver(request)

    # ── Task lists ────────────────────────────────────────────────────────────

    @bp.get("/tasks/lists")
    def list_task_lists():
        lists = service.list_task_lists(current_user())
        return jsonify({"taskLists": [item.to_dict() for item in lists]})

    @bp.post("/tasks/lists")
    def create_task_list():
        user = current_user()
        payload = CreateTaskListRequest.from_dict(_json_body())
        return jsonify(service.create_task_list(user, payload).to_dict()), 201

    @bp.get("/tasks/lists/<list_id>")
    def get_task_list(list_id: str):
        return jsonify(service.get_task_list(current_user(), list_id).to_dict())

    @bp.patch("/tasks/lists/<list_id>")
    def update_task_list(list_id: str):
        user = current_user()
        payload = UpdateTaskListRequest.from_dict(_json_body())
        return jsonify(service.update_task_list(user, list_id, payload).to_dict())

    @bp.delete("/tasks/lists/<list_id>")
    def delete_task_list(list_id: str):
        service.delete_task_list(current_user(), list_id)
        return "", 204

    # ── Tasks ─────────────────────────────────────────────────────────────────

    @bp.get("/tasks")
    def list_tasks():
        user = current_user()
        tasks = service.list_tasks(user, request.args.get("listId"))
        return jsonify([task.to_dict() for task in tasks])

    @bp.post("/tasks")
    def create_task():
        user = current_user()
        payload = CreateTaskRequest.from_dict(_json_body())
        return jsonify(service.create_task(user, payload).to_dict()), 201

    @bp.post("/tasks/bulk")
    def bulk_create_tasks():
        user = current_user()
        payload = BulkCreateTasksRequest.from_dict(_json_body())
        tasks = service.bulk_create_tasks(user, payload)
        return jsonify({"tasks": [task.to_dict() for task in tasks]}), 201

    @bp.post("/tasks/reorder")
    def reorder_tasks():
        user = current_user()
        payload = ReorderTasksRequest.from_dict(_json_body())
        service.reorder_tasks(user, payload)
        return "", 200

    @bp.get("/tasks/<task_id>")
    def get_task(task_id: str):
        return jsonify(service.get_task(current_user(), task_id).to_dict())

    @bp.patch("/tasks/<task_id>")
    def update_task(task_id: str):
        user = current_user()
        payload = UpdateTaskRequest.from_dict(_json_body())
        return jsonify(service.update_task(user, task_id, payload).to_dict())

    @bp.delete("/tasks/<task_id>")
    def delete_task(task_id: str):
        service.delete_task(current_user(), task_id)
        return "", 204

    # ── Memberships ───────────────────────────────────────────────────────────

    @bp.post("/tasks/<task_id>/lists/<list_id>")
    def add_task_to_list(task_id: str, list_id: str):
        service.add_task_to_list(current_user(), task_id, list_id)
        return "", 204

    @bp.delete("/tasks/<task_id>/lists/<list_id>")
    def remove_task_from_list(task_id: str, list_id: str):
        service.remove_task_from_list(current_user(), task_id, list_id)
        return "", 204

    return bp