"""Task administration: CRUD, assignment and cancellation."""
from __future__ import annotations

from flask import Blueprint, request

from ..errors import InvalidInput
from ..services import task_service
from ..utils import payload, serializers
from ..utils.auth import manager_required
from .common import deleted, listing

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")

# camelCase payload key -> service field
_FIELD_MAP = {
    "customerId": "customer_id",
    "categoryId": "category_id",
    "priority": "priority",
    "description": "description",
    "assignedTo": "assigned_to_id",
}
_READ_ONLY = ("taskNumber", "stage", "finishedAt", "comments")


@tasks_bp.route("", methods=["POST"])
@manager_required
def create_task():
    data = payload.json_body()
    payload.require(data, "customerId", "categoryId")
    task = task_service.create_task(
        customer_id=payload.integer(data, "customerId", label="Customer"),
        category_id=payload.integer(data, "categoryId", label="Category"),
        priority=data.get("priority"),
        description=data.get("description"),
        assigned_to_id=payload.integer(data, "assignedTo", label="Assigned user", required=False),
    )
    return serializers.task(task), 201


@tasks_bp.route("", methods=["GET"])
@manager_required
def list_tasks():
    assigned_to = request.args.get("assignedTo")
    tasks = task_service.list_tasks(
        stage=request.args.get("stage"),
        priority=request.args.get("priority"),
        assigned_to=payload.to_int(assigned_to, label="assignedTo") if assigned_to else None,
    )
    return listing(tasks, serializers.task)


@tasks_bp.route("/<int:task_id>", methods=["GET"])
@manager_required
def get_task(task_id: int):
    return serializers.task(task_service.get_task(task_id))


@tasks_bp.route("/<int:task_id>", methods=["PUT"])
@manager_required
def update_task(task_id: int):
    data = payload.json_body()
    blocked = [key for key in _READ_ONLY if key in data]
    if blocked:
        raise InvalidInput(f"Fields cannot be set directly: {', '.join(blocked)}")
    changes = {}
    for key, field in _FIELD_MAP.items():
        if key not in data:
            continue
        if field.endswith("_id") and data[key] is not None:
            changes[field] = payload.to_int(data[key], label=key)
        else:
            changes[field] = data[key]
    return serializers.task(task_service.update_task(task_id, changes))


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@manager_required
def delete_task(task_id: int):
    task_service.delete_task(task_id)
    return deleted("Task")


@tasks_bp.route("/<int:task_id>/assign", methods=["POST"])
@manager_required
def assign_task(task_id: int):
    data = payload.json_body()
    user_id = payload.integer(data, "assignedTo", label="Assigned user")
    return serializers.task(task_service.assign_task(task_id, user_id))


@tasks_bp.route("/<int:task_id>/cancel", methods=["POST"])
@manager_required
def cancel_task(task_id: int):
    return serializers.task(task_service.cancel_task(task_id))
