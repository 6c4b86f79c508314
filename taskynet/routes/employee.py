"""Employee-facing API for technicians and collectors (employee-scope tokens)."""
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from ..errors import Forbidden
from ..models import RoleName
from ..services import invoice_service, task_service, user_service
from ..utils import payload, serializers
from ..utils.auth import SCOPE_EMPLOYEE, employee_required, issue_token, normalize_email

employee_bp = Blueprint("employee", __name__, url_prefix="/api/employee")


@employee_bp.route("/login", methods=["POST"])
def login():
    data = payload.json_body()
    payload.require(data, "email", "password")
    user = user_service.authenticate(normalize_email(str(data["email"])), str(data["password"]))
    current_app.logger.info("Employee login for %s", user.email)
    return {
        "message": "Login successful",
        "token": issue_token(user, SCOPE_EMPLOYEE),
        "user": serializers.user(user),
    }


@employee_bp.route("/tasks", methods=["GET"])
@employee_required
def my_tasks():
    tasks = task_service.search_tasks(g.current_user.id, request.args.get("search"))
    return jsonify([serializers.task(task) for task in tasks])


@employee_bp.route("/tasks/ongoing", methods=["GET"])
@employee_required
def ongoing_tasks():
    return jsonify([serializers.task(task) for task in task_service.ongoing_tasks(g.current_user.id)])


@employee_bp.route("/tasks/<int:task_id>/accept", methods=["POST"])
@employee_required
def accept_task(task_id: int):
    task = task_service.accept_task(task_id, g.current_user.id)
    return {"message": "Task accepted", "task": serializers.task(task)}


@employee_bp.route("/tasks/<int:task_id>/update-stage", methods=["POST"])
@employee_required
def update_stage(task_id: int):
    task = task_service.advance_stage(task_id, g.current_user.id)
    return {"message": f"Task moved to {task.stage.value}", "task": serializers.task(task)}


@employee_bp.route("/tasks/<int:task_id>/cancel", methods=["POST"])
@employee_required
def cancel_task(task_id: int):
    task = task_service.cancel_task(task_id, actor_id=g.current_user.id)
    return {"message": "Task cancelled", "task": serializers.task(task)}


@employee_bp.route("/tasks/<int:task_id>/comment", methods=["POST"])
@employee_required
def comment_task(task_id: int):
    data = payload.json_body()
    comment = task_service.add_comment(task_id, g.current_user.id, data.get("message"))
    return {"message": "Comment added", "comment": serializers.comment(comment)}, 201


def _require_collector():
    if not g.current_user.has_role(RoleName.COLLECTOR):
        raise Forbidden("Only collectors can access invoices")


@employee_bp.route("/invoices", methods=["GET"])
@employee_required
def my_invoices():
    _require_collector()
    invoices = invoice_service.invoices_for_collector(
        g.current_user.id, request.args.get("status"), open_only=True
    )
    return jsonify([serializers.invoice(invoice) for invoice in invoices])


@employee_bp.route("/invoices/<int:invoice_id>/pay", methods=["POST"])
@employee_required
def pay_invoice(invoice_id: int):
    _require_collector()
    data = payload.json_body()
    payload.require(data, "amount")
    invoice = invoice_service.record_payment(invoice_id, data["amount"], collector_id=g.current_user.id)
    return {"message": "Payment recorded", "invoice": serializers.invoice(invoice)}


@employee_bp.route("/profile", methods=["GET"])
@employee_required
def profile():
    return serializers.user(g.current_user)


@employee_bp.route("/change-password", methods=["POST"])
@employee_required
def change_password():
    data = payload.json_body()
    payload.require(data, "oldPassword", "newPassword")
    user_service.change_password(g.current_user, str(data["oldPassword"]), data["newPassword"])
    return {"message": "Password changed successfully"}
