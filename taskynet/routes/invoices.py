"""Invoice administration: CRUD, discounts, payments, batch and queries."""
from __future__ import annotations

from datetime import datetime

from flask import Blueprint, request

from ..errors import InvalidInput
from ..services import invoice_service
from ..utils import payload, serializers
from ..utils.auth import manager_required
from .common import deleted, listing

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")

_READ_ONLY = ("number", "amount", "status")


@invoices_bp.route("", methods=["POST"])
@manager_required
def create_invoice():
    data = payload.json_body()
    payload.require(data, "customerId", "assignedTo", "dueDate")
    invoice = invoice_service.create_invoice(
        customer_id=payload.integer(data, "customerId", label="Customer"),
        assigned_to_id=payload.integer(data, "assignedTo", label="Assigned collector"),
        due_date=payload.parse_date(data["dueDate"], label="Due date"),
        service_id=payload.integer(data, "serviceId", label="Service", required=False),
        balance=data.get("balance"),
        discount=data.get("discount"),
    )
    return serializers.invoice(invoice), 201


@invoices_bp.route("", methods=["GET"])
@manager_required
def list_invoices():
    return listing(invoice_service.list_invoices(request.args.get("status")), serializers.invoice)


@invoices_bp.route("/<int:invoice_id>", methods=["GET"])
@manager_required
def get_invoice(invoice_id: int):
    return serializers.invoice(invoice_service.get_invoice(invoice_id))


@invoices_bp.route("/<int:invoice_id>", methods=["PUT"])
@manager_required
def update_invoice(invoice_id: int):
    data = payload.json_body()
    blocked = [key for key in _READ_ONLY if key in data]
    if blocked:
        raise InvalidInput(f"Fields cannot be set directly: {', '.join(blocked)}")
    changes = {}
    if "balance" in data:
        changes["balance"] = data["balance"]
    if "discount" in data:
        changes["discount"] = data["discount"]
    if "dueDate" in data:
        changes["due_date"] = payload.parse_date(data["dueDate"], label="Due date")
    if "assignedTo" in data:
        changes["assigned_to_id"] = payload.integer(data, "assignedTo", label="Assigned collector")
    if "customerId" in data:
        changes["customer_id"] = payload.integer(data, "customerId", label="Customer")
    if "serviceId" in data:
        changes["service_id"] = payload.integer(data, "serviceId", label="Service")
    return serializers.invoice(invoice_service.update_invoice(invoice_id, changes))


@invoices_bp.route("/<int:invoice_id>", methods=["DELETE"])
@manager_required
def delete_invoice(invoice_id: int):
    invoice_service.delete_invoice(invoice_id)
    return deleted("Invoice")


@invoices_bp.route("/generate-monthly", methods=["POST"])
@manager_required
def generate_monthly():
    data = payload.json_body()
    now = datetime.utcnow()
    year = data.get("year", now.year)
    month = data.get("month", now.month)
    invoices = invoice_service.generate_monthly(year, month)
    return {
        "message": f"Generated {len(invoices)} invoices",
        "count": len(invoices),
        "invoices": [serializers.invoice(invoice) for invoice in invoices],
    }, 201


@invoices_bp.route("/<int:invoice_id>/apply-discount", methods=["POST"])
@manager_required
def apply_discount(invoice_id: int):
    data = payload.json_body()
    payload.require(data, "discount")
    return serializers.invoice(invoice_service.apply_discount(invoice_id, data["discount"]))


@invoices_bp.route("/<int:invoice_id>/remove-discount", methods=["POST"])
@manager_required
def remove_discount(invoice_id: int):
    return serializers.invoice(invoice_service.remove_discount(invoice_id))


@invoices_bp.route("/<int:invoice_id>/payment", methods=["POST"])
@manager_required
def record_payment(invoice_id: int):
    data = payload.json_body()
    payload.require(data, "amount")
    return serializers.invoice(invoice_service.record_payment(invoice_id, data["amount"]))


@invoices_bp.route("/collector/<int:collector_id>", methods=["GET"])
@manager_required
def collector_invoices(collector_id: int):
    invoices = invoice_service.invoices_for_collector(collector_id, request.args.get("status"))
    return listing(invoices, serializers.invoice)


@invoices_bp.route("/status/<status>", methods=["GET"])
@manager_required
def invoices_by_status(status: str):
    return listing(invoice_service.invoices_by_status(status), serializers.invoice)


@invoices_bp.route("/overdue/list", methods=["GET"])
@manager_required
def overdue_invoices():
    return listing(invoice_service.overdue_invoices(), serializers.invoice)


@invoices_bp.route("/customer/<int:customer_id>", methods=["GET"])
@manager_required
def customer_invoices(customer_id: int):
    return listing(invoice_service.invoices_for_customer(customer_id), serializers.invoice)
