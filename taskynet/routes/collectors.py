"""Collector balances, cash movements and invoice assignments."""
from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from ..errors import InvalidInput
from ..services import collector_service
from ..utils import payload, serializers
from ..utils.auth import admin_required

collectors_bp = Blueprint("collectors", __name__, url_prefix="/api/collectors")


@collectors_bp.route("", methods=["GET"])
@admin_required
def list_collectors():
    return jsonify([serializers.collector(user, balance) for user, balance in collector_service.list_collectors()])


@collectors_bp.route("/<int:collector_id>/assignments", methods=["GET"])
@admin_required
def get_assignments(collector_id: int):
    groups = collector_service.get_assignments(collector_id)
    return {key: [serializers.customer_brief(c) for c in customers] for key, customers in groups.items()}


@collectors_bp.route("/<int:collector_id>/assignments", methods=["PUT"])
@admin_required
def update_assignments(collector_id: int):
    data = payload.json_body()
    raw_ids = data.get("assignedCustomerIds")
    if not isinstance(raw_ids, list):
        raise InvalidInput("assignedCustomerIds must be a list")
    customer_ids = [payload.to_int(value, label="Customer id") for value in raw_ids]
    result = collector_service.update_assignments(collector_id, customer_ids)
    return {"message": "Assignments updated successfully", **result}


def _move(view_fn, collector_id: int):
    data = payload.json_body()
    payload.require(data, "amount", "currency")
    txn = view_fn(
        collector_id,
        data["amount"],
        data["currency"],
        description=data.get("description"),
        processed_by_id=g.current_user.id,
    )
    balance = collector_service.collector_balance(collector_id)
    return {
        "message": "Transaction recorded",
        "transaction": serializers.collector_transaction(txn),
        "collector": serializers.collector(txn.collector, balance),
    }, 201


@collectors_bp.route("/<int:collector_id>/receive", methods=["POST"])
@admin_required
def receive(collector_id: int):
    return _move(collector_service.receive_from_collector, collector_id)


@collectors_bp.route("/<int:collector_id>/pay", methods=["POST"])
@admin_required
def pay(collector_id: int):
    return _move(collector_service.pay_to_collector, collector_id)


def _transaction_filters() -> dict:
    start = request.args.get("startDate")
    end = request.args.get("endDate")
    return {
        "type": request.args.get("type"),
        "start": payload.parse_datetime(start, label="startDate") if start else None,
        "end": payload.parse_datetime(end, label="endDate", end_of_day=True) if end else None,
    }


@collectors_bp.route("/<int:collector_id>/transactions", methods=["GET"])
@admin_required
def collector_transactions(collector_id: int):
    txns = collector_service.list_transactions(collector_id=collector_id, **_transaction_filters())
    return jsonify([serializers.collector_transaction(txn) for txn in txns])


@collectors_bp.route("/transactions", methods=["GET"])
@admin_required
def all_transactions():
    txns = collector_service.list_transactions(**_transaction_filters())
    return jsonify([serializers.collector_transaction(txn) for txn in txns])
