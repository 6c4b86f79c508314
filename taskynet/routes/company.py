"""Company cash ledger endpoints."""
from __future__ import annotations

from flask import Blueprint, g, request

from ..errors import InvalidInput
from ..services import company_service
from ..utils import payload, serializers
from ..utils.auth import admin_required

company_bp = Blueprint("company", __name__, url_prefix="/api/company")


@company_bp.route("", methods=["GET"])
@admin_required
def get_company():
    return serializers.company(company_service.company_snapshot())


@company_bp.route("/cashout", methods=["POST"])
@admin_required
def cashout():
    data = payload.json_body()
    payload.require(data, "amount")
    record = company_service.cashout(data["amount"], data.get("reason"), g.current_user.id)
    company = company_service.get_company()
    return {
        "message": "Cashout successful",
        "cashout": serializers.cashout(record),
        "currentCash": float(company.cash),
    }, 201


@company_bp.route("/cashout-history", methods=["GET"])
@admin_required
def cashout_history():
    history = company_service.cashout_history(limit=payload.query_int("limit", 50))
    return {
        "cashouts": [serializers.cashout(row) for row in history["cashouts"]],
        "totalCashouts": float(history["total"]),
        "currentCash": float(history["currentCash"]),
    }


@company_bp.route("/cashout-by-date", methods=["GET"])
@admin_required
def cashout_by_date():
    raw_start = request.args.get("startDate")
    raw_end = request.args.get("endDate")
    if not raw_start or not raw_end:
        raise InvalidInput("startDate and endDate are required")
    start = payload.parse_datetime(raw_start, label="startDate")
    end = payload.parse_datetime(raw_end, label="endDate", end_of_day=True)
    if start > end:
        raise InvalidInput("startDate must be before endDate")
    result = company_service.cashouts_between(start, end)
    return {
        "cashouts": [serializers.cashout(row) for row in result["cashouts"]],
        "total": float(result["total"]),
        "count": result["count"],
    }
