"""Customer (subscriber) CRUD."""
from __future__ import annotations

from flask import Blueprint, current_app, request

from ..extensions import db
from ..models import Customer, Service, Zone
from ..services.lookup import get_or_404
from ..utils import payload, serializers
from ..utils.auth import manager_required
from .common import deleted, ensure_unique, listing

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _customer_fields(data, *, partial: bool = False) -> dict:
    required = not partial
    fields = {
        "name": payload.text(data, "name", label="Name", min_len=2, max_len=100, required=required),
        "location": payload.text(data, "location", label="Location", min_len=5, max_len=200, required=required),
        "phone_number": payload.phone(data, required=required),
        "service_id": payload.integer(data, "serviceId", label="Service", required=required),
        "zone_id": payload.integer(data, "zoneId", label="Zone", required=required),
        "is_active": payload.boolean(data, "isActive"),
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    if "service_id" in fields:
        get_or_404(Service, fields["service_id"], "Service")
    if "zone_id" in fields:
        get_or_404(Zone, fields["zone_id"], "Zone")
    return fields


@customers_bp.route("", methods=["POST"])
@manager_required
def create_customer():
    fields = _customer_fields(payload.json_body())
    ensure_unique(Customer, Customer.phone_number, fields["phone_number"], "Phone number")
    customer = Customer(**fields)
    db.session.add(customer)
    db.session.commit()
    current_app.logger.info("Customer %s created", customer.id)
    return serializers.customer(customer), 201


@customers_bp.route("", methods=["GET"])
@manager_required
def list_customers():
    query = Customer.query
    active = request.args.get("active")
    if active is not None:
        query = query.filter(Customer.is_active.is_(active.lower() in {"1", "true", "yes"}))
    zone_id = request.args.get("zoneId")
    if zone_id:
        query = query.filter(Customer.zone_id == payload.to_int(zone_id, label="zoneId"))
    search = (request.args.get("search") or "").strip()
    if search:
        query = query.filter(Customer.name.ilike(f"%{search}%"))
    return listing(query.order_by(Customer.name.asc(), Customer.id.asc()).all(), serializers.customer)


@customers_bp.route("/<int:customer_id>", methods=["GET"])
@manager_required
def get_customer(customer_id: int):
    return serializers.customer(get_or_404(Customer, customer_id, "Customer"))


@customers_bp.route("/<int:customer_id>", methods=["PUT"])
@manager_required
def update_customer(customer_id: int):
    customer = get_or_404(Customer, customer_id, "Customer")
    fields = _customer_fields(payload.json_body(), partial=True)
    if "phone_number" in fields:
        ensure_unique(Customer, Customer.phone_number, fields["phone_number"], "Phone number", exclude_id=customer.id)
    for key, value in fields.items():
        setattr(customer, key, value)
    db.session.commit()
    return serializers.customer(customer)


@customers_bp.route("/<int:customer_id>", methods=["DELETE"])
@manager_required
def delete_customer(customer_id: int):
    customer = get_or_404(Customer, customer_id, "Customer")
    db.session.delete(customer)
    db.session.commit()
    current_app.logger.info("Customer %s deleted", customer_id)
    return deleted("Customer")
