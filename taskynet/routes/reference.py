"""Reference data CRUD: roles, internet services, zones and task categories."""
from __future__ import annotations

from flask import Blueprint, current_app

from ..errors import InvalidInput
from ..extensions import db
from ..models import Category, Role, Service, Zone
from ..models.base import capitalize_name
from ..services import money
from ..services.lookup import get_or_404
from ..utils import payload, serializers
from ..utils.auth import admin_required, manager_required
from .common import deleted, ensure_unique, listing

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")
services_bp = Blueprint("services", __name__, url_prefix="/api/services")
zones_bp = Blueprint("zones", __name__, url_prefix="/api/zones")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


def _name(data, *, label: str, max_len: int, required: bool = True):
    value = payload.text(data, "name", label=label, min_len=2, max_len=max_len, required=required)
    return capitalize_name(value) if value else value


def _delete(obj, label: str):
    ident = obj.id
    db.session.delete(obj)
    db.session.commit()
    current_app.logger.info("%s %s deleted", label, ident)
    return deleted(label)


# Roles


@roles_bp.route("", methods=["POST"])
@admin_required
def create_role():
    name = _name(payload.json_body(), label="Role name", max_len=50)
    ensure_unique(Role, Role.name, name, "Role")
    role = Role(name=name)
    db.session.add(role)
    db.session.commit()
    return serializers.role(role), 201


@roles_bp.route("", methods=["GET"])
@admin_required
def list_roles():
    return listing(Role.query.order_by(Role.id.asc()).all(), serializers.role)


@roles_bp.route("/<int:role_id>", methods=["GET"])
@admin_required
def get_role(role_id: int):
    return serializers.role(get_or_404(Role, role_id, "Role"))


@roles_bp.route("/<int:role_id>", methods=["PUT"])
@admin_required
def update_role(role_id: int):
    role = get_or_404(Role, role_id, "Role")
    name = _name(payload.json_body(), label="Role name", max_len=50)
    ensure_unique(Role, Role.name, name, "Role", exclude_id=role.id)
    role.name = name
    db.session.commit()
    return serializers.role(role)


@roles_bp.route("/<int:role_id>", methods=["DELETE"])
@admin_required
def delete_role(role_id: int):
    return _delete(get_or_404(Role, role_id, "Role"), "Role")


# Services


def _cost(data, *, required: bool = True):
    if data.get("cost") in (None, ""):
        if required:
            payload.require(data, "cost")
        return None
    cost = money.to_money(data["cost"], field="Cost")
    if cost < money.ZERO:
        raise InvalidInput("Cost cannot be negative")
    return cost


def _service_name(data, *, required: bool = True):
    return payload.text(data, "name", label="Service name", min_len=2, max_len=100, required=required)


@services_bp.route("", methods=["POST"])
@manager_required
def create_service():
    data = payload.json_body()
    name = _service_name(data)
    cost = _cost(data)
    ensure_unique(Service, Service.name, name, "Service")
    service = Service(name=name, cost=cost)
    db.session.add(service)
    db.session.commit()
    return serializers.service(service), 201


@services_bp.route("", methods=["GET"])
@manager_required
def list_services():
    return listing(Service.query.order_by(Service.name.asc()).all(), serializers.service)


@services_bp.route("/<int:service_id>", methods=["GET"])
@manager_required
def get_service(service_id: int):
    return serializers.service(get_or_404(Service, service_id, "Service"))


@services_bp.route("/<int:service_id>", methods=["PUT"])
@manager_required
def update_service(service_id: int):
    service = get_or_404(Service, service_id, "Service")
    data = payload.json_body()
    name = _service_name(data, required=False)
    cost = _cost(data, required=False)
    if name is not None:
        ensure_unique(Service, Service.name, name, "Service", exclude_id=service.id)
        service.name = name
    if cost is not None:
        service.cost = cost
    db.session.commit()
    return serializers.service(service)


@services_bp.route("/<int:service_id>", methods=["DELETE"])
@manager_required
def delete_service(service_id: int):
    return _delete(get_or_404(Service, service_id, "Service"), "Service")


# Zones and categories share one shape.


def _register_named(bp: Blueprint, model, label: str) -> None:
    def create():
        name = _name(payload.json_body(), label=f"{label} name", max_len=100)
        ensure_unique(model, model.name, name, label)
        obj = model(name=name)
        db.session.add(obj)
        db.session.commit()
        return serializers.named(obj), 201

    def index():
        return listing(model.query.order_by(model.name.asc()).all(), serializers.named)

    def show(item_id: int):
        return serializers.named(get_or_404(model, item_id, label))

    def update(item_id: int):
        obj = get_or_404(model, item_id, label)
        name = _name(payload.json_body(), label=f"{label} name", max_len=100)
        ensure_unique(model, model.name, name, label, exclude_id=obj.id)
        obj.name = name
        db.session.commit()
        return serializers.named(obj)

    def remove(item_id: int):
        return _delete(get_or_404(model, item_id, label), label)

    bp.add_url_rule("", "create", manager_required(create), methods=["POST"])
    bp.add_url_rule("", "index", manager_required(index), methods=["GET"])
    bp.add_url_rule("/<int:item_id>", "show", manager_required(show), methods=["GET"])
    bp.add_url_rule("/<int:item_id>", "update", manager_required(update), methods=["PUT"])
    bp.add_url_rule("/<int:item_id>", "remove", manager_required(remove), methods=["DELETE"])


_register_named(zones_bp, Zone, "Zone")
_register_named(categories_bp, Category, "Category")
