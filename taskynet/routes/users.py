"""Staff account administration."""
from __future__ import annotations

from flask import Blueprint, g, request

from ..models import Role, User
from ..services import user_service
from ..services.lookup import get_or_404
from ..utils import payload, serializers
from ..utils.auth import admin_required
from .common import deleted, listing

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("", methods=["POST"])
@admin_required
def create_user():
    data = payload.json_body()
    payload.require(data, "roleId")
    fields = user_service.parse_user_fields(data)
    return serializers.user(user_service.create_user(fields)), 201


@users_bp.route("", methods=["GET"])
@admin_required
def list_users():
    query = User.query
    role = request.args.get("role")
    if role:
        query = query.join(Role).filter(Role.name == role)
    return listing(query.order_by(User.id.asc()).all(), serializers.user)


@users_bp.route("/<int:user_id>", methods=["GET"])
@admin_required
def get_user(user_id: int):
    return serializers.user(get_or_404(User, user_id, "User"))


@users_bp.route("/<int:user_id>", methods=["PUT"])
@admin_required
def update_user(user_id: int):
    fields = user_service.parse_user_fields(payload.json_body(), partial=True)
    return serializers.user(user_service.update_user(user_id, fields))


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id: int):
    user_service.delete_user(user_id, acting_user_id=g.current_user.id)
    return deleted("User")
