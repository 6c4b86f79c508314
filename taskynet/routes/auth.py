"""Admin authentication: login and first-admin signup."""
from __future__ import annotations

from flask import Blueprint, current_app

from ..errors import Forbidden
from ..models import RoleName
from ..services import user_service
from ..utils import payload, serializers
from ..utils.auth import SCOPE_ADMIN, issue_token, normalize_email

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

ADMIN_LOGIN_ROLES = (RoleName.ADMIN, RoleName.MANAGER)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = payload.json_body()
    payload.require(data, "email", "password")
    user = user_service.authenticate(normalize_email(str(data["email"])), str(data["password"]))
    if not user.has_role(*ADMIN_LOGIN_ROLES):
        raise Forbidden("Use the employee login for this account")
    current_app.logger.info("Admin login for %s", user.email)
    return {"message": "Login successful", "token": issue_token(user, SCOPE_ADMIN), "user": serializers.user(user)}


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """Create the bootstrap admin; closed once any admin exists."""
    if user_service.admin_exists():
        raise Forbidden("Signup is disabled once an admin account exists")
    data = payload.json_body()
    fields = user_service.parse_user_fields(data)
    user_service.ensure_default_roles()
    user = user_service.create_user(fields, role=user_service.role_by_name(RoleName.ADMIN))
    return {
        "message": "Admin account created",
        "token": issue_token(user, SCOPE_ADMIN),
        "user": serializers.user(user),
    }, 201
