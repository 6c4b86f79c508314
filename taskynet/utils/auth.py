"""Bearer-token authentication and role checks for the JSON API."""
from __future__ import annotations

import functools
from typing import Callable, Optional

from flask import current_app, g, request
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from ..errors import Forbidden, Unauthorized
from ..extensions import db
from ..models import RoleName, User

SCOPE_ADMIN = "admin"
SCOPE_EMPLOYEE = "employee"
SCOPES = (SCOPE_ADMIN, SCOPE_EMPLOYEE)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=current_app.config["TOKEN_SALT"])


def issue_token(user: User, scope: str = SCOPE_ADMIN) -> str:
    """Sign a token for ``user`` valid for the admin or the employee API."""
    if scope not in SCOPES:
        raise ValueError(f"Unknown token scope: {scope}")
    return _serializer().dumps({"uid": user.id, "scope": scope})


def verify_token(token: str) -> dict:
    try:
        data = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except SignatureExpired:
        raise Unauthorized("Token expired") from None
    except BadData:
        raise Unauthorized("Invalid token") from None
    if not isinstance(data, dict) or data.get("scope") not in SCOPES or "uid" not in data:
        raise Unauthorized("Invalid token")
    return data


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def current_user() -> Optional[User]:
    """Return the authenticated user for this request, loading it once."""
    if hasattr(g, "current_user"):
        return g.current_user  # type: ignore[attr-defined]

    user = None
    g.token_scope = None  # type: ignore[attr-defined]
    token = _bearer_token()
    if token:
        data = verify_token(token)
        user = db.session.get(User, data["uid"])
        if user is None or not user.is_active:
            raise Unauthorized("User not found or inactive")
        g.token_scope = data["scope"]  # type: ignore[attr-defined]
    g.current_user = user  # type: ignore[attr-defined]
    return user


def token_required(scope: str):
    """Require a valid token issued for ``scope``."""

    def decorator(view: Callable):
        @functools.wraps(view)
        def wrapped_view(*args, **kwargs):
            user = current_user()
            if user is None:
                raise Unauthorized("Access token required")
            if g.token_scope != scope:  # type: ignore[attr-defined]
                raise Forbidden(f"This endpoint requires a {scope} token")
            return view(*args, **kwargs)

        return wrapped_view

    return decorator


def role_required(*roles: str, scope: str = SCOPE_ADMIN):
    """Require a ``scope`` token whose user holds one of ``roles``."""
    allowed_roles = {str(role) for role in roles}

    def decorator(view: Callable):
        @token_required(scope)
        @functools.wraps(view)
        def wrapped_view(*args, **kwargs):
            if g.current_user.role_name not in allowed_roles:  # type: ignore[attr-defined]
                raise Forbidden("Insufficient role for this action")
            return view(*args, **kwargs)

        return wrapped_view

    return decorator


admin_required = role_required(RoleName.ADMIN)
manager_required = role_required(RoleName.ADMIN, RoleName.MANAGER)
employee_required = token_required(SCOPE_EMPLOYEE)


def normalize_email(value: str) -> str:
    """Normalize an email for consistent lookups."""
    return (value or "").strip().lower()
