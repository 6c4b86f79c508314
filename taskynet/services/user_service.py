"""Staff accounts: roles bootstrap, creation, updates and credential checks."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app

from ..errors import InvalidInput, Unauthorized
from ..extensions import db
from ..models import Role, RoleName, User
from ..utils import payload
from .lookup import get_or_404

MIN_PASSWORD_LENGTH = 6
USER_FIELDS = ("firstName", "lastName", "phoneNumber", "address", "email", "password", "roleId", "isActive")


def ensure_default_roles() -> List[Role]:
    roles = []
    for name in RoleName.DEFAULTS:
        role = Role.query.filter_by(name=name).first()
        if role is None:
            role = Role(name=name)
            db.session.add(role)
        roles.append(role)
    db.session.flush()
    return roles


def role_by_name(name: str) -> Role:
    role = Role.query.filter_by(name=name).first()
    if role is None:
        role = Role(name=name)
        db.session.add(role)
        db.session.flush()
    return role


def _password(data: Dict[str, Any], key: str = "password", *, required: bool = True) -> Optional[str]:
    raw = data.get(key)
    if raw in (None, ""):
        if required:
            raise InvalidInput("Password is required")
        return None
    if not isinstance(raw, str) or len(raw) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return raw


def parse_user_fields(data: Dict[str, Any], *, partial: bool = False) -> Dict[str, Any]:
    """Validate the camelCase user payload into model attributes."""
    required = not partial
    fields: Dict[str, Any] = {
        "first_name": payload.text(data, "firstName", label="First name", min_len=2, max_len=50, required=required),
        "last_name": payload.text(data, "lastName", label="Last name", min_len=2, max_len=50, required=required),
        "phone_number": payload.phone(data, required=required),
        "address": payload.text(data, "address", label="Address", min_len=10, max_len=200, required=required),
        "email": payload.email(data, required=required),
        "password": _password(data, required=required),
        "role_id": payload.integer(data, "roleId", label="Role", required=False),
        "is_active": payload.boolean(data, "isActive"),
    }
    return {key: value for key, value in fields.items() if value is not None}


def _check_unique(fields: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
    checks = (("email", User.email, "Email"), ("phone_number", User.phone_number, "Phone number"))
    for key, column, label in checks:
        if key in fields:
            query = User.query.filter(column == fields[key])
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first() is not None:
                raise InvalidInput(f"{label} already exists")


def create_user(fields: Dict[str, Any], *, role: Optional[Role] = None) -> User:
    fields = dict(fields)
    _check_unique(fields)
    if role is None:
        role = get_or_404(Role, fields.pop("role_id", None), "Role")
    else:
        fields.pop("role_id", None)
    password = fields.pop("password")
    user = User(role=role, **fields)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User %s created with role %s", user.email, role.name)
    return user


def update_user(user_id: int, fields: Dict[str, Any]) -> User:
    user = get_or_404(User, user_id, "User")
    fields = dict(fields)
    _check_unique(fields, exclude_id=user.id)
    if "role_id" in fields:
        user.role = get_or_404(Role, fields.pop("role_id"), "Role")
    password = fields.pop("password", None)
    for key, value in fields.items():
        setattr(user, key, value)
    if password:
        user.set_password(password)
    db.session.commit()
    return user


def delete_user(user_id: int, *, acting_user_id: Optional[int] = None) -> None:
    user = get_or_404(User, user_id, "User")
    if acting_user_id is not None and user.id == acting_user_id:
        raise InvalidInput("You cannot delete your own account")
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("User %s deleted", user_id)


def authenticate(email: str, password: str) -> User:
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")
    user.mark_login()
    db.session.commit()
    return user


def change_password(user: User, old_password: str, new_password: str) -> None:
    if not user.check_password(old_password):
        raise InvalidInput("Current password is incorrect")
    if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    user.set_password(new_password)
    db.session.commit()
    current_app.logger.info("Password changed for user %s", user.id)


def admin_exists() -> bool:
    return User.query.join(Role).filter(Role.name == RoleName.ADMIN).first() is not None
