"""Roles and staff accounts (admins, technicians, collectors)."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from ..extensions import db
from .base import TimestampMixin, capitalize_name


class RoleName:
    """Well-known role names used by the access gate."""

    ADMIN = "Admin"
    MANAGER = "Manager"
    TECHNICIAN = "Technician"
    COLLECTOR = "Collector"
    CUSTOMER_SERVICE = "Customer service"

    DEFAULTS = (ADMIN, MANAGER, TECHNICIAN, COLLECTOR, CUSTOMER_SERVICE)


class Role(TimestampMixin, db.Model):
    """Named role referenced by users."""

    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("name", name="uq_roles_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(50), nullable=False)

    users: Mapped[list["User"]] = relationship("User", back_populates="role")

    @validates("name")
    def _normalize_name(self, key, value):
        return capitalize_name(value)

    def __repr__(self) -> str:  # pragma: no cover - repr helper
        return f"<Role {self.name}>"


class User(TimestampMixin, db.Model):
    """Staff account with a single role."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("phone_number", name="uq_users_phone_number"),
        Index("ix_users_role_active", "role_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(db.String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(db.String(50), nullable=False)
    phone_number: Mapped[str] = mapped_column(db.String(20), nullable=False)
    address: Mapped[str] = mapped_column(db.String(200), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    role_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True, server_default=true())
    last_login_at: Mapped[datetime | None] = mapped_column(db.DateTime, nullable=True)

    role: Mapped[Role] = relationship("Role", back_populates="users", lazy="joined")

    @validates("email")
    def _normalize_email(self, key, value):
        return (value or "").strip().lower()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role else None

    def has_role(self, *names: str) -> bool:
        return self.role_name in names

    def set_password(self, raw_password: str) -> None:
        """Hash and store a password using Werkzeug's PBKDF2 implementation."""
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        """Validate a password against the stored hash."""
        return check_password_hash(self.password_hash, raw_password or "")

    def mark_login(self) -> None:
        """Record the last login timestamp for auditing."""
        self.last_login_at = datetime.utcnow()

    def __repr__(self) -> str:  # pragma: no cover - repr helper
        return f"<User {self.email}>"
