"""Reference data: internet services, coverage zones and task categories."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..extensions import db
from .base import Money, TimestampMixin, capitalize_name


class Service(TimestampMixin, db.Model):
    """Subscription plan a customer pays for monthly."""

    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("name", name="uq_services_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Money, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Service {self.name} {self.cost}>"


class Zone(TimestampMixin, db.Model):
    """Geographic coverage area."""

    __tablename__ = "zones"
    __table_args__ = (UniqueConstraint("name", name="uq_zones_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)

    @validates("name")
    def _normalize_name(self, key, value):
        return capitalize_name(value)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Zone {self.name}>"


class Category(TimestampMixin, db.Model):
    """Kind of field work (installation, repair, ...)."""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("name", name="uq_categories_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)

    @validates("name")
    def _normalize_name(self, key, value):
        return capitalize_name(value)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Category {self.name}>"
