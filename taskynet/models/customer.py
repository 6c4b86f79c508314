"""Subscriber records."""
from __future__ import annotations

from sqlalchemy import Index, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..extensions import db
from .base import TimestampMixin
from .catalog import Service, Zone


class Customer(TimestampMixin, db.Model):
    """Internet subscriber tied to one service and one zone."""

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("phone_number", name="uq_customers_phone_number"),
        Index("ix_customers_zone_active", "zone_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)
    location: Mapped[str] = mapped_column(db.String(200), nullable=False)
    phone_number: Mapped[str] = mapped_column(db.String(20), nullable=False)
    service_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    zone_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("zones.id", ondelete="RESTRICT"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True, server_default=true())

    service: Mapped[Service] = relationship("Service", lazy="joined")
    zone: Mapped[Zone] = relationship("Zone", lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Customer {self.id} {self.name}>"
