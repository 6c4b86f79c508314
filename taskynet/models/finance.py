"""Customer invoices and the named counters that number them."""
from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..extensions import db
from .base import Money, TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import Service
    from .customer import Customer
    from .user import User


class InvoiceStatus(str, enum.Enum):
    """Payment state, always derived from balance, discount and amount."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


OPEN_STATUSES = (InvoiceStatus.UNPAID, InvoiceStatus.PARTIALLY_PAID)


class Invoice(TimestampMixin, db.Model):
    """Numbered bill for one customer and one service."""

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("number", name="uq_invoices_number"),
        Index("ix_invoices_status", "status"),
        Index("ix_invoices_assignee_status", "assigned_to_id", "status"),
        Index("ix_invoices_period", "period_year", "period_month"),
        Index("ix_invoices_due_date", "due_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    number: Mapped[str] = mapped_column(db.String(32), nullable=False)
    customer_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    service_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
    )
    assigned_to_id: Mapped[int | None] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    balance: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default=text("0"))
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default=text("0"))
    status: Mapped[InvoiceStatus] = mapped_column(
        db.Enum(InvoiceStatus, native_enum=False, validate_strings=True, name="invoice_status"),
        nullable=False,
        default=InvoiceStatus.UNPAID,
        server_default=text("'unpaid'"),
    )
    due_date: Mapped[date] = mapped_column(db.Date, nullable=False)
    period_year: Mapped[int | None] = mapped_column(db.Integer, nullable=True)
    period_month: Mapped[int | None] = mapped_column(db.Integer, nullable=True)

    customer: Mapped["Customer"] = relationship("Customer", lazy="joined")
    service: Mapped["Service"] = relationship("Service", lazy="joined")
    assignee: Mapped["User | None"] = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Invoice {self.number} {self.status.value}>"


class Counter(db.Model):
    """Named monotonically increasing sequence."""

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(db.String(64), primary_key=True)
    value: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Counter {self.name}={self.value}>"
