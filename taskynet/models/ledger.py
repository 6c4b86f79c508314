"""Company cash ledger and collector balances."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..extensions import db
from .base import Money, TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .user import User

COMPANY_ID = 1


class Currency(str, enum.Enum):
    LBP = "LBP"
    USD = "USD"


class TransactionType(str, enum.Enum):
    """Direction of a collector cash movement, from the company's side."""

    RECEIVED = "received"
    PAID = "paid"


class Company(TimestampMixin, db.Model):
    """Singleton cash-on-hand ledger, always stored under ``COMPANY_ID``."""

    __tablename__ = "company"
    __table_args__ = (CheckConstraint("cash >= 0", name="ck_company_cash_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    cash: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default=text("0"))

    cashouts: Mapped[list["CashoutTransaction"]] = relationship(
        "CashoutTransaction",
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="CashoutTransaction.id.desc()",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Company cash={self.cash}>"


class CashoutTransaction(db.Model):
    """Audit record of cash withdrawn from the company ledger."""

    __tablename__ = "cashout_transactions"
    __table_args__ = (Index("ix_cashouts_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    company_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    reason: Mapped[str] = mapped_column(db.String(500), nullable=False)
    performed_by_id: Mapped[int | None] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(db.DateTime, nullable=False, default=datetime.utcnow)

    company: Mapped[Company] = relationship("Company", back_populates="cashouts")
    performed_by: Mapped["User | None"] = relationship("User", lazy="joined")


class CollectorBalance(TimestampMixin, db.Model):
    """Running cash a collector holds for the company, per currency."""

    __tablename__ = "collector_balances"
    __table_args__ = (UniqueConstraint("collector_id", name="uq_collector_balances_collector"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    collector_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    balance_lbp: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default=text("0"))
    balance_usd: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default=text("0"))

    collector: Mapped["User"] = relationship("User", lazy="joined")

    def get(self, currency: Currency) -> Decimal:
        return self.balance_lbp if currency == Currency.LBP else self.balance_usd

    def set(self, currency: Currency, value: Decimal) -> None:
        if currency == Currency.LBP:
            self.balance_lbp = value
        else:
            self.balance_usd = value


class CollectorTransaction(TimestampMixin, db.Model):
    """Immutable record of cash moved between a collector and the company."""

    __tablename__ = "collector_transactions"
    __table_args__ = (
        Index("ix_collector_txn_collector", "collector_id", "created_at"),
        CheckConstraint("amount > 0", name="ck_collector_txn_amount_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    collector_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[Currency] = mapped_column(
        db.Enum(Currency, native_enum=False, validate_strings=True, name="currency"),
        nullable=False,
    )
    type: Mapped[TransactionType] = mapped_column(
        db.Enum(TransactionType, native_enum=False, validate_strings=True, name="collector_txn_type"),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(db.String(500), nullable=True)
    processed_by_id: Mapped[int | None] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    collector: Mapped["User"] = relationship("User", foreign_keys=[collector_id], lazy="joined")
    processed_by: Mapped["User | None"] = relationship("User", foreign_keys=[processed_by_id], lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CollectorTxn {self.type.value} {self.amount} {self.currency.value}>"
