"""Company cash ledger: the singleton record and its cashouts."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import COMPANY_ID, CashoutTransaction, Company, Invoice, InvoiceStatus
from . import money


def _opening_cash() -> Decimal:
    """Sum of the discounted balances of every paid invoice."""
    total = money.ZERO
    for balance, discount in db.session.execute(
        select(Invoice.balance, Invoice.discount).where(Invoice.status == InvoiceStatus.PAID)
    ):
        total += money.discounted_balance(balance, discount or money.ZERO)
    return total


def get_company(*, for_update: bool = False) -> Company:
    """Return the company record, creating and seeding it on first access."""
    query = select(Company).where(Company.id == COMPANY_ID)
    if for_update:
        query = query.with_for_update()
    company = db.session.execute(query).scalar_one_or_none()
    if company is not None:
        return company

    try:
        with db.session.begin_nested():
            company = Company(id=COMPANY_ID, cash=_opening_cash())
            db.session.add(company)
        current_app.logger.info("Company ledger created with opening cash %s", company.cash)
        return company
    except IntegrityError:
        # Created concurrently; use the winner's row.
        return db.session.execute(query).scalar_one()


def company_snapshot() -> Company:
    company = get_company()
    db.session.commit()
    return company


def cashout(amount: Any, reason: Optional[str], performed_by_id: Optional[int]) -> CashoutTransaction:
    company = get_company(for_update=True)
    new_cash, value, cleaned_reason = money.cashout(company.cash, amount, reason)
    record = CashoutTransaction(
        company_id=company.id,
        amount=value,
        reason=cleaned_reason,
        performed_by_id=performed_by_id,
    )
    company.cash = new_cash
    company.cashouts.append(record)
    db.session.commit()
    current_app.logger.info("Cashout of %s by user %s, cash now %s", value, performed_by_id, new_cash)
    return record


def _total_cashouts(*criteria) -> Decimal:
    total = db.session.execute(select(func.coalesce(func.sum(CashoutTransaction.amount), 0)).where(*criteria)).scalar()
    return Decimal(str(total or 0))


def cashout_history(limit: int = 50) -> Dict[str, Any]:
    company = get_company()
    rows = (
        CashoutTransaction.query.filter_by(company_id=company.id)
        .order_by(CashoutTransaction.created_at.desc(), CashoutTransaction.id.desc())
        .limit(limit)
        .all()
    )
    total = _total_cashouts(CashoutTransaction.company_id == company.id)
    db.session.commit()
    return {"cashouts": rows, "total": total, "currentCash": company.cash}


def cashouts_between(start: datetime, end: datetime) -> Dict[str, Any]:
    """Cashouts with ``start <= created_at <= end``, oldest first."""
    criteria = (CashoutTransaction.created_at >= start, CashoutTransaction.created_at <= end)
    rows: List[CashoutTransaction] = (
        CashoutTransaction.query.filter(*criteria)
        .order_by(CashoutTransaction.created_at.asc(), CashoutTransaction.id.asc())
        .all()
    )
    return {"cashouts": rows, "total": _total_cashouts(*criteria), "count": len(rows)}
