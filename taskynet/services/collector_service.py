"""Collector reconciliation: balances, cash movements and invoice assignments."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..errors import InvalidInput, NotFound
from ..extensions import db
from ..models import (
    OPEN_STATUSES,
    CollectorBalance,
    CollectorTransaction,
    Customer,
    Invoice,
    RoleName,
    TransactionType,
    User,
)
from . import company_service, money
from .invoice_service import active_collectors

TRANSACTION_LIMIT = 100
MAX_DESCRIPTION_LENGTH = 500


def get_collector(collector_id: int) -> User:
    user = db.session.get(User, collector_id)
    if user is None or not user.has_role(RoleName.COLLECTOR):
        raise NotFound("Collector not found")
    return user


def _balances_by_collector(ids: Iterable[int]) -> Dict[int, CollectorBalance]:
    ids = list(ids)
    if not ids:
        return {}
    rows = CollectorBalance.query.filter(CollectorBalance.collector_id.in_(ids)).all()
    return {row.collector_id: row for row in rows}


def list_collectors() -> List[Tuple[User, Optional[CollectorBalance]]]:
    collectors = active_collectors()
    balances = _balances_by_collector(c.id for c in collectors)
    return [(collector, balances.get(collector.id)) for collector in collectors]


def _locked_balance(collector_id: int) -> CollectorBalance:
    query = select(CollectorBalance).where(CollectorBalance.collector_id == collector_id).with_for_update()
    balance = db.session.execute(query).scalar_one_or_none()
    if balance is not None:
        return balance
    try:
        with db.session.begin_nested():
            balance = CollectorBalance(collector_id=collector_id, balance_lbp=money.ZERO, balance_usd=money.ZERO)
            db.session.add(balance)
        return balance
    except IntegrityError:
        return db.session.execute(query).scalar_one()


def _move_cash(
    collector_id: int,
    amount: Any,
    currency: Any,
    description: Optional[str],
    processed_by_id: Optional[int],
    direction: money.TransferDirection,
) -> CollectorTransaction:
    collector = get_collector(collector_id)
    value = money.to_money(amount)
    if value <= money.ZERO:
        raise InvalidInput("Amount must be positive")
    cur = money.validate_currency(currency)
    note = str(description or "").strip()
    if len(note) > MAX_DESCRIPTION_LENGTH:
        raise InvalidInput(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")
    rate = current_app.config["USD_LBP_RATE"]

    company = company_service.get_company(for_update=True)
    balance = _locked_balance(collector.id)
    new_balance, new_cash = money.transfer_cash(balance.get(cur), company.cash, value, cur, direction, rate)

    txn_type = (
        TransactionType.RECEIVED
        if direction == money.TransferDirection.COLLECTOR_TO_COMPANY
        else TransactionType.PAID
    )
    txn = CollectorTransaction(
        collector_id=collector.id,
        amount=value,
        currency=cur,
        type=txn_type,
        description=note or None,
        processed_by_id=processed_by_id,
    )
    balance.set(cur, new_balance)
    company.cash = new_cash
    db.session.add(txn)
    db.session.commit()
    current_app.logger.info(
        "Collector %s %s %s %s; company cash now %s", collector.id, txn_type.value, value, cur.value, new_cash
    )
    return txn


def receive_from_collector(collector_id, amount, currency, description=None, processed_by_id=None):
    """Collector hands cash to the company."""
    return _move_cash(
        collector_id, amount, currency, description, processed_by_id, money.TransferDirection.COLLECTOR_TO_COMPANY
    )


def pay_to_collector(collector_id, amount, currency, description=None, processed_by_id=None):
    """Company hands cash to a collector; fails when company cash cannot cover it."""
    return _move_cash(
        collector_id, amount, currency, description, processed_by_id, money.TransferDirection.COMPANY_TO_COLLECTOR
    )


def collector_balance(collector_id: int) -> Optional[CollectorBalance]:
    return CollectorBalance.query.filter_by(collector_id=collector_id).first()


def get_assignments(collector_id: int) -> Dict[str, List[Customer]]:
    """Customers split by whether they have open invoices assigned to the collector."""
    collector = get_collector(collector_id)
    all_customers = Customer.query.order_by(Customer.name.asc(), Customer.id.asc()).all()
    assigned_ids = set(
        db.session.execute(
            select(Invoice.customer_id)
            .where(Invoice.assigned_to_id == collector.id, Invoice.status.in_(OPEN_STATUSES))
            .distinct()
        ).scalars()
    )
    return {
        "allCustomers": all_customers,
        "assignedCustomers": [c for c in all_customers if c.id in assigned_ids],
        "unassignedCustomers": [c for c in all_customers if c.id not in assigned_ids],
    }


def update_assignments(collector_id: int, customer_ids: Iterable[Any]) -> Dict[str, int]:
    """Hand the open invoices of ``customer_ids`` to the collector in one transaction."""
    collector = get_collector(collector_id)
    ids = sorted({int(cid) for cid in customer_ids})

    cleared = db.session.execute(
        update(Invoice)
        .where(Invoice.assigned_to_id == collector.id, Invoice.status.in_(OPEN_STATUSES))
        .values(assigned_to_id=None)
        .execution_options(synchronize_session=False)
    ).rowcount
    assigned = 0
    if ids:
        assigned = db.session.execute(
            update(Invoice)
            .where(Invoice.customer_id.in_(ids), Invoice.status.in_(OPEN_STATUSES))
            .values(assigned_to_id=collector.id)
            .execution_options(synchronize_session=False)
        ).rowcount
    db.session.commit()
    current_app.logger.info(
        "Collector %s assignments updated: %d cleared, %d assigned", collector.id, cleared, assigned
    )
    return {"cleared": cleared, "assigned": assigned}


def list_transactions(
    *,
    collector_id: Optional[int] = None,
    type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = TRANSACTION_LIMIT,
) -> List[CollectorTransaction]:
    query = CollectorTransaction.query
    if collector_id is not None:
        query = query.filter(CollectorTransaction.collector_id == get_collector(collector_id).id)
    if type:
        try:
            query = query.filter(CollectorTransaction.type == TransactionType(type.strip().lower()))
        except ValueError:
            raise InvalidInput("Type must be received or paid") from None
    if start is not None:
        query = query.filter(CollectorTransaction.created_at >= start)
    if end is not None:
        query = query.filter(CollectorTransaction.created_at <= end)
    return query.order_by(CollectorTransaction.created_at.desc(), CollectorTransaction.id.desc()).limit(limit).all()
