"""Invoice lifecycle: numbering, edits, discounts, payments and the monthly batch."""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import select

from ..errors import (
    DuplicatePeriod,
    ExceedsBalance,
    InvalidInput,
    NoActiveCollectors,
    NoActiveCustomers,
    NotFound,
    ValidationError,
)
from ..extensions import db
from ..models import OPEN_STATUSES, Customer, Invoice, InvoiceStatus, Role, RoleName, Service, User
from . import money, sequence_service
from .lookup import get_or_404

UPDATABLE_FIELDS = ("balance", "discount", "due_date", "assigned_to_id", "customer_id", "service_id")


def _period_key(now: datetime) -> str:
    return now.strftime("%Y%m")


def next_invoice_number(now: Optional[datetime] = None) -> str:
    """Issue the next ``INV-YYYYMM-NNNN`` number for the current month."""
    now = now or datetime.utcnow()
    key = _period_key(now)
    prefix = f"INV-{key}-"

    def _highest_issued() -> int:
        numbers = db.session.execute(select(Invoice.number).where(Invoice.number.like(f"{prefix}%"))).scalars()
        highest = 0
        for number in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    sequence = sequence_service.next_value(f"invoice:{key}", seed=_highest_issued)
    return f"{prefix}{sequence:04d}"


def active_collectors() -> List[User]:
    return (
        User.query.join(Role)
        .filter(Role.name == RoleName.COLLECTOR, User.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )


def require_collector(user_id: Any) -> User:
    user = get_or_404(User, user_id, "Assigned user")
    if not user.is_active or not user.has_role(RoleName.COLLECTOR):
        raise InvalidInput("Assigned user must be an active collector")
    return user


def _non_negative_balance(value: Any) -> Decimal:
    balance = money.to_money(value, field="Balance")
    if balance < money.ZERO:
        raise InvalidInput("Balance cannot be negative")
    return balance


def get_invoice(invoice_id: int) -> Invoice:
    return get_or_404(Invoice, invoice_id, "Invoice")


def list_invoices(status: Optional[str] = None) -> List[Invoice]:
    query = Invoice.query
    if status:
        query = query.filter(Invoice.status == parse_status(status))
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def create_invoice(
    *,
    customer_id: int,
    assigned_to_id: int,
    due_date: date,
    service_id: Optional[int] = None,
    balance: Any = None,
    discount: Any = None,
) -> Invoice:
    customer = get_or_404(Customer, customer_id, "Customer")
    service = get_or_404(Service, service_id or customer.service_id, "Service")
    collector = require_collector(assigned_to_id)

    invoice = Invoice(
        number=next_invoice_number(),
        customer_id=customer.id,
        service_id=service.id,
        assigned_to_id=collector.id,
        balance=_non_negative_balance(balance) if balance is not None else service.cost,
        discount=money.ZERO,
        amount=money.ZERO,
        due_date=due_date,
    )
    if discount is not None:
        money.apply_discount(invoice, discount)
    money.refresh_status(invoice)

    db.session.add(invoice)
    db.session.commit()
    current_app.logger.info("Invoice %s created for customer %s", invoice.number, customer.id)
    return invoice


def update_invoice(invoice_id: int, changes: Dict[str, Any]) -> Invoice:
    """Apply ``changes`` (keys from ``UPDATABLE_FIELDS``) and re-derive status."""
    invoice = get_invoice(invoice_id)
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidInput(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    if "customer_id" in changes:
        invoice.customer_id = get_or_404(Customer, changes["customer_id"], "Customer").id
    if "service_id" in changes:
        invoice.service_id = get_or_404(Service, changes["service_id"], "Service").id
    if "assigned_to_id" in changes:
        invoice.assigned_to_id = require_collector(changes["assigned_to_id"]).id
    if "due_date" in changes:
        invoice.due_date = changes["due_date"]

    balance = _non_negative_balance(changes["balance"]) if "balance" in changes else invoice.balance
    discount = money.validate_discount(changes["discount"]) if "discount" in changes else invoice.discount
    if Decimal(invoice.amount) > money.discounted_balance(balance, discount):
        raise ExceedsBalance("Amount already paid exceeds the new discounted balance")
    invoice.balance = balance
    invoice.discount = discount
    money.refresh_status(invoice)

    db.session.commit()
    current_app.logger.info("Invoice %s updated", invoice.number)
    return invoice


def delete_invoice(invoice_id: int) -> None:
    invoice = get_invoice(invoice_id)
    number = invoice.number
    db.session.delete(invoice)
    db.session.commit()
    current_app.logger.info("Invoice %s deleted", number)


def apply_discount(invoice_id: int, pct: Any) -> Invoice:
    invoice = get_invoice(invoice_id)
    money.apply_discount(invoice, pct)
    db.session.commit()
    current_app.logger.info("Discount %s%% applied to invoice %s", invoice.discount, invoice.number)
    return invoice


def remove_discount(invoice_id: int) -> Invoice:
    invoice = get_invoice(invoice_id)
    money.remove_discount(invoice)
    db.session.commit()
    current_app.logger.info("Discount removed from invoice %s", invoice.number)
    return invoice


def record_payment(invoice_id: int, amount: Any, *, collector_id: Optional[int] = None) -> Invoice:
    """Add a payment; with ``collector_id`` the invoice must be assigned to that collector."""
    invoice = get_invoice(invoice_id)
    if collector_id is not None and invoice.assigned_to_id != collector_id:
        raise NotFound("Invoice not found or not assigned to you")
    money.record_payment(invoice, amount)
    db.session.commit()
    current_app.logger.info(
        "Payment %s recorded on invoice %s (status %s)", amount, invoice.number, invoice.status.value
    )
    return invoice


def due_date_for_period(year: int, month: int) -> date:
    """Batch invoices fall due on the configured day of the following month."""
    day = int(current_app.config.get("INVOICE_DUE_DAY", 15))
    if month == 12:
        return date(year + 1, 1, day)
    return date(year, month + 1, day)


def _validate_period(year: Any, month: Any) -> tuple[int, int]:
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise InvalidInput("Year and month must be integers") from None
    if not 1 <= month <= 12:
        raise InvalidInput("Month must be between 1 and 12")
    if not 2000 <= year <= 9999:
        raise InvalidInput("Year is out of range")
    return year, month


def generate_monthly(year: Any, month: Any) -> List[Invoice]:
    """Create one invoice per active customer, round-robin across active collectors."""
    year, month = _validate_period(year, month)

    customers = Customer.query.filter_by(is_active=True).order_by(Customer.id.asc()).all()
    if not customers:
        raise NoActiveCustomers()
    collectors = active_collectors()
    if not collectors:
        raise NoActiveCollectors()
    if Invoice.query.filter_by(period_year=year, period_month=month).first():
        raise DuplicatePeriod(f"Invoices for {year}-{month:02d} already exist")

    due_date = due_date_for_period(year, month)
    created: List[Invoice] = []
    for customer in customers:
        if customer.service is None or customer.zone is None:
            continue
        collector = collectors[len(created) % len(collectors)]
        invoice = Invoice(
            number=next_invoice_number(),
            customer_id=customer.id,
            service_id=customer.service_id,
            assigned_to_id=collector.id,
            balance=customer.service.cost,
            discount=money.ZERO,
            amount=money.ZERO,
            due_date=due_date,
            period_year=year,
            period_month=month,
        )
        money.refresh_status(invoice)
        db.session.add(invoice)
        created.append(invoice)

    db.session.commit()
    current_app.logger.info(
        "Generated %d invoices for %d-%02d across %d collectors", len(created), year, month, len(collectors)
    )
    return created


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])")


def parse_status(raw: str) -> InvoiceStatus:
    """Accept ``partially_paid``, ``PartiallyPaid`` or ``partially-paid``."""
    normalized = _CAMEL_BOUNDARY.sub("_", (raw or "").strip()).replace("-", "_").replace(" ", "_").lower()
    try:
        return InvoiceStatus(normalized)
    except ValueError:
        allowed = ", ".join(status.value for status in InvoiceStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}") from None


def invoices_for_collector(
    collector_id: int, status: Optional[str] = None, *, open_only: bool = False
) -> List[Invoice]:
    """Invoices assigned to a collector; ``open_only`` drops paid ones unless ``status`` is given."""
    get_or_404(User, collector_id, "Collector")
    query = Invoice.query.filter_by(assigned_to_id=collector_id)
    if status:
        query = query.filter(Invoice.status == parse_status(status))
    elif open_only:
        query = query.filter(Invoice.status.in_(OPEN_STATUSES))
    return query.order_by(Invoice.due_date.asc(), Invoice.id.asc()).all()


def invoices_by_status(raw_status: str) -> List[Invoice]:
    status = parse_status(raw_status)
    return Invoice.query.filter_by(status=status).order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def overdue_invoices(today: Optional[date] = None) -> List[Invoice]:
    today = today or datetime.utcnow().date()
    return (
        Invoice.query.filter(Invoice.due_date < today, Invoice.status != InvoiceStatus.PAID)
        .order_by(Invoice.due_date.asc(), Invoice.id.asc())
        .all()
    )


def invoices_for_customer(customer_id: int) -> List[Invoice]:
    get_or_404(Customer, customer_id, "Customer")
    return (
        Invoice.query.filter_by(customer_id=customer_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )
