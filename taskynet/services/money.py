"""Pure money rules: discounts, payments, status derivation and cash transfers.

Nothing here touches the database. Callers pass values or invoice-like objects
(anything with ``balance``, ``discount``, ``amount`` and ``status``) and decide
themselves when to persist the result.
"""
from __future__ import annotations

import enum
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Tuple

from ..errors import ExceedsBalance, InsufficientFunds, InvalidInput
from ..models.finance import InvoiceStatus
from ..models.ledger import Currency

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Numeric(18, 2) keeps 16 digits before the point
MONEY_LIMIT = Decimal("1e16")

MIN_CASHOUT_REASON = 3
MAX_CASHOUT_REASON = 500


class TransferDirection(str, enum.Enum):
    COLLECTOR_TO_COMPANY = "collector_to_company"
    COMPANY_TO_COLLECTOR = "company_to_collector"


def to_money(value: Any, *, field: str = "Amount") -> Decimal:
    """Coerce ``value`` to a cent-quantized Decimal."""
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a number")
    try:
        number = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field} must be a number") from None
    if not number.is_finite():
        raise InvalidInput(f"{field} must be a number")
    if abs(number) >= MONEY_LIMIT:
        raise InvalidInput(f"{field} is too large")
    return number.quantize(CENT, rounding=ROUND_HALF_UP)


def discounted_balance(balance: Decimal, discount_pct: Decimal) -> Decimal:
    balance = Decimal(balance)
    discount_pct = Decimal(discount_pct)
    return (balance * (HUNDRED - discount_pct) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def derive_status(balance: Decimal, discount: Decimal, amount: Decimal) -> InvoiceStatus:
    final = discounted_balance(balance, discount)
    if Decimal(amount) >= final:
        return InvoiceStatus.PAID
    if Decimal(amount) > ZERO:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.UNPAID


def refresh_status(invoice) -> InvoiceStatus:
    """Recompute and store ``invoice.status``; call after every money mutation."""
    invoice.status = derive_status(invoice.balance, invoice.discount or ZERO, invoice.amount or ZERO)
    return invoice.status


def remaining_balance(invoice) -> Decimal:
    return discounted_balance(invoice.balance, invoice.discount or ZERO) - Decimal(invoice.amount or ZERO)


def validate_discount(pct: Any) -> Decimal:
    value = to_money(pct, field="Discount")
    if value < ZERO or value > HUNDRED:
        raise InvalidInput("Discount must be between 0 and 100 percent")
    return value


def apply_discount(invoice, pct: Any) -> None:
    value = validate_discount(pct)
    if Decimal(invoice.amount or ZERO) > discounted_balance(invoice.balance, value):
        raise ExceedsBalance("Amount already paid exceeds the discounted balance")
    invoice.discount = value
    refresh_status(invoice)


def remove_discount(invoice) -> None:
    apply_discount(invoice, ZERO)


def record_payment(invoice, amt: Any) -> Decimal:
    """Add ``amt`` to the amount paid; the invoice is untouched on failure."""
    value = to_money(amt)
    if value < ZERO:
        raise InvalidInput("Payment amount cannot be negative")
    new_amount = Decimal(invoice.amount or ZERO) + value
    if new_amount > discounted_balance(invoice.balance, invoice.discount or ZERO):
        raise ExceedsBalance()
    invoice.amount = new_amount
    refresh_status(invoice)
    return new_amount


def validate_currency(currency: Any) -> Currency:
    try:
        return Currency(str(currency or "").strip().upper())
    except ValueError:
        raise InvalidInput("Currency must be LBP or USD") from None


def to_lbp(amount: Decimal, currency: Currency, usd_rate: Any) -> Decimal:
    if currency == Currency.LBP:
        return Decimal(amount)
    return (Decimal(amount) * Decimal(str(usd_rate))).quantize(CENT, rounding=ROUND_HALF_UP)


def transfer_cash(
    collector_balance: Decimal,
    company_cash: Decimal,
    amount: Decimal,
    currency: Currency,
    direction: TransferDirection,
    usd_rate: Any,
) -> Tuple[Decimal, Decimal]:
    """Return the new ``(collector_balance, company_cash)`` after a transfer.

    The collector balance is kept in ``currency``; company cash is LBP. A
    collector may go negative, the company may not.
    """
    if Decimal(amount) <= ZERO:
        raise InvalidInput("Amount must be positive")
    amount_lbp = to_lbp(amount, currency, usd_rate)
    if direction == TransferDirection.COLLECTOR_TO_COMPANY:
        new_balance, new_cash = Decimal(collector_balance) - amount, Decimal(company_cash) + amount_lbp
    else:
        if Decimal(company_cash) < amount_lbp:
            raise InsufficientFunds("Insufficient company cash for this payment")
        new_balance, new_cash = Decimal(collector_balance) + amount, Decimal(company_cash) - amount_lbp
    if abs(new_balance) >= MONEY_LIMIT or new_cash >= MONEY_LIMIT:
        raise InvalidInput("Amount is too large")
    return new_balance, new_cash


def cashout(company_cash: Decimal, amount: Any, reason: str | None) -> Tuple[Decimal, Decimal, str]:
    """Validate a cashout and return ``(new_cash, amount, cleaned_reason)``."""
    value = to_money(amount, field="Cashout amount")
    if value <= ZERO:
        raise InvalidInput("Cashout amount must be greater than 0")
    cleaned = (reason or "").strip()
    if len(cleaned) < MIN_CASHOUT_REASON:
        raise InvalidInput("Cashout reason is required and must be at least 3 characters")
    if len(cleaned) > MAX_CASHOUT_REASON:
        raise InvalidInput("Cashout reason cannot exceed 500 characters")
    if value > Decimal(company_cash):
        raise InsufficientFunds("Insufficient cash for cashout")
    return Decimal(company_cash) - value, value, cleaned
