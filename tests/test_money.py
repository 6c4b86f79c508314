from decimal import Decimal
from types import SimpleNamespace

import pytest

from taskynet.errors import Conflict, ExceedsBalance, InsufficientFunds, InvalidInput
from taskynet.models import Currency, InvoiceStatus
from taskynet.services import money


def _invoice(balance="100", discount="0", amount="0"):
    invoice = SimpleNamespace(
        balance=Decimal(balance), discount=Decimal(discount), amount=Decimal(amount), status=None
    )
    money.refresh_status(invoice)
    return invoice


def test_to_money_quantizes_and_rejects_garbage():
    assert money.to_money("1,234.565") == Decimal("1234.57")
    assert money.to_money(10) == Decimal("10.00")
    for bad in ("abc", None, True, "NaN"):
        with pytest.raises(InvalidInput):
            money.to_money(bad)


@pytest.mark.parametrize("huge", [1e30, "1e40", "-1E16", 10**16, "99999999999999999"])
def test_to_money_rejects_values_too_large_for_storage(huge):
    with pytest.raises(InvalidInput, match="too large"):
        money.to_money(huge)


def test_to_money_accepts_largest_storable_value():
    assert money.to_money("9999999999999999.99") == Decimal("9999999999999999.99")


def test_discounted_balance():
    assert money.discounted_balance(Decimal("100"), Decimal("10")) == Decimal("90.00")
    assert money.discounted_balance(Decimal("100"), Decimal("100")) == Decimal("0.00")
    assert money.discounted_balance(Decimal("99.99"), Decimal("0")) == Decimal("99.99")


@pytest.mark.parametrize(
    "amount, expected",
    [
        ("0", InvoiceStatus.UNPAID),
        ("0.01", InvoiceStatus.PARTIALLY_PAID),
        ("89.99", InvoiceStatus.PARTIALLY_PAID),
        ("90", InvoiceStatus.PAID),
    ],
)
def test_derive_status(amount, expected):
    assert money.derive_status(Decimal("100"), Decimal("10"), Decimal(amount)) == expected


def test_zero_balance_invoice_is_paid():
    assert _invoice(balance="0").status == InvoiceStatus.PAID


def test_discount_then_full_payment_then_any_payment_conflicts():
    invoice = _invoice()
    money.apply_discount(invoice, 10)
    assert money.remaining_balance(invoice) == Decimal("90.00")

    money.record_payment(invoice, 90)
    assert invoice.status == InvoiceStatus.PAID
    assert money.remaining_balance(invoice) == Decimal("0.00")

    with pytest.raises(Conflict):
        money.record_payment(invoice, "0.01")
    assert invoice.amount == Decimal("90.00")
    assert invoice.status == InvoiceStatus.PAID


def test_partial_payment_and_rejected_overpayment_leave_state():
    invoice = _invoice()
    money.record_payment(invoice, 40)
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID

    with pytest.raises(ExceedsBalance):
        money.record_payment(invoice, 61)
    assert invoice.amount == Decimal("40.00")
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID


def test_negative_payment_is_invalid():
    with pytest.raises(InvalidInput):
        money.record_payment(_invoice(), -5)


def test_discount_bounds_and_paid_amount_guard():
    invoice = _invoice()
    for bad in (-1, 100.5, "ten"):
        with pytest.raises(InvalidInput):
            money.apply_discount(invoice, bad)

    money.record_payment(invoice, 80)
    with pytest.raises(ExceedsBalance):
        money.apply_discount(invoice, 30)
    assert invoice.discount == Decimal("0")

    money.apply_discount(invoice, 20)
    assert invoice.status == InvoiceStatus.PAID
    money.remove_discount(invoice)
    assert invoice.discount == Decimal("0")
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID


def test_transfer_collector_to_company_converts_usd():
    collector, company = money.transfer_cash(
        Decimal("0"), Decimal("0"), Decimal("100"), Currency.USD,
        money.TransferDirection.COLLECTOR_TO_COMPANY, 90000,
    )
    assert collector == Decimal("-100")
    assert company == Decimal("9000000.00")


def test_transfer_company_to_collector_requires_cash():
    with pytest.raises(InsufficientFunds):
        money.transfer_cash(
            Decimal("0"), Decimal("500000"), Decimal("10"), Currency.USD,
            money.TransferDirection.COMPANY_TO_COLLECTOR, 90000,
        )
    collector, company = money.transfer_cash(
        Decimal("5"), Decimal("500000"), Decimal("200000"), Currency.LBP,
        money.TransferDirection.COMPANY_TO_COLLECTOR, 90000,
    )
    assert collector == Decimal("200005")
    assert company == Decimal("300000")


def test_transfer_rejects_non_positive_amount():
    with pytest.raises(InvalidInput):
        money.transfer_cash(
            Decimal("0"), Decimal("0"), Decimal("0"), Currency.LBP,
            money.TransferDirection.COLLECTOR_TO_COMPANY, 90000,
        )


def test_transfer_rejects_cash_beyond_storage():
    with pytest.raises(InvalidInput, match="too large"):
        money.transfer_cash(
            Decimal("0"), Decimal("0"), Decimal("9000000000000000"), Currency.USD,
            money.TransferDirection.COLLECTOR_TO_COMPANY, 90000,
        )


def test_validate_currency():
    assert money.validate_currency("usd") == Currency.USD
    with pytest.raises(InvalidInput):
        money.validate_currency("EUR")


def test_cashout_rules():
    new_cash, amount, reason = money.cashout(Decimal("1000"), "250", "  Office rent  ")
    assert (new_cash, amount, reason) == (Decimal("750.00"), Decimal("250.00"), "Office rent")

    with pytest.raises(InvalidInput):
        money.cashout(Decimal("1000"), 0, "Office rent")
    with pytest.raises(InvalidInput):
        money.cashout(Decimal("1000"), 10, "ab")
    with pytest.raises(InsufficientFunds):
        money.cashout(Decimal("1000"), "1000.01", "Office rent")
