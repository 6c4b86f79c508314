from datetime import date, datetime
from decimal import Decimal

from taskynet.extensions import db
from taskynet.models import Invoice, InvoiceStatus, RoleName


def _invoice(app, invoice_id):
    with app.app_context():
        invoice = db.session.get(Invoice, invoice_id)
        return invoice.amount, invoice.status, invoice.discount


def test_create_invoice_numbers_within_month(client, factory, admin_headers):
    collector = factory.user(RoleName.COLLECTOR)
    customer_id = factory.customer(service_id=factory.service(cost="35"))
    prefix = f"INV-{datetime.utcnow():%Y%m}-"

    numbers = []
    for _ in range(2):
        resp = client.post(
            "/api/invoices",
            json={"customerId": customer_id, "assignedTo": collector, "dueDate": "2030-02-15"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["balance"] == 35.0
        assert body["status"] == "unpaid"
        numbers.append(body["number"])
    assert numbers == [f"{prefix}0001", f"{prefix}0002"]


def test_create_requires_collector_assignee(client, factory, admin_headers):
    tech = factory.user(RoleName.TECHNICIAN)
    customer_id = factory.customer()
    resp = client.post(
        "/api/invoices",
        json={"customerId": customer_id, "assignedTo": tech, "dueDate": "2030-02-15"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Assigned user must be an active collector"


def test_discount_payment_and_overpayment(client, factory, admin_headers):
    collector = factory.user(RoleName.COLLECTOR)
    invoice_id = factory.invoice(collector_id=collector, balance="100")

    discounted = client.post(f"/api/invoices/{invoice_id}/apply-discount", json={"discount": 10}, headers=admin_headers)
    assert discounted.get_json()["discountedBalance"] == 90.0

    paid = client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 90}, headers=admin_headers)
    assert paid.status_code == 200
    assert paid.get_json()["status"] == "paid"
    assert paid.get_json()["remainingBalance"] == 0.0

    extra = client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 1}, headers=admin_headers)
    assert extra.status_code == 400
    assert _invoice(client.application, invoice_id)[:2] == (Decimal("90.00"), InvoiceStatus.PAID)


def test_discount_that_undercuts_payment_is_rejected(client, factory, admin_headers):
    collector = factory.user(RoleName.COLLECTOR)
    invoice_id = factory.invoice(collector_id=collector, balance="100")
    client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 60}, headers=admin_headers)

    resp = client.post(f"/api/invoices/{invoice_id}/apply-discount", json={"discount": 50}, headers=admin_headers)
    assert resp.status_code == 400
    assert _invoice(client.application, invoice_id) == (
        Decimal("60.00"), InvoiceStatus.PARTIALLY_PAID, Decimal("0.00")
    )

    bad = client.post(f"/api/invoices/{invoice_id}/apply-discount", json={"discount": 120}, headers=admin_headers)
    assert bad.status_code == 400


def test_remove_discount_rederives_status(client, factory, admin_headers):
    collector = factory.user(RoleName.COLLECTOR)
    invoice_id = factory.invoice(collector_id=collector, balance="100")
    client.post(f"/api/invoices/{invoice_id}/apply-discount", json={"discount": 25}, headers=admin_headers)
    client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 75}, headers=admin_headers)

    resp = client.post(f"/api/invoices/{invoice_id}/remove-discount", headers=admin_headers)
    assert resp.get_json()["status"] == "partially_paid"
    assert resp.get_json()["remainingBalance"] == 25.0


def test_update_guards_derived_fields(client, factory, admin_headers):
    collector = factory.user(RoleName.COLLECTOR)
    invoice_id = factory.invoice(collector_id=collector, balance="100")

    assert client.put(f"/api/invoices/{invoice_id}", json={"status": "paid"}, headers=admin_headers).status_code == 400
    assert client.put(f"/api/invoices/{invoice_id}", json={"amount": 5}, headers=admin_headers).status_code == 400

    client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 50}, headers=admin_headers)
    shrink = client.put(f"/api/invoices/{invoice_id}", json={"balance": 40}, headers=admin_headers)
    assert shrink.status_code == 400

    settle = client.put(f"/api/invoices/{invoice_id}", json={"balance": 50}, headers=admin_headers)
    assert settle.status_code == 200
    assert settle.get_json()["status"] == "paid"


def test_monthly_batch_round_robin(client, factory, admin_headers):
    c1 = factory.user(RoleName.COLLECTOR)
    c2 = factory.user(RoleName.COLLECTOR)
    factory.user(RoleName.COLLECTOR, active=False)
    customers = [factory.customer(service_id=factory.service(cost=cost)) for cost in ("10", "20", "30")]
    factory.customer(active=False)

    resp = client.post("/api/invoices/generate-monthly", json={"year": 2031, "month": 5}, headers=admin_headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["count"] == 3
    invoices = body["invoices"]
    assert [inv["customerId"] for inv in invoices] == customers
    assert [inv["assignedTo"] for inv in invoices] == [c1, c2, c1]
    assert [inv["balance"] for inv in invoices] == [10.0, 20.0, 30.0]
    assert {inv["dueDate"] for inv in invoices} == {"2031-06-15"}

    again = client.post("/api/invoices/generate-monthly", json={"year": 2031, "month": 5}, headers=admin_headers)
    assert again.status_code == 400
    assert again.get_json() == {"error": "Invoices for 2031-05 already exist"}


def test_december_batch_is_due_in_january(client, factory, admin_headers):
    factory.user(RoleName.COLLECTOR)
    factory.customer()
    resp = client.post("/api/invoices/generate-monthly", json={"year": 2030, "month": 12}, headers=admin_headers)
    assert resp.get_json()["invoices"][0]["dueDate"] == "2031-01-15"


def test_monthly_batch_needs_customers_and_collectors(client, factory, admin_headers):
    period = {"year": 2031, "month": 1}
    resp = client.post("/api/invoices/generate-monthly", json=period, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "No active customers found"}

    factory.customer()
    resp = client.post("/api/invoices/generate-monthly", json=period, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "No active collectors found"}

    bad_month = client.post("/api/invoices/generate-monthly", json={"year": 2031, "month": 13}, headers=admin_headers)
    assert bad_month.status_code == 400


def test_invoice_queries(client, factory, admin_headers):
    c1 = factory.user(RoleName.COLLECTOR)
    c2 = factory.user(RoleName.COLLECTOR)
    customer_id = factory.customer()
    overdue = factory.invoice(collector_id=c1, customer_id=customer_id, due_date=date(2020, 1, 15))
    paid_overdue = factory.invoice(collector_id=c1, due_date=date(2020, 1, 15))
    upcoming = factory.invoice(collector_id=c2, customer_id=customer_id)
    client.post(f"/api/invoices/{paid_overdue}/payment", json={"amount": 100}, headers=admin_headers)

    mine = client.get(f"/api/invoices/collector/{c1}", headers=admin_headers).get_json()
    assert sorted(inv["id"] for inv in mine) == sorted([overdue, paid_overdue])

    paid = client.get("/api/invoices/status/paid", headers=admin_headers).get_json()
    assert [inv["id"] for inv in paid] == [paid_overdue]
    camel = client.get("/api/invoices/status/PartiallyPaid", headers=admin_headers)
    assert camel.status_code == 200 and camel.get_json() == []
    assert client.get("/api/invoices/status/settled", headers=admin_headers).status_code == 400

    late = client.get("/api/invoices/overdue/list", headers=admin_headers).get_json()
    assert [inv["id"] for inv in late] == [overdue]

    by_customer = client.get(f"/api/invoices/customer/{customer_id}", headers=admin_headers).get_json()
    assert sorted(inv["id"] for inv in by_customer) == sorted([overdue, upcoming])


def test_delete_invoice(client, factory, admin_headers):
    invoice_id = factory.invoice(collector_id=factory.user(RoleName.COLLECTOR))
    assert client.delete(f"/api/invoices/{invoice_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/invoices/{invoice_id}", headers=admin_headers).status_code == 404


def test_oversized_amounts_are_rejected(client, factory, admin_headers):
    invoice_id = factory.invoice(collector_id=factory.user(RoleName.COLLECTOR), balance="100")

    payment = client.post(f"/api/invoices/{invoice_id}/payment", json={"amount": 1e30}, headers=admin_headers)
    assert payment.status_code == 400
    assert payment.get_json() == {"error": "Amount is too large"}

    discount = client.post(f"/api/invoices/{invoice_id}/apply-discount", json={"discount": "1e40"}, headers=admin_headers)
    assert discount.status_code == 400

    assert _invoice(client.application, invoice_id) == (Decimal("0.00"), InvoiceStatus.UNPAID, Decimal("0.00"))
