from decimal import Decimal

from taskynet.extensions import db
from taskynet.models import CollectorBalance, Invoice, InvoiceStatus, RoleName

from .conftest import DEFAULT_PASSWORD


def test_employee_login_issues_employee_token(client, factory):
    tech = factory.user(RoleName.TECHNICIAN)
    resp = client.post("/api/employee/login", json={"email": factory.email_of(tech), "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    profile = client.get("/api/employee/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.get_json()["id"] == tech
    assert client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"}).status_code == 403


def test_change_password(client, factory, employee_headers):
    tech = factory.user(RoleName.TECHNICIAN)
    headers = employee_headers(tech)

    wrong = client.post(
        "/api/employee/change-password", json={"oldPassword": "nope", "newPassword": "newpass1"}, headers=headers
    )
    assert wrong.status_code == 400
    short = client.post(
        "/api/employee/change-password", json={"oldPassword": DEFAULT_PASSWORD, "newPassword": "123"}, headers=headers
    )
    assert short.status_code == 400

    ok = client.post(
        "/api/employee/change-password",
        json={"oldPassword": DEFAULT_PASSWORD, "newPassword": "newpass1"},
        headers=headers,
    )
    assert ok.status_code == 200
    email = factory.email_of(tech)
    assert client.post("/api/employee/login", json={"email": email, "password": "newpass1"}).status_code == 200
    assert client.post("/api/employee/login", json={"email": email, "password": DEFAULT_PASSWORD}).status_code == 401


def test_invoices_are_for_collectors_only(client, factory, employee_headers):
    tech = factory.user(RoleName.TECHNICIAN)
    assert client.get("/api/employee/invoices", headers=employee_headers(tech)).status_code == 403


def test_collector_sees_and_pays_own_invoices(client, factory, employee_headers):
    mine = factory.user(RoleName.COLLECTOR)
    theirs = factory.user(RoleName.COLLECTOR)
    own_invoice = factory.invoice(collector_id=mine, balance="50")
    other_invoice = factory.invoice(collector_id=theirs, balance="50")
    headers = employee_headers(mine)

    listed = client.get("/api/employee/invoices", headers=headers).get_json()
    assert [inv["id"] for inv in listed] == [own_invoice]

    partial = client.post(f"/api/employee/invoices/{own_invoice}/pay", json={"amount": 20}, headers=headers)
    assert partial.status_code == 200
    assert partial.get_json()["invoice"]["status"] == "partially_paid"

    over = client.post(f"/api/employee/invoices/{own_invoice}/pay", json={"amount": 31}, headers=headers)
    assert over.status_code == 400

    foreign = client.post(f"/api/employee/invoices/{other_invoice}/pay", json={"amount": 5}, headers=headers)
    assert foreign.status_code == 404

    with client.application.app_context():
        invoice = db.session.get(Invoice, own_invoice)
        assert (invoice.amount, invoice.status) == (Decimal("20.00"), InvoiceStatus.PARTIALLY_PAID)
        assert CollectorBalance.query.filter_by(collector_id=mine).first() is None


def test_settled_invoices_leave_the_collector_work_list(client, factory, employee_headers):
    collector = factory.user(RoleName.COLLECTOR)
    settled = factory.invoice(collector_id=collector, balance="40")
    pending = factory.invoice(collector_id=collector, balance="60")
    headers = employee_headers(collector)

    paid = client.post(f"/api/employee/invoices/{settled}/pay", json={"amount": 40}, headers=headers)
    assert paid.get_json()["invoice"]["status"] == "paid"

    listed = client.get("/api/employee/invoices", headers=headers).get_json()
    assert [inv["id"] for inv in listed] == [pending]

    history = client.get("/api/employee/invoices?status=paid", headers=headers).get_json()
    assert [inv["id"] for inv in history] == [settled]
