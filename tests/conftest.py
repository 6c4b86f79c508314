"""Shared fixtures: an in-memory app, a client and record factories.

Factories open their own app context and return primary keys so that no
context stays pushed while the test client handles requests.
"""
from decimal import Decimal
from itertools import count

import pytest

from taskynet import create_app
from taskynet.config import TestingConfig
from taskynet.extensions import db
from taskynet.models import Category, Customer, RoleName, Service, User, Zone
from taskynet.services import invoice_service, task_service, user_service
from taskynet.utils.auth import SCOPE_ADMIN, SCOPE_EMPLOYEE, issue_token

DEFAULT_PASSWORD = "secret123"


class Factory:
    def __init__(self, app):
        self.app = app
        self._seq = count(1)

    def _next(self) -> int:
        return next(self._seq)

    def user(self, role: str = RoleName.ADMIN, *, active: bool = True, password: str = DEFAULT_PASSWORD) -> int:
        n = self._next()
        with self.app.app_context():
            user = User(
                first_name="Staff",
                last_name=f"Member{n}",
                phone_number=f"+9617100{n:04d}",
                address="Main street, building 10",
                email=f"staff{n}@example.com",
                role=user_service.role_by_name(role),
                is_active=active,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    def email_of(self, user_id: int) -> str:
        with self.app.app_context():
            return db.session.get(User, user_id).email

    def token(self, user_id: int, scope: str = SCOPE_ADMIN) -> str:
        with self.app.app_context():
            return issue_token(db.session.get(User, user_id), scope)

    def headers(self, user_id: int, scope: str = SCOPE_ADMIN) -> dict:
        return {"Authorization": f"Bearer {self.token(user_id, scope)}"}

    def service(self, cost="100", name: str | None = None) -> int:
        n = self._next()
        with self.app.app_context():
            service = Service(name=name or f"Plan {n}", cost=Decimal(str(cost)))
            db.session.add(service)
            db.session.commit()
            return service.id

    def zone(self) -> int:
        n = self._next()
        with self.app.app_context():
            zone = Zone(name=f"Zone {n}")
            db.session.add(zone)
            db.session.commit()
            return zone.id

    def category(self) -> int:
        n = self._next()
        with self.app.app_context():
            category = Category(name=f"Category {n}")
            db.session.add(category)
            db.session.commit()
            return category.id

    def customer(self, *, name: str | None = None, service_id: int | None = None, active: bool = True) -> int:
        n = self._next()
        service_id = service_id or self.service()
        zone_id = self.zone()
        with self.app.app_context():
            customer = Customer(
                name=name or f"Customer {n}",
                location="Hamra, Beirut",
                phone_number=f"+9613000{n:04d}",
                service_id=service_id,
                zone_id=zone_id,
                is_active=active,
            )
            db.session.add(customer)
            db.session.commit()
            return customer.id

    def task(self, *, customer_id: int | None = None, assigned_to: int | None = None) -> int:
        customer_id = customer_id or self.customer()
        category_id = self.category()
        with self.app.app_context():
            task = task_service.create_task(
                customer_id=customer_id, category_id=category_id, assigned_to_id=assigned_to
            )
            return task.id

    def invoice(self, *, collector_id: int, customer_id: int | None = None, balance="100", due_date=None) -> int:
        from datetime import date

        customer_id = customer_id or self.customer()
        with self.app.app_context():
            invoice = invoice_service.create_invoice(
                customer_id=customer_id,
                assigned_to_id=collector_id,
                due_date=due_date or date(2030, 1, 15),
                balance=balance,
            )
            return invoice.id


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        user_service.ensure_default_roles()
        db.session.commit()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    return Factory(app)


@pytest.fixture
def admin_id(factory):
    return factory.user(RoleName.ADMIN)


@pytest.fixture
def admin_headers(factory, admin_id):
    return factory.headers(admin_id, SCOPE_ADMIN)


@pytest.fixture
def manager_headers(factory):
    return factory.headers(factory.user(RoleName.MANAGER), SCOPE_ADMIN)


@pytest.fixture
def employee_headers(factory):
    """Return a callable producing employee-scope headers for a user id."""

    def _headers(user_id: int) -> dict:
        return factory.headers(user_id, SCOPE_EMPLOYEE)

    return _headers
