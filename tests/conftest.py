"""
Pytest configuration and shared fixtures
"""
import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from safaiwalay import create_app
from safaiwalay.extensions import db as _db
from safaiwalay.models import Booking, Service, User
from safaiwalay.services import AuthService, UserService

# A Tuesday; the week window starts on Sunday 2026-03-08.
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
PASSWORD = "password123"

_emails = itertools.count(1)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(role="user", name="Test User", email=None, with_profile=True):
        user = User(
            name=name,
            email=email or f"user{next(_emails)}@example.com",
            phone="9876543210",
            address="12 Lake View Road, Pune",
            role=role,
            password_hash=AuthService.hash_password(PASSWORD),
        )
        _db.session.add(user)
        _db.session.flush()
        if role == "cleaner" and with_profile:
            UserService.ensure_cleaner_profile(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture
def make_service(app):
    def _make(name="Patio & Parking Cleaning", price="999"):
        service = Service(name=name, price=Decimal(price), is_active=True)
        _db.session.add(service)
        _db.session.commit()
        return service

    return _make


@pytest.fixture
def make_booking(app):
    def _make(customer, service, status="pending", scheduled_at=None, **fields):
        booking = Booking(
            user_id=customer.id,
            service_id=service.id,
            status=status,
            scheduled_at=scheduled_at or NOW + timedelta(days=1),
            address="12 Lake View Road, Pune",
            amount=service.price,
            **fields,
        )
        _db.session.add(booking)
        _db.session.commit()
        return booking

    return _make


@pytest.fixture
def customer(make_user):
    return make_user(role="user", name="Asha Customer")


@pytest.fixture
def cleaner_user(make_user):
    return make_user(role="cleaner", name="Ravi Cleaner")


@pytest.fixture
def rival_user(make_user):
    return make_user(role="cleaner", name="Sunil Cleaner")


@pytest.fixture
def admin_user(make_user):
    return make_user(role="admin", name="Site Admin")


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def booking_form():
    """A valid booking request for the default service, scheduled after NOW."""
    return {
        "service_name": "Patio & Parking Cleaning",
        "price": "₹999",
        "date": "2026-03-11",
        "time": "10:30",
        "name": "Asha Customer",
        "email": "asha@example.com",
        "phone": "+919876543210",
        "address": "12 Lake View Road, Pune",
    }


@pytest.fixture
def login(app):
    """Return a test client already signed in as ``user``."""

    def _login(user):
        client = app.test_client()
        response = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
        assert response.status_code == 200, response.get_json()
        return client

    return _login


def reload(model, row_id):
    return _db.session.get(model, row_id, populate_existing=True)
