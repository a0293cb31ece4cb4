"""
Tests for the JSON API
"""
from datetime import datetime, timedelta, timezone

import pytest

from conftest import PASSWORD


def _future_form():
    tomorrow = datetime.now(timezone.utc) + timedelta(days=2)
    return {
        "service_name": "Patio & Parking Cleaning",
        "price": "₹999",
        "date": tomorrow.strftime("%Y-%m-%d"),
        "time": "10:30",
        "name": "Asha Customer",
        "email": "asha@example.com",
        "phone": "+919876543210",
        "address": "12 Lake View Road, Pune",
    }


@pytest.mark.integration
class TestAuth:
    def test_register_login_me(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Meera", "email": "Meera@Example.com", "password": PASSWORD, "phone": "9876543210"},
        )
        assert response.status_code == 201
        assert response.get_json()["role"] == "user"

        me = client.get("/api/v1/auth/me").get_json()
        assert me["email"] == "meera@example.com"
        assert me["unread_notifications"] == 0

        client.post("/api/v1/auth/logout")
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_duplicate_email(self, client, customer):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Other", "email": customer.email, "password": PASSWORD, "phone": "9876543210"},
        )
        assert response.status_code == 409

    def test_short_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Meera", "email": "m@example.com", "password": "short", "phone": "9876543210"},
        )
        assert response.status_code == 400
        assert response.get_json()["field"] == "password"

    def test_wrong_password(self, client, customer):
        response = client.post("/api/v1/auth/login", json={"email": customer.email, "password": "wrong-one"})
        assert response.status_code == 401

    def test_anonymous_gets_json_401(self, client):
        response = client.get("/api/v1/bookings/me")
        assert response.status_code == 401
        assert response.get_json()["code"] == "unauthorized"


@pytest.mark.integration
class TestBookingFlow:
    def test_customer_to_completion(self, login, customer, cleaner_user, rival_user, service):
        buyer = login(customer)
        response = buyer.post("/api/v1/bookings", json=_future_form())
        assert response.status_code == 201
        booking = response.get_json()
        assert booking["amount"] == "999.00"
        assert booking["status"] == "pending"

        worker = login(cleaner_user)
        rival = login(rival_user)
        assert worker.post(f"/api/v1/bookings/{booking['id']}/claim").get_json()["status"] == "picked"

        lost = rival.post(f"/api/v1/bookings/{booking['id']}/claim")
        assert lost.status_code == 409
        assert lost.get_json()["code"] == "already_claimed"

        assert rival.post(f"/api/v1/bookings/{booking['id']}/start").status_code == 403
        assert worker.post(f"/api/v1/bookings/{booking['id']}/start").get_json()["status"] == "in_progress"

        wrong = worker.post(f"/api/v1/bookings/{booking['id']}/resume")
        assert wrong.status_code == 409
        assert wrong.get_json()["code"] == "invalid_transition"
        assert wrong.get_json()["status"] == "in_progress"

        done = worker.post(f"/api/v1/bookings/{booking['id']}/complete")
        assert done.get_json()["status"] == "completed"

        earnings = worker.get("/api/v1/cleaner/earnings").get_json()
        assert earnings["pending_cashout"] == "999.00"
        assert earnings["completed_jobs"] == 1

        mine = buyer.get("/api/v1/bookings/me").get_json()
        assert [b["status"] for b in mine["bookings"]] == ["completed"]
        notes = buyer.get("/api/v1/notifications/me").get_json()
        assert notes["unread"] == 3

    def test_price_mismatch(self, login, customer, service):
        response = login(customer).post("/api/v1/bookings", json=dict(_future_form(), price="₹1"))
        assert response.status_code == 400
        assert response.get_json()["code"] == "validation_error"

    def test_customer_cannot_claim(self, login, customer, service, make_booking):
        booking = make_booking(customer, service)
        assert login(customer).post(f"/api/v1/bookings/{booking.id}/claim").status_code == 403

    def test_unknown_action(self, login, cleaner_user, customer, service, make_booking):
        booking = make_booking(customer, service)
        assert login(cleaner_user).post(f"/api/v1/bookings/{booking.id}/release").status_code == 404

    def test_cleaner_without_profile(self, login, make_user):
        orphan = make_user(role="cleaner", with_profile=False)
        response = login(orphan).get("/api/v1/cleaner/dashboard")
        assert response.status_code == 404
        assert response.get_json()["code"] == "no_cleaner_profile"

    def test_customer_cannot_read_others_booking(self, login, make_user, customer, service, make_booking):
        booking = make_booking(customer, service)
        stranger = make_user(role="user")
        assert login(stranger).get(f"/api/v1/bookings/{booking.id}").status_code == 403
        assert login(customer).get(f"/api/v1/bookings/{booking.id}").status_code == 200


@pytest.mark.integration
class TestWithdrawalsApi:
    def test_insufficient_balance(self, login, cleaner_user):
        response = login(cleaner_user).post("/api/v1/cleaner/withdrawals", json={"amount": "50"})
        assert response.status_code == 409
        body = response.get_json()
        assert body["code"] == "insufficient_balance"
        assert body["balance"] == "0.00"

    def test_invalid_amount(self, login, cleaner_user):
        response = login(cleaner_user).post("/api/v1/cleaner/withdrawals", json={"amount": "lots"})
        assert response.status_code == 400


@pytest.mark.integration
class TestCatalogueAndCart:
    def test_public_catalogue(self, client, db, service, make_service):
        hidden = make_service(name="Car Wash", price="499")
        hidden.is_active = False
        db.session.commit()
        names = [s["name"] for s in client.get("/api/v1/services").get_json()]
        assert names == ["Patio & Parking Cleaning"]

    def test_cart_checkout(self, login, customer, service):
        buyer = login(customer)
        added = buyer.post("/api/v1/cart/items", json=_future_form())
        assert added.status_code == 201

        cart = buyer.get("/api/v1/cart").get_json()
        assert cart["version"] == 1
        assert [item["id"] for item in cart["items"]] == [added.get_json()["id"]]

        created = buyer.post("/api/v1/cart/checkout")
        assert created.status_code == 201
        assert len(created.get_json()) == 1
        assert buyer.get("/api/v1/cart").get_json()["items"] == []

    def test_empty_checkout(self, login, customer):
        assert login(customer).post("/api/v1/cart/checkout").status_code == 400


@pytest.mark.integration
class TestChangesApi:
    def test_feed(self, login, customer, service, make_booking):
        client = login(customer)
        first = client.get("/api/v1/changes?table=bookings").get_json()
        assert first["reload"] is True

        client.post("/api/v1/bookings", json=_future_form())
        page = client.get(f"/api/v1/changes?table=bookings&after={first['cursor']}").get_json()
        assert page["reload"] is False
        assert [e["action"] for e in page["events"]] == ["insert"]

    def test_unknown_table(self, login, customer):
        response = login(customer).get("/api/v1/changes?table=users&after=0")
        assert response.status_code == 400
