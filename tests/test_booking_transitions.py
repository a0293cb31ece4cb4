"""
Tests for the booking lifecycle and its guarded updates
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, reload
from safaiwalay.errors import AlreadyClaimed, CleanerProfileMissing, Forbidden, InvalidTransition, NotFound, ValidationFailed
from safaiwalay.models import Booking, ChangeEvent, Cleaner, EarningEntry, Notification, Payment
from safaiwalay.services import BookingService, DispatchService, UserService
from safaiwalay.services.booking_service import BOOKING_TRANSITIONS, allowed_actions
from safaiwalay.services.timing import booking_duration


def _act(action, booking_id, user, now):
    return getattr(BookingService, action)(booking_id, user, now=now)


@pytest.mark.unit
class TestTransitionTable:
    def test_edges(self):
        assert BOOKING_TRANSITIONS == {
            "pending": {"picked"},
            "picked": {"in_progress"},
            "in_progress": {"paused", "completed"},
            "paused": {"in_progress", "completed"},
            "completed": set(),
        }


@pytest.mark.integration
class TestHappyPath:
    def test_full_lifecycle(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        cleaner = UserService.cleaner_for_user(cleaner_user)

        picked = BookingService.claim(booking.id, cleaner_user, now=NOW)
        assert picked.status == "picked"
        assert picked.cleaner_id == cleaner.id
        assert picked.picked_at is not None

        started = BookingService.start(booking.id, cleaner_user, now=NOW)
        assert started.status == "in_progress"
        assert started.started_at is not None

        paused = BookingService.pause(booking.id, cleaner_user, now=NOW + timedelta(minutes=10))
        assert paused.status == "paused"
        assert paused.paused_at is not None

        resumed = BookingService.resume(booking.id, cleaner_user, now=NOW + timedelta(minutes=25, seconds=30))
        assert resumed.status == "in_progress"
        assert resumed.paused_at is None
        assert resumed.total_pause_duration == 15

        BookingService.pause(booking.id, cleaner_user, now=NOW + timedelta(minutes=40))
        resumed = BookingService.resume(booking.id, cleaner_user, now=NOW + timedelta(minutes=41, seconds=59))
        assert resumed.total_pause_duration == 16

        done = BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=60))
        assert done.status == "completed"
        assert done.completed_at is not None
        assert done.payment_collected_at is not None
        assert allowed_actions(done) == []

    def test_complete_from_paused_folds_open_pause(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)
        BookingService.pause(booking.id, cleaner_user, now=NOW + timedelta(minutes=30))

        done = BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=45))
        assert done.status == "completed"
        assert done.paused_at is None
        assert done.total_pause_duration == 15
        assert done.completed_at == done.payment_collected_at
        assert EarningEntry.query.filter_by(booking_id=booking.id).count() == 1

        cleaner = UserService.cleaner_for_user(cleaner_user)
        assert booking.id not in [b.id for b in DispatchService.current_orders(cleaner)]

    def test_complete_from_paused_floors_final_pause(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)
        BookingService.pause(booking.id, cleaner_user, now=NOW + timedelta(minutes=30))

        done = BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=45, seconds=40))
        assert done.total_pause_duration == 15
        assert booking_duration(done, now=NOW + timedelta(days=1)) == timedelta(minutes=30, seconds=40)
        cleaner = UserService.cleaner_for_user(cleaner_user)
        assert [b.id for b in DispatchService.history(cleaner)] == [booking.id]

    def test_worked_example(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        assert booking.status == "pending"
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)
        BookingService.pause(booking.id, cleaner_user, now=NOW + timedelta(minutes=10))
        resumed = BookingService.resume(booking.id, cleaner_user, now=NOW + timedelta(minutes=15))
        assert resumed.total_pause_duration == 5

        done = BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=65))
        assert booking_duration(done, now=NOW + timedelta(days=1)) == timedelta(minutes=60)
        cleaner = UserService.cleaner_for_user(cleaner_user)
        assert reload(Cleaner, cleaner.id).earnings_balance == Decimal("999.00")

    def test_completion_collects_payment(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)
        BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=5))

        payment = Payment.query.filter_by(booking_id=booking.id).one()
        assert payment.receipt_number == f"SFW-20260310-{booking.id:06d}"
        assert Decimal(str(payment.amount)) == Decimal("999.00")
        assert payment.user_id == customer.id

        cleaner = UserService.cleaner_for_user(cleaner_user)
        assert reload(Cleaner, cleaner.id).earnings_balance == Decimal("999.00")

    def test_customer_is_notified(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)

        notes = Notification.query.filter_by(user_id=customer.id).order_by(Notification.id).all()
        assert [n.title for n in notes] == ["Cleaner assigned", "Cleaning started"]
        assert all(n.booking_id == booking.id for n in notes)

    def test_transitions_are_published(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        events = ChangeEvent.query.filter_by(table_name="bookings", row_id=booking.id).all()
        assert [e.action for e in events] == ["update"]


@pytest.mark.integration
class TestRejectedTransitions:
    @pytest.mark.parametrize(
        "status,action",
        [
            ("pending", "start"),
            ("pending", "pause"),
            ("pending", "resume"),
            ("pending", "complete"),
            ("picked", "pause"),
            ("picked", "resume"),
            ("picked", "complete"),
            ("picked", "claim"),
            ("in_progress", "start"),
            ("in_progress", "resume"),
            ("paused", "pause"),
            ("paused", "start"),
            ("completed", "start"),
            ("completed", "pause"),
            ("completed", "resume"),
            ("completed", "complete"),
        ],
    )
    def test_illegal_action_leaves_record_unchanged(
        self, customer, cleaner_user, service, make_booking, status, action
    ):
        cleaner = UserService.cleaner_for_user(cleaner_user)
        fields = {}
        if status != "pending":
            fields = {"cleaner_id": cleaner.id, "picked_at": NOW, "started_at": NOW}
        if status == "paused":
            fields["paused_at"] = NOW + timedelta(minutes=5)
        if status == "completed":
            fields["completed_at"] = NOW + timedelta(minutes=30)
            fields["payment_collected_at"] = NOW + timedelta(minutes=30)
        booking = make_booking(customer, service, status=status, **fields)
        before = reload(Booking, booking.id).to_dict()

        with pytest.raises(InvalidTransition) as excinfo:
            _act(action, booking.id, cleaner_user, NOW + timedelta(minutes=50))

        assert not isinstance(excinfo.value, AlreadyClaimed)
        assert excinfo.value.details["status"] == status
        assert reload(Booking, booking.id).to_dict() == before
        assert EarningEntry.query.count() == 0

    def test_second_complete_does_not_double_credit(self, customer, cleaner_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.claim(booking.id, cleaner_user, now=NOW)
        BookingService.start(booking.id, cleaner_user, now=NOW)
        BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=20))

        with pytest.raises(InvalidTransition):
            BookingService.complete(booking.id, cleaner_user, now=NOW + timedelta(minutes=21))
        assert EarningEntry.query.filter_by(booking_id=booking.id).count() == 1
        assert Payment.query.filter_by(booking_id=booking.id).count() == 1

    def test_missing_booking(self, cleaner_user):
        with pytest.raises(NotFound):
            BookingService.claim(4040, cleaner_user, now=NOW)

    def test_caller_without_cleaner_profile(self, make_user, customer, service, make_booking):
        booking = make_booking(customer, service)
        no_profile = make_user(role="cleaner", with_profile=False)
        with pytest.raises(CleanerProfileMissing):
            BookingService.claim(booking.id, no_profile, now=NOW)
        assert reload(Booking, booking.id).status == "pending"

    def test_deleted_booking_cannot_be_claimed(self, customer, cleaner_user, admin_user, service, make_booking):
        booking = make_booking(customer, service)
        BookingService.soft_delete(booking.id, admin_user, now=NOW)
        with pytest.raises(InvalidTransition):
            BookingService.claim(booking.id, cleaner_user, now=NOW)
        assert reload(Booking, booking.id).cleaner_id is None


@pytest.mark.integration
class TestOwnership:
    def test_claim_race_has_one_winner(self, customer, cleaner_user, rival_user, service, make_booking):
        booking = make_booking(customer, service)
        winner = UserService.cleaner_for_user(cleaner_user)

        BookingService.claim(booking.id, cleaner_user, now=NOW)
        with pytest.raises(AlreadyClaimed) as excinfo:
            BookingService.claim(booking.id, rival_user, now=NOW)

        assert excinfo.value.code == "already_claimed"
        stored = reload(Booking, booking.id)
        assert stored.cleaner_id == winner.id
        assert stored.status == "picked"

    @pytest.mark.parametrize("action", ["start", "pause", "resume", "complete"])
    def test_other_cleaner_cannot_drive_job(self, customer, cleaner_user, rival_user, service, make_booking, action):
        owner = UserService.cleaner_for_user(cleaner_user)
        status = {"start": "picked", "pause": "in_progress", "resume": "paused", "complete": "in_progress"}[action]
        fields = {"cleaner_id": owner.id, "picked_at": NOW, "started_at": NOW}
        if status == "paused":
            fields["paused_at"] = NOW
        booking = make_booking(customer, service, status=status, **fields)

        with pytest.raises(Forbidden):
            _act(action, booking.id, rival_user, NOW + timedelta(minutes=5))
        assert reload(Booking, booking.id).status == status


@pytest.mark.integration
class TestCreateBooking:
    def test_amount_comes_from_catalogue(self, customer, service, booking_form):
        booking = BookingService.create_booking(customer, booking_form, now=NOW)
        assert booking.status == "pending"
        assert booking.cleaner_id is None
        assert Decimal(str(booking.amount)) == Decimal("999.00")
        assert ChangeEvent.query.filter_by(table_name="bookings", row_id=booking.id, action="insert").count() == 1

    def test_stale_price_rejected(self, customer, service, booking_form):
        booking_form["price"] = "₹899"
        with pytest.raises(ValidationFailed) as excinfo:
            BookingService.create_booking(customer, booking_form, now=NOW)
        assert excinfo.value.details["field"] == "price"
        assert Booking.query.count() == 0

    def test_unknown_service(self, customer, service, booking_form):
        booking_form["service_name"] = "Chimney Sweep"
        with pytest.raises(NotFound):
            BookingService.create_booking(customer, booking_form, now=NOW)

    def test_soft_delete_twice(self, customer, admin_user, service, make_booking):
        booking = make_booking(customer, service)
        deleted = BookingService.soft_delete(booking.id, admin_user, now=NOW)
        assert deleted.is_deleted is True
        with pytest.raises(InvalidTransition):
            BookingService.soft_delete(booking.id, admin_user, now=NOW)
        with pytest.raises(NotFound):
            BookingService.get_booking(booking.id)
