import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from safaiwalay.errors import AlreadyClaimed, Forbidden, InvalidTransition, NotFound, StorageUnavailable, ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.models import Booking, Payment, Service
from safaiwalay.models.base import as_utc, utcnow
from safaiwalay.models.booking import BOOKING_STATUSES
from safaiwalay.services.change_feed import ChangeFeedService
from safaiwalay.services.ledger_service import LedgerService
from safaiwalay.services.notification_service import NotificationService
from safaiwalay.services.timing import pause_minutes
from safaiwalay.services.user_service import UserService
from safaiwalay.validators import validate_booking_form

logger = logging.getLogger(__name__)

# action -> (statuses the row must currently be in, status it moves to)
ACTION_GUARDS = {
    "claim": (("pending",), "picked"),
    "start": (("picked",), "in_progress"),
    "pause": (("in_progress",), "paused"),
    "resume": (("paused",), "in_progress"),
    "complete": (("in_progress", "paused"), "completed"),
}

BOOKING_TRANSITIONS = {
    status: {target for guard, target in ACTION_GUARDS.values() if status in guard} for status in BOOKING_STATUSES
}

ACTIVE_STATUSES = ("pending", "picked", "in_progress", "paused")


def _status_label(status):
    return (status or "").replace("_", " ")


def allowed_actions(booking):
    if booking.is_deleted:
        return []
    return [action for action, (guard, _target) in ACTION_GUARDS.items() if booking.status in guard]


class BookingService:
    @staticmethod
    def get_booking(booking_id, include_deleted=False):
        booking = db.session.get(Booking, booking_id)
        if not booking or (booking.is_deleted and not include_deleted):
            raise NotFound("Booking not found.")
        return booking

    @staticmethod
    def create_booking(customer, payload, now=None, commit=True):
        form = validate_booking_form(payload, now=now)
        service = Service.query.filter_by(name=form["service_name"], is_active=True).first()
        if not service:
            raise NotFound("Service not found.")
        amount = Decimal(str(service.price))
        if form["price"] is not None and form["price"] != amount:
            raise ValidationFailed("Service price has changed. Please refresh and try again.", field="price")

        booking = Booking(
            user_id=customer.id,
            service_id=service.id,
            status="pending",
            scheduled_at=form["scheduled_at"],
            address=form["address"],
            amount=amount,
        )
        db.session.add(booking)
        db.session.flush()
        ChangeFeedService.record("bookings", booking.id, "insert")
        if commit:
            BookingService.commit()
        logger.info("Customer %s created booking %s for %s", customer.id, booking.id, service.name)
        return booking

    @staticmethod
    def commit():
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.warning("Booking write failed: %s", exc)
            raise StorageUnavailable() from exc

    @staticmethod
    def _guarded_update(booking_id, statuses, values, cleaner_id=None, claim=False, extra=()):
        """Single conditional UPDATE; returns the number of rows it changed.

        The WHERE clause carries the whole guard so two sessions racing on the
        same row cannot both apply a transition.
        """
        query = Booking.query.filter(
            Booking.id == booking_id,
            Booking.status.in_(statuses),
            Booking.is_deleted.is_(False),
        )
        if claim:
            query = query.filter(Booking.cleaner_id.is_(None))
        else:
            query = query.filter(Booking.cleaner_id == cleaner_id)
        for clause in extra:
            query = query.filter(clause)
        values = dict(values)
        values[Booking.updated_at] = utcnow()
        try:
            return query.update(values, synchronize_session=False)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable() from exc

    @staticmethod
    def _reject(action, booking_id, cleaner_id):
        """Explain why a guarded update touched no rows."""
        db.session.rollback()
        booking = db.session.get(Booking, booking_id, populate_existing=True)
        if not booking:
            raise NotFound("Booking not found.")
        if booking.is_deleted:
            raise InvalidTransition("This booking has been cancelled.", status=booking.status)
        if action == "claim":
            if booking.cleaner_id is not None and booking.cleaner_id != cleaner_id:
                raise AlreadyClaimed()
        elif booking.cleaner_id is not None and booking.cleaner_id != cleaner_id:
            raise Forbidden("This job belongs to another cleaner.")
        allowed, _target = ACTION_GUARDS[action]
        if booking.status in allowed:
            raise InvalidTransition("Booking changed while updating. Refresh and try again.", status=booking.status)
        raise InvalidTransition(
            f"Cannot {action} a booking that is {_status_label(booking.status)}.",
            status=booking.status,
            allowed=sorted(BOOKING_TRANSITIONS.get(booking.status, ())),
        )

    @staticmethod
    def _after_transition(booking_id, event):
        booking = db.session.get(Booking, booking_id, populate_existing=True)
        ChangeFeedService.record("bookings", booking.id, "update")
        NotificationService.booking_event(booking, event)
        return booking

    @staticmethod
    def claim(booking_id, cleaner_user, now=None):
        cleaner = UserService.cleaner_for_user(cleaner_user)
        now = as_utc(now) if now is not None else utcnow()
        updated = BookingService._guarded_update(
            booking_id,
            ("pending",),
            {Booking.cleaner_id: cleaner.id, Booking.status: "picked", Booking.picked_at: now},
            claim=True,
        )
        if updated == 0:
            BookingService._reject("claim", booking_id, cleaner.id)
        booking = BookingService._after_transition(booking_id, "picked")
        BookingService.commit()
        logger.info("Cleaner %s claimed booking %s", cleaner.id, booking_id)
        return booking

    @staticmethod
    def start(booking_id, cleaner_user, now=None):
        cleaner = UserService.cleaner_for_user(cleaner_user)
        now = as_utc(now) if now is not None else utcnow()
        updated = BookingService._guarded_update(
            booking_id,
            ("picked",),
            {Booking.status: "in_progress", Booking.started_at: now},
            cleaner_id=cleaner.id,
        )
        if updated == 0:
            BookingService._reject("start", booking_id, cleaner.id)
        booking = BookingService._after_transition(booking_id, "in_progress")
        BookingService.commit()
        logger.info("Cleaner %s started booking %s", cleaner.id, booking_id)
        return booking

    @staticmethod
    def pause(booking_id, cleaner_user, now=None):
        cleaner = UserService.cleaner_for_user(cleaner_user)
        now = as_utc(now) if now is not None else utcnow()
        updated = BookingService._guarded_update(
            booking_id,
            ("in_progress",),
            {Booking.status: "paused", Booking.paused_at: now},
            cleaner_id=cleaner.id,
        )
        if updated == 0:
            BookingService._reject("pause", booking_id, cleaner.id)
        booking = BookingService._after_transition(booking_id, "paused")
        BookingService.commit()
        logger.info("Cleaner %s paused booking %s", cleaner.id, booking_id)
        return booking

    @staticmethod
    def resume(booking_id, cleaner_user, now=None):
        cleaner = UserService.cleaner_for_user(cleaner_user)
        now = as_utc(now) if now is not None else utcnow()
        observed = db.session.get(Booking, booking_id, populate_existing=True)
        if not observed or observed.status != "paused" or observed.paused_at is None:
            BookingService._reject("resume", booking_id, cleaner.id)

        minutes = pause_minutes(observed.paused_at, now)
        updated = BookingService._guarded_update(
            booking_id,
            ("paused",),
            {
                Booking.status: "in_progress",
                Booking.paused_at: None,
                Booking.total_pause_duration: Booking.total_pause_duration + minutes,
            },
            cleaner_id=cleaner.id,
            extra=(Booking.paused_at == observed.paused_at,),
        )
        if updated == 0:
            BookingService._reject("resume", booking_id, cleaner.id)
        booking = BookingService._after_transition(booking_id, "resumed")
        BookingService.commit()
        logger.info("Cleaner %s resumed booking %s after %s min", cleaner.id, booking_id, minutes)
        return booking

    @staticmethod
    def complete(booking_id, cleaner_user, now=None):
        """Finish a job, collect payment and credit the cleaner in one transaction.

        An open pause is folded into ``total_pause_duration`` in whole minutes,
        the same flooring resume applies, so up to 59 seconds of the final
        pause still count as working time.
        """
        cleaner = UserService.cleaner_for_user(cleaner_user)
        now = as_utc(now) if now is not None else utcnow()
        observed = db.session.get(Booking, booking_id, populate_existing=True)
        allowed, _target = ACTION_GUARDS["complete"]
        if not observed or observed.status not in allowed:
            BookingService._reject("complete", booking_id, cleaner.id)

        open_pause = 0
        pinned = [Booking.paused_at.is_(None)]
        if observed.status == "paused" and observed.paused_at is not None:
            open_pause = pause_minutes(observed.paused_at, now)
            pinned = [Booking.paused_at == observed.paused_at]

        updated = BookingService._guarded_update(
            booking_id,
            (observed.status,),
            {
                Booking.status: "completed",
                Booking.completed_at: now,
                Booking.payment_collected_at: now,
                Booking.paused_at: None,
                Booking.total_pause_duration: Booking.total_pause_duration + open_pause,
            },
            cleaner_id=cleaner.id,
            extra=pinned,
        )
        if updated == 0:
            BookingService._reject("complete", booking_id, cleaner.id)

        try:
            booking = db.session.get(Booking, booking_id, populate_existing=True)
            LedgerService.credit_completion(booking, cleaner.id, now)
            payment = Payment(
                booking_id=booking.id,
                receipt_number=f"SFW-{now.strftime('%Y%m%d')}-{booking.id:06d}",
                amount=booking.amount,
                user_id=booking.user_id,
                cleaner_id=cleaner.id,
                status="completed",
            )
            db.session.add(payment)
            db.session.flush()
            ChangeFeedService.record("bookings", booking.id, "update")
            ChangeFeedService.record("payments", payment.id, "insert")
            NotificationService.booking_event(booking, "completed")
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable() from exc
        BookingService.commit()
        logger.info("Cleaner %s completed booking %s for %s", cleaner.id, booking_id, booking.amount)
        return booking

    @staticmethod
    def soft_delete(booking_id, actor, now=None):
        now = as_utc(now) if now is not None else utcnow()
        try:
            updated = Booking.query.filter(Booking.id == booking_id, Booking.is_deleted.is_(False)).update(
                {Booking.is_deleted: True, Booking.deleted_at: now, Booking.updated_at: now},
                synchronize_session=False,
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable() from exc
        if updated == 0:
            db.session.rollback()
            if not db.session.get(Booking, booking_id):
                raise NotFound("Booking not found.")
            raise InvalidTransition("Booking is already deleted.")
        ChangeFeedService.record("bookings", booking_id, "delete")
        BookingService.commit()
        logger.info("Admin %s deleted booking %s", actor.id, booking_id)
        return db.session.get(Booking, booking_id, populate_existing=True)

    @staticmethod
    def customer_bookings(customer):
        return (
            Booking.query.filter_by(user_id=customer.id, is_deleted=False)
            .order_by(Booking.scheduled_at.desc(), Booking.id.desc())
            .all()
        )
