from datetime import datetime, timezone

from sqlalchemy.orm import joinedload

from safaiwalay.models import Booking
from safaiwalay.models.base import as_utc
from safaiwalay.services.booking_service import ACTIVE_STATUSES

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _scheduled_key(booking):
    return (as_utc(booking.scheduled_at) or _EPOCH, booking.id)


def _completed_key(booking):
    return (as_utc(booking.completed_at) or _EPOCH, booking.id)


class DispatchService:
    """Turns unclaimed bookings into a cleaner's work queue."""

    @staticmethod
    def available():
        return (
            Booking.query.options(joinedload(Booking.service), joinedload(Booking.customer))
            .filter(Booking.status == "pending", Booking.is_deleted.is_(False))
            .order_by(Booking.scheduled_at.asc(), Booking.id.asc())
            .all()
        )

    @staticmethod
    def owned(cleaner):
        return (
            Booking.query.options(joinedload(Booking.service), joinedload(Booking.customer))
            .filter(Booking.cleaner_id == cleaner.id, Booking.is_deleted.is_(False))
            .all()
        )

    @staticmethod
    def merge_current(available, owned):
        """Union of open jobs and the cleaner's unfinished jobs, by scheduled time."""
        merged = {}
        for booking in available:
            merged[booking.id] = booking
        for booking in owned:
            if booking.status in ACTIVE_STATUSES and booking.payment_collected_at is None:
                merged[booking.id] = booking
        return sorted(merged.values(), key=_scheduled_key)

    @staticmethod
    def split_history(owned):
        done = [b for b in owned if b.payment_collected_at is not None]
        return sorted(done, key=_completed_key, reverse=True)

    @staticmethod
    def current_orders(cleaner):
        return DispatchService.merge_current(DispatchService.available(), DispatchService.owned(cleaner))

    @staticmethod
    def history(cleaner):
        return DispatchService.split_history(DispatchService.owned(cleaner))
