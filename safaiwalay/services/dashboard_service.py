from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from safaiwalay.extensions import db
from safaiwalay.models import Booking, Payment, Review, Service
from safaiwalay.models.base import as_utc, utcnow
from safaiwalay.models.booking import BOOKING_STATUSES
from safaiwalay.services.booking_service import BookingService, allowed_actions
from safaiwalay.services.dispatch_service import DispatchService
from safaiwalay.services.ledger_service import LedgerService
from safaiwalay.services.timing import booking_duration, format_clock, format_hours_minutes
from safaiwalay.services.user_service import UserService


def _money(value):
    return str(Decimal(str(value or 0)).quantize(Decimal("0.01")))


def job_row(booking, now, cleaner_id=None):
    duration = booking_duration(booking, now=now)
    row = booking.to_dict()
    row.update(
        {
            "customer_name": booking.customer.name if booking.customer else None,
            "customer_phone": booking.customer.phone if booking.customer else None,
            "elapsed_seconds": int(duration.total_seconds()),
            "elapsed_clock": format_clock(duration),
            "duration": format_hours_minutes(duration),
            "timer_running": booking.status == "in_progress",
        }
    )
    if cleaner_id is not None:
        row["is_mine"] = booking.cleaner_id == cleaner_id
        row["actions"] = allowed_actions(booking) if row["is_mine"] or booking.status == "pending" else []
    return row


class DashboardService:
    @staticmethod
    def customer_view(customer, now=None):
        now = as_utc(now) if now is not None else utcnow()
        bookings = BookingService.customer_bookings(customer)
        reviews = (
            Review.query.filter_by(user_id=customer.id, is_deleted=False)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
        return {
            "bookings": [job_row(b, now) for b in bookings],
            "reviews": [r.to_dict() for r in reviews],
        }

    @staticmethod
    def cleaner_view(cleaner_user, now=None):
        now = as_utc(now) if now is not None else utcnow()
        cleaner = UserService.cleaner_for_user(cleaner_user)
        owned = DispatchService.owned(cleaner)
        current = DispatchService.merge_current(DispatchService.available(), owned)
        history = DispatchService.split_history(owned)
        return {
            "current": [job_row(b, now, cleaner.id) for b in current],
            "history": [job_row(b, now, cleaner.id) for b in history],
            "earnings": LedgerService.summary(cleaner, now=now),
        }

    @staticmethod
    def admin_view(show_deleted=False):
        bookings = (
            Booking.query.options(joinedload(Booking.customer), joinedload(Booking.service))
            .filter(Booking.is_deleted.is_(False))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )
        reviews = (
            Review.query.filter_by(is_deleted=False)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
        services = Service.query.order_by(Service.created_at.desc(), Service.id.desc()).all()

        payments_q = Payment.query.filter_by(status="completed", is_deleted=False)
        total_revenue = db.session.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.status == "completed", Payment.is_deleted.is_(False)
        ).scalar()
        recent = payments_q.order_by(Payment.created_at.desc(), Payment.id.desc()).limit(5).all()

        counts = dict(
            db.session.query(Booking.status, func.count(Booking.id))
            .filter(Booking.is_deleted.is_(False))
            .group_by(Booking.status)
            .all()
        )

        return {
            "users": [u.to_dict() for u in UserService.list_users(show_deleted=show_deleted)],
            "bookings": [
                dict(
                    b.to_dict(),
                    customer_name=b.customer.name if b.customer else None,
                    customer_email=b.customer.email if b.customer else None,
                )
                for b in bookings
            ],
            "reviews": [r.to_dict() for r in reviews],
            "services": [s.to_dict() for s in services],
            "revenue": {
                "total": _money(total_revenue),
                "recent_transactions": [p.to_dict() for p in recent],
            },
            "status_counts": {status: int(counts.get(status, 0)) for status in BOOKING_STATUSES},
        }
