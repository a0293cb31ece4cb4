import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from safaiwalay.errors import InsufficientBalance, StorageUnavailable, ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.models import Booking, Cleaner, EarningEntry, Withdrawal
from safaiwalay.models.base import as_utc, utcnow
from safaiwalay.services.timing import ZERO, booking_duration
from safaiwalay.services.user_service import UserService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def window_starts(now=None):
    """UTC boundaries for today, this week (from Sunday) and this month."""
    now = as_utc(now) if now is not None else utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_sunday = (start_of_day.weekday() + 1) % 7
    return {
        "today": start_of_day,
        "this_week": start_of_day - timedelta(days=days_since_sunday),
        "this_month": start_of_day.replace(day=1),
    }


def _field(entry, name):
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def _parse_earned_at(value):
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value.strip():
        return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise ValueError("missing earned_at")


def sum_entries(entries, since=None):
    """Total of ``entries`` earned at or after ``since``.

    Entries may be ledger rows or plain mappings. A malformed entry (no
    amount, no or unparsable earned_at) is logged and counts as zero so one
    bad row cannot blank out a whole dashboard.
    """
    since = as_utc(since) if since is not None else None
    total = Decimal("0")
    for entry in entries or ():
        raw_amount = _field(entry, "amount")
        if raw_amount is None or raw_amount == "":
            logger.warning("Skipping ledger entry without amount: %r", entry)
            continue
        try:
            amount = Decimal(str(raw_amount))
            earned_at = _parse_earned_at(_field(entry, "earned_at"))
        except (InvalidOperation, ValueError, TypeError):
            logger.warning("Skipping malformed ledger entry: %r", entry)
            continue
        if not amount.is_finite():
            logger.warning("Skipping ledger entry with non-finite amount: %r", entry)
            continue
        if since is not None and earned_at < since:
            continue
        total += amount
    return total.quantize(CENT)


def parse_amount(raw):
    try:
        amount = Decimal(str(raw)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationFailed("Amount must be a number.") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationFailed("Amount must be greater than zero.")
    return amount


class LedgerService:
    @staticmethod
    def credit_completion(booking, cleaner_id, earned_at):
        """Append the ledger entry for a completed booking and credit the balance.

        Runs inside the completion transaction; the caller commits.
        """
        amount = Decimal(str(booking.amount))
        label = booking.service.name if booking.service else "Cleaning"
        entry = EarningEntry(
            cleaner_id=cleaner_id,
            booking_id=booking.id,
            amount=amount,
            service_label=label,
            earned_at=earned_at,
        )
        db.session.add(entry)
        Cleaner.query.filter(Cleaner.id == cleaner_id).update(
            {Cleaner.earnings_balance: func.round(Cleaner.earnings_balance + amount, 2)},
            synchronize_session=False,
        )
        return entry

    @staticmethod
    def entries_for(cleaner_id):
        return (
            EarningEntry.query.filter_by(cleaner_id=cleaner_id)
            .order_by(EarningEntry.earned_at.desc(), EarningEntry.id.desc())
            .all()
        )

    @staticmethod
    def balance(cleaner):
        db.session.refresh(cleaner)
        return Decimal(str(cleaner.earnings_balance or 0)).quantize(CENT)

    @staticmethod
    def reconcile(cleaner):
        earned = db.session.query(func.coalesce(func.sum(EarningEntry.amount), 0)).filter(
            EarningEntry.cleaner_id == cleaner.id
        ).scalar()
        withdrawn = db.session.query(func.coalesce(func.sum(Withdrawal.amount), 0)).filter(
            Withdrawal.cleaner_id == cleaner.id
        ).scalar()
        derived = (Decimal(str(earned)) - Decimal(str(withdrawn))).quantize(CENT)
        stored = LedgerService.balance(cleaner)
        if derived != stored:
            logger.warning("Cleaner %s balance drift: stored %s, derived %s", cleaner.id, stored, derived)
        return {"stored": stored, "derived": derived, "matches": derived == stored}

    @staticmethod
    def summary(cleaner, now=None):
        now = as_utc(now) if now is not None else utcnow()
        entries = LedgerService.entries_for(cleaner.id)
        windows = window_starts(now)

        completed = (
            Booking.query.filter_by(cleaner_id=cleaner.id, is_deleted=False)
            .filter(Booking.payment_collected_at.isnot(None))
            .all()
        )
        total_time = sum((booking_duration(b, now=now) for b in completed), ZERO)

        return {
            "today": sum_entries(entries, windows["today"]),
            "this_week": sum_entries(entries, windows["this_week"]),
            "this_month": sum_entries(entries, windows["this_month"]),
            "lifetime": sum_entries(entries),
            "pending_cashout": LedgerService.balance(cleaner),
            "completed_jobs": len(completed),
            "total_hours": round(total_time.total_seconds() / 3600, 2),
            "recent": [entry.to_dict() for entry in entries[:5]],
        }

    @staticmethod
    def request_withdrawal(user, amount):
        cleaner = UserService.cleaner_for_user(user)
        amount = parse_amount(amount)

        # SQLite keeps the balance as REAL; rounding keeps it on whole paise.
        try:
            updated = Cleaner.query.filter(
                Cleaner.id == cleaner.id,
                func.round(Cleaner.earnings_balance, 2) >= amount,
            ).update(
                {Cleaner.earnings_balance: func.round(Cleaner.earnings_balance - amount, 2)},
                synchronize_session=False,
            )
            if updated == 0:
                db.session.rollback()
                balance = LedgerService.balance(cleaner)
                raise InsufficientBalance(
                    f"Insufficient balance. Available balance is {balance}.",
                    balance=str(balance),
                )

            withdrawal = Withdrawal(cleaner_id=cleaner.id, amount=amount)
            db.session.add(withdrawal)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable() from exc

        logger.info("Cleaner %s withdrew %s", cleaner.id, amount)
        return withdrawal

    @staticmethod
    def withdrawal_history(user):
        cleaner = UserService.cleaner_for_user(user)
        return (
            Withdrawal.query.filter_by(cleaner_id=cleaner.id)
            .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
            .all()
        )
