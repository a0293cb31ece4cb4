from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, TimestampMixin


class Cleaner(TimestampMixin, db.Model):
    __tablename__ = "cleaners"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    earnings_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    user = db.relationship("User", back_populates="cleaner")
    bookings = db.relationship("Booking", back_populates="cleaner", lazy="dynamic")
    earnings = db.relationship("EarningEntry", back_populates="cleaner", lazy="dynamic")
    withdrawals = db.relationship("Withdrawal", back_populates="cleaner", lazy="dynamic")

    __table_args__ = (
        db.CheckConstraint("earnings_balance >= 0", name="ck_cleaners_balance_non_negative"),
    )
