from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, SoftDeleteMixin, TimestampMixin

BOOKING_STATUSES = ("pending", "picked", "in_progress", "paused", "completed")


def _iso(value):
    return value.isoformat() if value else None


class Booking(SoftDeleteMixin, TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    service_id = db.Column(PKType, db.ForeignKey("services.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cleaner_id = db.Column(PKType, db.ForeignKey("cleaners.id", ondelete="RESTRICT"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    scheduled_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    address = db.Column(db.Text, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    picked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paused_at = db.Column(db.DateTime(timezone=True), nullable=True)
    total_pause_duration = db.Column(db.Integer, nullable=False, default=0)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_collected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    service = db.relationship("Service", back_populates="bookings")
    customer = db.relationship("User", back_populates="bookings", foreign_keys=[user_id])
    cleaner = db.relationship("Cleaner", back_populates="bookings")
    payment = db.relationship("Payment", back_populates="booking", uselist=False)
    earning = db.relationship("EarningEntry", back_populates="booking", uselist=False)

    __table_args__ = (
        db.Index("ix_bookings_cleaner_status", "cleaner_id", "status"),
        db.Index("ix_bookings_status_scheduled", "status", "scheduled_at"),
        db.CheckConstraint(
            "status IN ('pending', 'picked', 'in_progress', 'paused', 'completed')",
            name="ck_bookings_status",
        ),
        db.CheckConstraint("total_pause_duration >= 0", name="ck_bookings_pause_non_negative"),
        db.CheckConstraint("amount >= 0", name="ck_bookings_amount_non_negative"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "status": self.status,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else None,
            "user_id": self.user_id,
            "cleaner_id": self.cleaner_id,
            "scheduled_at": _iso(self.scheduled_at),
            "address": self.address,
            "amount": str(self.amount),
            "created_at": _iso(self.created_at),
            "picked_at": _iso(self.picked_at),
            "started_at": _iso(self.started_at),
            "paused_at": _iso(self.paused_at),
            "total_pause_duration": self.total_pause_duration or 0,
            "completed_at": _iso(self.completed_at),
            "payment_collected_at": _iso(self.payment_collected_at),
        }
