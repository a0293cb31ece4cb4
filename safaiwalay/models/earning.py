from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, TimestampMixin, utcnow


class EarningEntry(TimestampMixin, db.Model):
    __tablename__ = "earning_entries"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    cleaner_id = db.Column(PKType, db.ForeignKey("cleaners.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="RESTRICT"), nullable=False, unique=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    service_label = db.Column(db.String(120), nullable=False)
    earned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    cleaner = db.relationship("Cleaner", back_populates="earnings")
    booking = db.relationship("Booking", back_populates="earning")

    __table_args__ = (
        db.Index("ix_earning_entries_cleaner_earned", "cleaner_id", "earned_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "amount": str(self.amount),
            "service": self.service_label,
            "earned_at": self.earned_at.isoformat() if self.earned_at else None,
        }
