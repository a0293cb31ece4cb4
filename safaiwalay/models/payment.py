from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, SoftDeleteMixin, TimestampMixin


class Payment(SoftDeleteMixin, TimestampMixin, db.Model):
    __tablename__ = "payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    receipt_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cleaner_id = db.Column(PKType, db.ForeignKey("cleaners.id", ondelete="CASCADE"), nullable=False, index=True)
    status = db.Column(db.String(24), nullable=False, default="completed", index=True)

    booking = db.relationship("Booking", back_populates="payment")

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "receipt_number": self.receipt_number,
            "amount": str(self.amount),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
