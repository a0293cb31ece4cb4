from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, TimestampMixin


class Withdrawal(TimestampMixin, db.Model):
    __tablename__ = "earnings_withdrawals"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    cleaner_id = db.Column(PKType, db.ForeignKey("cleaners.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    cleaner = db.relationship("Cleaner", back_populates="withdrawals")

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_withdrawals_amount_positive"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "amount": str(self.amount),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
