from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, TimestampMixin


class Service(TimestampMixin, db.Model):
    __tablename__ = "services"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    bookings = db.relationship("Booking", back_populates="service", lazy="dynamic")

    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "is_active": self.is_active,
        }
