from flask_login import UserMixin

from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, SoftDeleteMixin, TimestampMixin

ROLES = ("user", "admin", "cleaner")


class User(UserMixin, SoftDeleteMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(16), nullable=False, default="")
    address = db.Column(db.Text, nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="user", index=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    cleaner = db.relationship("Cleaner", back_populates="user", uselist=False)
    bookings = db.relationship("Booking", back_populates="customer", lazy="dynamic")
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic")
    reviews = db.relationship("Review", back_populates="user", lazy="dynamic")

    __table_args__ = (
        db.CheckConstraint("role IN ('user', 'admin', 'cleaner')", name="ck_users_role"),
    )

    @property
    def is_active(self):
        return not self.is_deleted

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "role": self.role,
            "is_deleted": self.is_deleted,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
