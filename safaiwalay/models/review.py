from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, SoftDeleteMixin, TimestampMixin


class Review(SoftDeleteMixin, TimestampMixin, db.Model):
    __tablename__ = "reviews"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = db.Column(db.SmallInteger, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    is_published = db.Column(db.Boolean, nullable=False, default=False, index=True)

    user = db.relationship("User", back_populates="reviews")

    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "author": self.user.name if self.user else None,
            "rating": self.rating,
            "comment": self.comment,
            "is_published": self.is_published,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
