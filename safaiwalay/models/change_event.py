from safaiwalay.extensions import db
from safaiwalay.models.base import PKType, utcnow

FEED_TABLES = ("bookings", "payments")


class ChangeEvent(db.Model):
    """One committed row change; ``id`` doubles as the subscriber cursor."""

    __tablename__ = "change_events"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    table_name = db.Column(db.String(32), nullable=False, index=True)
    row_id = db.Column(PKType, nullable=False)
    action = db.Column(db.String(8), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        db.Index("ix_change_events_table_id", "table_name", "id"),
        db.CheckConstraint("action IN ('insert', 'update', 'delete')", name="ck_change_events_action"),
        # Cursor ids must never be reused after a prune.
        {"sqlite_autoincrement": True},
    )

    def to_dict(self):
        return {
            "cursor": self.id,
            "table": self.table_name,
            "row_id": self.row_id,
            "action": self.action,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
