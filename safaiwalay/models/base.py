from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer

from safaiwalay.extensions import db

# Use BIGINT in PostgreSQL, but INTEGER in SQLite so autoincrement works.
PKType = BigInteger().with_variant(Integer, "sqlite")


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """SQLite hands back naive datetimes even for timezone-aware columns."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class SoftDeleteMixin:
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def mark_deleted(self, now=None):
        self.is_deleted = True
        self.deleted_at = now or utcnow()

    def restore(self):
        self.is_deleted = False
        self.deleted_at = None
