import logging
from datetime import timedelta

from sqlalchemy import func

from safaiwalay.errors import ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.models import ChangeEvent
from safaiwalay.models.base import utcnow
from safaiwalay.models.change_event import FEED_TABLES

logger = logging.getLogger(__name__)


class ChangeFeedService:
    @staticmethod
    def record(table_name, row_id, action="update"):
        """Stage a change event; it commits (or rolls back) with the caller's write."""
        event = ChangeEvent(table_name=table_name, row_id=row_id, action=action)
        db.session.add(event)
        return event

    @staticmethod
    def since(table_name, after=None, limit=100):
        """Events for ``table_name`` after the ``after`` cursor.

        Cursors are global event ids. ``reload`` tells the subscriber its
        cursor cannot be served incrementally (no cursor yet, events pruned
        past it, or a cursor ahead of this feed) and it must refetch the
        whole projection instead.

        The next cursor is the last id returned, or ``after`` itself when
        nothing matched. Ids are allocated before commit, so an id below the
        current maximum can still become visible later.
        """
        if table_name not in FEED_TABLES:
            raise ValidationFailed(f"Unknown change feed table: {table_name}.")

        oldest, newest = db.session.query(func.min(ChangeEvent.id), func.max(ChangeEvent.id)).one()
        newest = newest or 0

        if after is None:
            return {"events": [], "cursor": newest, "reload": True, "has_more": False}

        try:
            after = int(after)
        except (TypeError, ValueError) as exc:
            raise ValidationFailed("Cursor must be an integer.") from exc

        missed = oldest is not None and after < oldest - 1
        if after > newest or missed:
            logger.info("Change feed cursor %s for %s is not serviceable; asking for reload.", after, table_name)
            return {"events": [], "cursor": newest, "reload": True, "has_more": False}

        rows = (
            ChangeEvent.query.filter(ChangeEvent.table_name == table_name)
            .filter(ChangeEvent.id > after)
            .order_by(ChangeEvent.id.asc())
            .limit(limit)
            .all()
        )
        has_more = len(rows) == limit
        cursor = rows[-1].id if rows else after
        return {
            "events": [row.to_dict() for row in rows],
            "cursor": cursor,
            "reload": False,
            "has_more": has_more,
        }

    @staticmethod
    def prune(older_than_days):
        cutoff = utcnow() - timedelta(days=older_than_days)
        newest_stale = (
            db.session.query(func.max(ChangeEvent.id)).filter(ChangeEvent.created_at < cutoff).scalar()
        )
        if newest_stale is None:
            return 0
        removed = ChangeEvent.query.filter(ChangeEvent.id <= newest_stale).delete(synchronize_session=False)
        db.session.commit()
        logger.info("Pruned %s change events older than %s days.", removed, older_than_days)
        return removed
