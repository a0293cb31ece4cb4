import logging

from sqlalchemy.exc import IntegrityError

from safaiwalay.errors import CleanerProfileMissing, Conflict, Forbidden, NotFound, ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.models import Cleaner, User
from safaiwalay.models.base import utcnow
from safaiwalay.models.user import ROLES
from safaiwalay.validators import validate_email, validate_phone

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def cleaner_for_user(user):
        """Resolve the caller's cleaner profile or fail with ``no_cleaner_profile``."""
        cleaner = None
        if user is not None and getattr(user, "id", None) is not None:
            cleaner = Cleaner.query.filter_by(user_id=user.id).first()
        if not cleaner:
            raise CleanerProfileMissing()
        return cleaner

    @staticmethod
    def ensure_cleaner_profile(user):
        cleaner = Cleaner.query.filter_by(user_id=user.id).first()
        if cleaner:
            return cleaner
        cleaner = Cleaner(user_id=user.id, earnings_balance=0)
        db.session.add(cleaner)
        return cleaner

    @staticmethod
    def list_users(show_deleted=False):
        return (
            User.query.filter_by(is_deleted=bool(show_deleted))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )

    @staticmethod
    def _get(user_id):
        user = db.session.get(User, user_id)
        if not user:
            raise NotFound("User not found.")
        return user

    @staticmethod
    def soft_delete_user(user_id, actor):
        user = UserService._get(user_id)
        if user.id == actor.id:
            raise Forbidden("Administrators cannot delete their own account.")
        if user.is_deleted:
            raise Conflict("User is already deleted.")
        user.mark_deleted()
        db.session.commit()
        logger.info("Admin %s soft-deleted user %s", actor.id, user.id)
        return user

    @staticmethod
    def restore_user(user_id, actor):
        user = UserService._get(user_id)
        if not user.is_deleted:
            raise Conflict("User is not deleted.")
        user.restore()
        db.session.commit()
        logger.info("Admin %s restored user %s", actor.id, user.id)
        return user

    @staticmethod
    def update_user(user_id, payload):
        user = UserService._get(user_id)

        if "name" in payload:
            name = (payload.get("name") or "").strip()
            if len(name) < 2:
                raise ValidationFailed("Name must be at least 2 characters.", field="name")
            user.name = name
        if "email" in payload:
            user.email = validate_email(payload.get("email"))
        if "phone" in payload:
            user.phone = validate_phone(payload.get("phone"))
        if "address" in payload:
            user.address = (payload.get("address") or "").strip() or None
        if "role" in payload:
            role = (payload.get("role") or "").strip().lower()
            if role not in ROLES:
                raise ValidationFailed("Invalid role.", field="role")
            user.role = role
            if role == "cleaner":
                UserService.ensure_cleaner_profile(user)

        user.updated_at = utcnow()
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise Conflict("An account with this email already exists.") from exc
        return user
