from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from safaiwalay.errors import Conflict, Forbidden, Unauthorized, ValidationFailed
from safaiwalay.extensions import bcrypt, db
from safaiwalay.models import User
from safaiwalay.validators import validate_email, validate_phone


class AuthService:
    @staticmethod
    def hash_password(password):
        return bcrypt.generate_password_hash(password).decode("utf-8")

    @staticmethod
    def register_user(name, email, password, phone, address=None):
        normalized_email = validate_email(email)
        normalized_phone = validate_phone(phone)
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationFailed("Name must be at least 2 characters.", field="name")
        if not password or len(password) < 8:
            raise ValidationFailed("Password must be at least 8 characters.", field="password")

        if User.query.filter_by(email=normalized_email).first():
            raise Conflict("An account with this email already exists.")

        user = User(
            name=name,
            email=normalized_email,
            phone=normalized_phone,
            address=(address or "").strip() or None,
            role="user",
            password_hash=AuthService.hash_password(password),
        )
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise Conflict("An account with this email already exists.") from exc
        return user

    @staticmethod
    def authenticate_user(email, password):
        user = User.query.filter_by(email=(email or "").strip().lower()).first()
        if not user:
            raise Unauthorized("Invalid credentials.")

        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password or "")
        except ValueError:
            is_valid = False

        if not is_valid:
            raise Unauthorized("Invalid credentials.")
        if user.is_deleted:
            raise Forbidden("User profile not found or has been deleted.")
        user.last_login = datetime.now(timezone.utc)
        db.session.commit()
        return user
