from flask import jsonify
from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class AppError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, message, status_code=None, **details):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class ValidationFailed(AppError):
    status_code = 400
    code = "validation_error"


class NotFound(AppError):
    status_code = 404
    code = "not_found"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"


class Conflict(AppError):
    status_code = 409
    code = "conflict"


class CleanerProfileMissing(NotFound):
    code = "no_cleaner_profile"

    def __init__(self, message="No cleaner profile found for this account."):
        super().__init__(message)


class InvalidTransition(AppError):
    status_code = 409
    code = "invalid_transition"


class AlreadyClaimed(InvalidTransition):
    code = "already_claimed"

    def __init__(self, message="This job was already picked by another cleaner."):
        super().__init__(message)


class InsufficientBalance(AppError):
    status_code = 409
    code = "insufficient_balance"


class StorageUnavailable(AppError):
    status_code = 503
    code = "storage_unavailable"

    def __init__(self, message="Storage is temporarily unavailable. Please retry."):
        super().__init__(message)


def _error(message, status_code, code):
    return jsonify({"error": message, "code": code}), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error")
        return _error("Conflict. Resource already exists.", 409, "conflict")

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(err):
        app.logger.error("Storage failure: %s", err)
        return _error("Storage is temporarily unavailable. Please retry.", 503, "storage_unavailable")

    @app.errorhandler(400)
    def bad_request(_err):
        return _error("Bad request", 400, "bad_request")

    @app.errorhandler(401)
    def unauthorized(_err):
        return _error("Unauthorized", 401, "unauthorized")

    @app.errorhandler(403)
    def forbidden(_err):
        return _error("Forbidden", 403, "forbidden")

    @app.errorhandler(404)
    def not_found(_err):
        return _error("Not found", 404, "not_found")

    @app.errorhandler(429)
    def too_many_requests(_err):
        return _error("Too many requests", 429, "rate_limited")

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return _error("Internal server error", 500, "internal_error")
