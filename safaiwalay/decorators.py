from functools import wraps

from flask import abort
from flask_login import current_user

from safaiwalay.errors import Forbidden

ROLE_LABELS = {"user": "customer", "cleaner": "cleaner", "admin": "administrator"}


def role_required(*roles):
    """Restrict a view to accounts whose role is one of ``roles``."""

    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in roles:
                labels = " or ".join(ROLE_LABELS.get(role, role) for role in roles)
                raise Forbidden(f"Only a {labels} account can do this.", required=list(roles))
            return func(*args, **kwargs)

        return inner

    return wrapper


customer_required = role_required("user")
cleaner_required = role_required("cleaner")
admin_required = role_required("admin")
