from flask import Blueprint

from safaiwalay.routes.api.v1.admin import api_admin_bp
from safaiwalay.routes.api.v1.auth import api_auth_bp
from safaiwalay.routes.api.v1.bookings import api_booking_bp
from safaiwalay.routes.api.v1.cart import api_cart_bp
from safaiwalay.routes.api.v1.catalog import api_catalog_bp
from safaiwalay.routes.api.v1.changes import api_changes_bp
from safaiwalay.routes.api.v1.cleaner import api_cleaner_bp
from safaiwalay.routes.api.v1.notifications import api_notification_bp
from safaiwalay.routes.api.v1.reviews import api_review_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_catalog_bp, url_prefix="/services")
api_v1_bp.register_blueprint(api_booking_bp, url_prefix="/bookings")
api_v1_bp.register_blueprint(api_cart_bp, url_prefix="/cart")
api_v1_bp.register_blueprint(api_cleaner_bp, url_prefix="/cleaner")
api_v1_bp.register_blueprint(api_admin_bp, url_prefix="/admin")
api_v1_bp.register_blueprint(api_review_bp, url_prefix="/reviews")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
api_v1_bp.register_blueprint(api_changes_bp, url_prefix="/changes")
