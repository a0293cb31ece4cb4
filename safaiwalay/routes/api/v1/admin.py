from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from safaiwalay.decorators import admin_required
from safaiwalay.errors import NotFound
from safaiwalay.extensions import db
from safaiwalay.models import Cleaner
from safaiwalay.services import CatalogService, DashboardService, LedgerService, ReviewService, UserService

api_admin_bp = Blueprint("api_admin", __name__)


def _flag(name):
    return request.args.get(name, "").strip().lower() in {"1", "true", "yes"}


@api_admin_bp.get("/dashboard")
@login_required
@admin_required
def dashboard():
    return jsonify(DashboardService.admin_view(show_deleted=_flag("show_deleted")))


@api_admin_bp.delete("/users/<int:user_id>")
@login_required
@admin_required
def delete_user(user_id):
    user = UserService.soft_delete_user(user_id, current_user)
    return jsonify(user.to_dict())


@api_admin_bp.post("/users/<int:user_id>/restore")
@login_required
@admin_required
def restore_user(user_id):
    user = UserService.restore_user(user_id, current_user)
    return jsonify(user.to_dict())


@api_admin_bp.patch("/users/<int:user_id>")
@login_required
@admin_required
def update_user(user_id):
    user = UserService.update_user(user_id, request.get_json(silent=True) or {})
    return jsonify(user.to_dict())


@api_admin_bp.post("/services")
@login_required
@admin_required
def create_service():
    service = CatalogService.create_service(request.get_json(silent=True) or {})
    return jsonify(service.to_dict()), 201


@api_admin_bp.patch("/services/<int:service_id>")
@login_required
@admin_required
def update_service(service_id):
    service = CatalogService.update_service(service_id, request.get_json(silent=True) or {})
    return jsonify(service.to_dict())


@api_admin_bp.post("/reviews/<int:review_id>/publish")
@login_required
@admin_required
def publish_review(review_id):
    payload = request.get_json(silent=True) or {}
    review = ReviewService.set_published(review_id, payload.get("is_published", True))
    return jsonify(review.to_dict())


@api_admin_bp.get("/cleaners/<int:cleaner_id>/ledger")
@login_required
@admin_required
def reconcile_ledger(cleaner_id):
    cleaner = db.session.get(Cleaner, cleaner_id)
    if not cleaner:
        raise NotFound("Cleaner not found.")
    return jsonify(LedgerService.reconcile(cleaner))
