from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from safaiwalay.decorators import customer_required
from safaiwalay.services import ReviewService

api_review_bp = Blueprint("api_review", __name__)


@api_review_bp.get("")
def published_reviews():
    limit = request.args.get("limit", 20, type=int)
    return jsonify([review.to_dict() for review in ReviewService.published(limit=max(1, min(limit, 100)))])


@api_review_bp.post("")
@login_required
@customer_required
def create_review():
    payload = request.get_json(silent=True) or {}
    review = ReviewService.create_review(current_user, payload.get("rating"), payload.get("comment"))
    return jsonify(review.to_dict()), 201


@api_review_bp.patch("/<int:review_id>")
@login_required
@customer_required
def update_review(review_id):
    payload = request.get_json(silent=True) or {}
    review = ReviewService.update_review(review_id, current_user, payload.get("rating"), payload.get("comment"))
    return jsonify(review.to_dict())


@api_review_bp.delete("/<int:review_id>")
@login_required
@customer_required
def delete_review(review_id):
    review = ReviewService.delete_review(review_id, current_user)
    return jsonify({"id": review.id, "is_deleted": review.is_deleted})
