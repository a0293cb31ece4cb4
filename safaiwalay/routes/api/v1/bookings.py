from flask import Blueprint, abort, jsonify, request
from flask_login import current_user, login_required

from safaiwalay.decorators import admin_required, cleaner_required, customer_required
from safaiwalay.services import BookingService, DashboardService

api_booking_bp = Blueprint("api_booking", __name__)

TRANSITIONS = {
    "claim": BookingService.claim,
    "start": BookingService.start,
    "pause": BookingService.pause,
    "resume": BookingService.resume,
    "complete": BookingService.complete,
}


@api_booking_bp.post("")
@login_required
@customer_required
def create_booking():
    payload = request.get_json(silent=True) or {}
    booking = BookingService.create_booking(current_user, payload)
    return jsonify(booking.to_dict()), 201


@api_booking_bp.get("/me")
@login_required
@customer_required
def my_bookings():
    return jsonify(DashboardService.customer_view(current_user))


@api_booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id):
    booking = BookingService.get_booking(booking_id)
    if current_user.role == "user" and booking.user_id != current_user.id:
        abort(403)
    if current_user.role == "cleaner" and booking.status != "pending":
        cleaner = getattr(current_user, "cleaner", None)
        if cleaner is None or booking.cleaner_id != cleaner.id:
            abort(403)
    return jsonify(booking.to_dict())


@api_booking_bp.post("/<int:booking_id>/<action>")
@login_required
@cleaner_required
def transition(booking_id, action):
    handler = TRANSITIONS.get(action)
    if handler is None:
        abort(404)
    booking = handler(booking_id, current_user)
    return jsonify(booking.to_dict())


@api_booking_bp.delete("/<int:booking_id>")
@login_required
@admin_required
def delete_booking(booking_id):
    booking = BookingService.soft_delete(booking_id, current_user)
    return jsonify({"id": booking.id, "is_deleted": booking.is_deleted})
