from flask import Blueprint, jsonify, request, session
from flask_login import current_user, login_required

from safaiwalay.decorators import customer_required
from safaiwalay.services import CartService

api_cart_bp = Blueprint("api_cart", __name__)


@api_cart_bp.get("")
@login_required
@customer_required
def view_cart():
    return jsonify(CartService.load(session).to_payload())


@api_cart_bp.post("/items")
@login_required
@customer_required
def add_item():
    item = CartService.add_item(session, request.get_json(silent=True) or {})
    return jsonify(item), 201


@api_cart_bp.delete("/items/<item_id>")
@login_required
@customer_required
def remove_item(item_id):
    return jsonify(CartService.remove_item(session, item_id).to_payload())


@api_cart_bp.delete("")
@login_required
@customer_required
def clear_cart():
    CartService.clear(session)
    return jsonify({"ok": True})


@api_cart_bp.post("/checkout")
@login_required
@customer_required
def checkout():
    bookings = CartService.checkout(session, current_user)
    return jsonify([booking.to_dict() for booking in bookings]), 201
