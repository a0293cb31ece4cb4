from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from safaiwalay.decorators import cleaner_required
from safaiwalay.extensions import limiter
from safaiwalay.services import DashboardService, DispatchService, LedgerService, UserService

api_cleaner_bp = Blueprint("api_cleaner", __name__)


@api_cleaner_bp.get("/dashboard")
@login_required
@cleaner_required
def dashboard():
    return jsonify(DashboardService.cleaner_view(current_user))


@api_cleaner_bp.get("/orders/available")
@login_required
@cleaner_required
def available_orders():
    return jsonify([booking.to_dict() for booking in DispatchService.available()])


@api_cleaner_bp.get("/earnings")
@login_required
@cleaner_required
def earnings():
    cleaner = UserService.cleaner_for_user(current_user)
    return jsonify(LedgerService.summary(cleaner))


@api_cleaner_bp.get("/withdrawals")
@login_required
@cleaner_required
def withdrawals():
    return jsonify([row.to_dict() for row in LedgerService.withdrawal_history(current_user)])


@api_cleaner_bp.post("/withdrawals")
@login_required
@cleaner_required
@limiter.limit("10 per hour")
def request_withdrawal():
    payload = request.get_json(silent=True) or {}
    withdrawal = LedgerService.request_withdrawal(current_user, payload.get("amount"))
    cleaner = UserService.cleaner_for_user(current_user)
    return jsonify({"withdrawal": withdrawal.to_dict(), "balance": LedgerService.balance(cleaner)}), 201
