from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from safaiwalay.extensions import limiter
from safaiwalay.services import AuthService, NotificationService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/register")
@limiter.limit("10 per hour")
def api_register():
    payload = request.get_json(silent=True) or {}
    user = AuthService.register_user(
        name=payload.get("name", ""),
        email=payload.get("email", ""),
        password=payload.get("password", ""),
        phone=payload.get("phone", ""),
        address=payload.get("address"),
    )
    login_user(user)
    return jsonify({"id": user.id, "email": user.email, "name": user.name, "role": user.role}), 201


@api_auth_bp.post("/login")
@limiter.limit("20 per minute")
def api_login():
    payload = request.get_json(silent=True) or {}
    user = AuthService.authenticate_user(payload.get("email", ""), payload.get("password", ""))
    login_user(user, remember=bool(payload.get("remember")))
    return jsonify({"id": user.id, "email": user.email, "name": user.name, "role": user.role})


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_auth_bp.get("/me")
@login_required
def api_me():
    payload = current_user.to_dict()
    payload["unread_notifications"] = NotificationService.unread_count(current_user.id)
    return jsonify(payload)
