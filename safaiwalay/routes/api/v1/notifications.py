from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from safaiwalay.services import NotificationService

api_notification_bp = Blueprint("api_notification", __name__)


@api_notification_bp.get("/me")
@login_required
def my_notifications():
    items = NotificationService.latest_for_user(current_user.id, limit=20)
    return jsonify(
        {
            "unread": NotificationService.unread_count(current_user.id),
            "items": [n.to_dict() for n in items],
        }
    )


@api_notification_bp.post("/me/read")
@login_required
def mark_all_read():
    updated = NotificationService.mark_all_read(current_user.id)
    return jsonify({"ok": True, "updated": updated})
