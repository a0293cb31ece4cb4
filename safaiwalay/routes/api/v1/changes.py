from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from safaiwalay.services import ChangeFeedService

api_changes_bp = Blueprint("api_changes", __name__)


@api_changes_bp.get("")
@login_required
def changes():
    limit = current_app.config.get("CHANGE_FEED_PAGE_SIZE", 100)
    return jsonify(
        ChangeFeedService.since(request.args.get("table", ""), after=request.args.get("after"), limit=limit)
    )
