from flask import Blueprint, jsonify

from safaiwalay.extensions import cache
from safaiwalay.services import CatalogService

api_catalog_bp = Blueprint("api_catalog", __name__)


@api_catalog_bp.get("")
@cache.cached(timeout=300)
def list_services():
    return jsonify([service.to_dict() for service in CatalogService.list_active()])
