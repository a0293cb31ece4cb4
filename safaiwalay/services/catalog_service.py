from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError

from safaiwalay.errors import Conflict, NotFound, ValidationFailed
from safaiwalay.extensions import cache, db
from safaiwalay.models import Service


class CatalogService:
    @staticmethod
    def _parse_price(raw):
        try:
            price = Decimal(str(raw)).quantize(Decimal("0.01"))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationFailed("Price must be a number.", field="price") from exc
        if not price.is_finite() or price < 0:
            raise ValidationFailed("Price must be zero or more.", field="price")
        return price

    @staticmethod
    def list_active():
        return Service.query.filter_by(is_active=True).order_by(Service.name.asc()).all()

    @staticmethod
    def create_service(payload):
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationFailed("Service name is required.", field="name")
        service = Service(
            name=name,
            description=(payload.get("description") or "").strip() or None,
            price=CatalogService._parse_price(payload.get("price")),
            is_active=bool(payload.get("is_active", True)),
        )
        try:
            db.session.add(service)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise Conflict("A service with this name already exists.") from exc
        cache.clear()
        return service

    @staticmethod
    def update_service(service_id, payload):
        service = db.session.get(Service, service_id)
        if not service:
            raise NotFound("Service not found.")
        if "name" in payload:
            name = (payload.get("name") or "").strip()
            if not name:
                raise ValidationFailed("Service name is required.", field="name")
            service.name = name
        if "description" in payload:
            service.description = (payload.get("description") or "").strip() or None
        if "price" in payload:
            service.price = CatalogService._parse_price(payload.get("price"))
        if "is_active" in payload:
            service.is_active = bool(payload.get("is_active"))
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise Conflict("A service with this name already exists.") from exc
        cache.clear()
        return service
