"""Customer cart kept in the signed Flask session.

The session cookie is the only place a cart lives, so it crosses an explicit
serialise/deserialise boundary carrying a schema version. Anything that does
not match the current schema is dropped rather than guessed at.
"""
import logging
from uuid import uuid4

from safaiwalay.errors import AppError, NotFound, ValidationFailed
from safaiwalay.extensions import db
from safaiwalay.services.booking_service import BookingService
from safaiwalay.validators import validate_booking_form

logger = logging.getLogger(__name__)

CART_SESSION_KEY = "cart"
CART_SCHEMA_VERSION = 1
ITEM_FIELDS = ("id", "service_name", "price", "date", "time", "name", "email", "phone", "address")
MAX_CART_ITEMS = 20


class Cart:
    def __init__(self, items=None):
        self.items = list(items or [])

    def to_payload(self):
        return {"version": CART_SCHEMA_VERSION, "items": [dict(item) for item in self.items]}

    @classmethod
    def from_payload(cls, payload):
        if payload is None:
            return cls()
        if not isinstance(payload, dict) or payload.get("version") != CART_SCHEMA_VERSION:
            raise ValueError("unsupported cart schema")
        items = payload.get("items")
        if not isinstance(items, list):
            raise ValueError("cart items must be a list")
        for item in items:
            if not isinstance(item, dict) or set(item) != set(ITEM_FIELDS):
                raise ValueError("cart item shape mismatch")
            if not all(isinstance(item[field], str) for field in ITEM_FIELDS):
                raise ValueError("cart item fields must be strings")
        return cls(items)


class CartService:
    @staticmethod
    def load(session):
        try:
            return Cart.from_payload(session.get(CART_SESSION_KEY))
        except ValueError as exc:
            logger.warning("Discarding stored cart: %s", exc)
            session.pop(CART_SESSION_KEY, None)
            return Cart()

    @staticmethod
    def save(session, cart):
        session[CART_SESSION_KEY] = cart.to_payload()
        session.modified = True
        return cart

    @staticmethod
    def add_item(session, payload, now=None):
        cart = CartService.load(session)
        if len(cart.items) >= MAX_CART_ITEMS:
            raise ValidationFailed("Cart is full.")
        validate_booking_form(payload, now=now)
        item = {field: str(payload.get(field) or "").strip() for field in ITEM_FIELDS if field != "id"}
        item["id"] = uuid4().hex
        cart.items.append(item)
        CartService.save(session, cart)
        return item

    @staticmethod
    def remove_item(session, item_id):
        cart = CartService.load(session)
        remaining = [item for item in cart.items if item["id"] != item_id]
        if len(remaining) == len(cart.items):
            raise NotFound("Cart item not found.")
        cart.items = remaining
        CartService.save(session, cart)
        return cart

    @staticmethod
    def clear(session):
        session.pop(CART_SESSION_KEY, None)

    @staticmethod
    def checkout(session, customer, now=None):
        """Turn every cart item into a pending booking, all or nothing."""
        cart = CartService.load(session)
        if not cart.items:
            raise ValidationFailed("Cart is empty.")

        bookings = []
        for index, item in enumerate(cart.items):
            try:
                bookings.append(BookingService.create_booking(customer, item, now=now, commit=False))
            except AppError as exc:
                db.session.rollback()
                exc.details.setdefault("item_id", item["id"])
                exc.details.setdefault("item_index", index)
                raise
        BookingService.commit()
        CartService.clear(session)
        return bookings
