"""Ingress validation for booking and profile payloads."""
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from safaiwalay.errors import ValidationFailed
from safaiwalay.models.base import as_utc, utcnow

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
PRICE_PATTERN = re.compile(r"^₹?(\d+(?:\.\d{1,2})?)$")


def _text(payload, key):
    value = payload.get(key)
    if value is None:
        return ""
    return str(value).strip()


def validate_email(email):
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email) or len(email) > 254:
        raise ValidationFailed("Invalid email address.", field="email")
    return email


def validate_phone(phone):
    phone = (phone or "").strip().replace(" ", "")
    if not PHONE_PATTERN.match(phone):
        raise ValidationFailed("Invalid phone number.", field="phone")
    return phone


def parse_price(raw):
    match = PRICE_PATTERN.match(str(raw or "").strip())
    if not match:
        raise ValidationFailed("Invalid price format.", field="price")
    try:
        return Decimal(match.group(1))
    except InvalidOperation as exc:
        raise ValidationFailed("Invalid price format.", field="price") from exc


def parse_schedule(date_text, time_text, now=None):
    if not TIME_PATTERN.match(time_text or ""):
        raise ValidationFailed("Invalid time format.", field="time")
    try:
        scheduled = datetime.strptime(f"{date_text} {time_text}", "%Y-%m-%d %H:%M").replace(tzinfo=timezone.utc)
    except ValueError as exc:
        raise ValidationFailed("Invalid booking date.", field="date") from exc
    now = as_utc(now) if now is not None else utcnow()
    if scheduled <= now:
        raise ValidationFailed("Cannot book for past dates.", field="date")
    return scheduled


def validate_booking_form(payload, now=None):
    """Parse a booking request into typed values, rejecting any shape mismatch."""
    if not isinstance(payload, dict):
        raise ValidationFailed("Booking payload must be an object.")

    service_name = _text(payload, "service_name")
    if not service_name:
        raise ValidationFailed("Service name is required.", field="service_name")

    name = _text(payload, "name")
    if len(name) < 2:
        raise ValidationFailed("Name must be at least 2 characters.", field="name")

    address = _text(payload, "address")
    if len(address) < 10:
        raise ValidationFailed("Address must be at least 10 characters.", field="address")

    price = None
    if _text(payload, "price"):
        price = parse_price(_text(payload, "price"))

    return {
        "service_name": service_name,
        "scheduled_at": parse_schedule(_text(payload, "date"), _text(payload, "time"), now=now),
        "name": name,
        "email": validate_email(_text(payload, "email")),
        "phone": validate_phone(_text(payload, "phone")),
        "address": address,
        "price": price,
    }
