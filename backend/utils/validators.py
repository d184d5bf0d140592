"""
Input validation utilities for the Storefront API.

Every entity is keyed by a 24-character hex string (the ObjectId format the
storefront has always used). Filter values are validated against that format
and against ISO-8601 dates before they reach the database.
"""
import re
import secrets
from datetime import date, datetime

from fastapi import Path

from domain.errors import NotFoundError

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """Generate a fresh 24-hex identifier."""
    return secrets.token_hex(12)


def is_valid_object_id(value) -> bool:
    """True if value is a 24-character hex string."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


def parse_date(value) -> datetime | None:
    """
    Parse an ISO-8601 date or datetime string.

    Returns None for anything that does not parse. A trailing "Z" is accepted
    as UTC. Bare dates become midnight.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def parse_number(value) -> int | float | None:
    """Parse a numeric query value; integral numbers come back as int."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else number


def validate_object_id(value: str, resource_type: str = "Resource") -> str:
    """
    Validate an id taken from the URL.

    A malformed id can never match a row, so it is reported as not found.
    """
    if not is_valid_object_id(value):
        raise NotFoundError(resource_type, str(value))
    return value.lower()


def validated_order_id(order_id: str = Path(..., alias="orderId", description="Order id")) -> str:
    """FastAPI dependency for validating order id path parameters."""
    return validate_object_id(order_id, "Order")
