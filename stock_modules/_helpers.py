"""
Shared helpers for the lifecycle services.

Used by stock_modules/*/service.py for the input checks every document
creation repeats.

Architecture: Modules layer.  Imports only from stock_kernel.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from stock_kernel.exceptions import ValidationError


def require_quantity(value: Any, field: str = "quantity", item_id: str | None = None) -> int:
    """Return ``value`` if it is a positive whole number of units."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, f"must be a whole number, got {value!r}", item_id)
    if value <= 0:
        raise ValidationError(field, f"must be positive, got {value}", item_id)
    return value


def require_price(value: Any, field: str = "unit_price", item_id: str | None = None) -> Decimal:
    """Return ``value`` as a positive Decimal."""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(field, f"not a valid amount: {value!r}", item_id) from None
    if not price.is_finite() or price <= 0:
        raise ValidationError(field, f"must be positive, got {value}", item_id)
    return price


def require_text(value: str | None, field: str, min_length: int = 1) -> str:
    text = (value or "").strip()
    if len(text) < min_length:
        raise ValidationError(field, f"must be at least {min_length} characters")
    return text


def require_lines(items) -> list:
    lines = list(items or ())
    if not lines:
        raise ValidationError("items", "at least one line item is required")
    return lines
