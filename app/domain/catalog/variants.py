from __future__ import annotations

import math
import time
import uuid
from decimal import Decimal, InvalidOperation

from app.domain.catalog.errors import ValidationError

DEFAULT_STOCK = 0
DEFAULT_SKU_PREFIX_LENGTH = 3
VARIANT_FIELDS = ("sku", "stock", "colour_id", "size_id")


def has_variant_for_count(count: int) -> bool:
    return count > 1


def default_sku(product_name: str, now_ms: int | None = None) -> str:
    prefix = (product_name or "").strip()[:DEFAULT_SKU_PREFIX_LENGTH].upper()
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{prefix}-{stamp}"


def disambiguate_sku(sku: str) -> str:
    return f"{sku}-{uuid.uuid4().hex[:4].upper()}"


def normalize_sku(value, message: str = "Each variant must have an SKU!") -> str:
    if value is None or not isinstance(value, str):
        raise ValidationError(message)
    sku = value.strip()
    if not sku:
        raise ValidationError(message)
    return sku


def normalize_stock(
    value,
    default: int | None = None,
    message: str = "Stock must be a non-negative number!",
) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise ValidationError(message)
        return default
    if isinstance(value, bool):
        raise ValidationError(message)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(message)
    if not number.is_finite() or number < 0 or number != number.to_integral_value():
        raise ValidationError(message)
    return int(number)


def normalize_price(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("Product name and price are required!")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a positive number!")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Price must be a positive number!")
    return price


def normalize_number(value, field: str, default: float = 0) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a number")
    return number


def normalize_name(value) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("Product name and price are required!")
    return name


def clean_variant_fields(fields: dict, *, stock_default: int | None = None) -> dict:
    """Validate a variant payload meant for insertion."""
    return {
        "sku": normalize_sku(fields.get("sku")),
        "stock": normalize_stock(fields.get("stock"), default=stock_default),
        "colour_id": fields.get("colour_id") or None,
        "size_id": fields.get("size_id") or None,
    }


def clean_variant_changes(fields: dict) -> dict:
    """Keep only the supplied variant fields, validating the ones that are set."""
    changes: dict = {}
    if fields.get("sku") is not None:
        changes["sku"] = normalize_sku(fields["sku"], message="SKU must not be empty")
    if fields.get("stock") is not None:
        changes["stock"] = normalize_stock(fields["stock"], message="Stock must be a non-negative number")
    # an explicit null clears the reference
    for key in ("colour_id", "size_id"):
        if key in fields:
            changes[key] = fields[key] or None
    return changes
