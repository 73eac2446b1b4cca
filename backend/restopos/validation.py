from __future__ import annotations
import re
from datetime import date, datetime
from decimal import Decimal
from restopos.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from restopos.currency import CurrencyError, to_decimal
from restopos.models.inventory import (
    ALLOWED_BOTTLES_PER_CRATE,
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_TYPES,
    STOCK_UNITS,
)
from restopos.models.printers import CONNECTION_TYPES, MAX_PAPER_WIDTH, MIN_PAPER_WIDTH
from restopos.typography import FONT_SIZES


# Maximum price: 9,999,999,999,999.99 FC fits Numeric(15, 2)
MAX_AMOUNT_FC = Decimal("9999999999999.99")

COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
PIN_RE = re.compile(r"^[0-9]{4}$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)

MIN_PASSWORD_LENGTH = 8


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Money / rates
    if isinstance(coltype, Numeric):
        try:
            return to_decimal(value, field=col.key)
        except CurrencyError as e:
            raise ValidationError(str(e))

    # Booleans (JSON true/false, or the "1"/"0"/"true"/"false" strings forms send)
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off", ""):
                return False
            raise ValidationError(f"{col.key} must be a boolean")
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # JSON columns take objects only
    if isinstance(coltype, JSON):
        if not isinstance(value, dict):
            raise ValidationError(f"{col.key} must be an object")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _non_negative_amount(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        amount = patch[key]
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_AMOUNT_FC:
            raise ValidationError(f"{key} exceeds the maximum amount")


def _non_negative_int(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None and patch[key] < 0:
        raise ValidationError(f"{key} must be >= 0")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "unit_of_measure" in patch and patch["unit_of_measure"] not in STOCK_UNITS:
        raise ValidationError(f"unit_of_measure must be one of {', '.join(STOCK_UNITS)}")

    if "bottles_per_crate" in patch and patch["bottles_per_crate"] not in ALLOWED_BOTTLES_PER_CRATE:
        raise ValidationError("bottles_per_crate must be 12 or 24")

    for key in ("quantity_crates", "quantity_bottles", "quantity_glasses", "stock_minimum"):
        _non_negative_int(patch, key)

    for key in ("price_crate_fc", "price_bottle_fc", "price_glass_fc"):
        _non_negative_amount(patch, key)


def enforce_rules_stock_movement(patch: dict) -> None:
    """
    Stock movements: quantities >= 0, and IN/OUT need at least one > 0.
    ADJUSTMENT may legitimately count zero on hand.
    """
    movement_type = patch.get("movement_type")
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"movement_type must be one of {', '.join(MOVEMENT_TYPES)}")

    quantities = [patch.get(k) or 0 for k in ("quantity_crates", "quantity_bottles", "quantity_glasses")]
    for key in ("quantity_crates", "quantity_bottles", "quantity_glasses"):
        _non_negative_int(patch, key)

    if movement_type != MOVEMENT_ADJUSTMENT and not any(q > 0 for q in quantities):
        raise ValidationError("At least one quantity must be > 0")

    _non_negative_amount(patch, "purchase_price_fc")
    _non_negative_amount(patch, "purchase_price_usd")


def enforce_rules_printer(patch: dict) -> None:
    if "connection_type" in patch and patch["connection_type"] not in CONNECTION_TYPES:
        raise ValidationError(f"connection_type must be one of {', '.join(CONNECTION_TYPES)}")

    width = patch.get("paper_width")
    if width is not None and not (MIN_PAPER_WIDTH <= width <= MAX_PAPER_WIDTH):
        raise ValidationError(f"paper_width must be between {MIN_PAPER_WIDTH} and {MAX_PAPER_WIDTH}")


def enforce_rules_customization(patch: dict) -> None:
    for key in ("primary_color", "secondary_color"):
        value = patch.get(key)
        if value and not COLOR_RE.match(value):
            raise ValidationError(f"{key} must be a #RRGGBB color")

    website = patch.get("website")
    if website and not URL_RE.match(website):
        raise ValidationError("website must be a valid URL")

    font_size = patch.get("font_size")
    if font_size is not None and font_size not in FONT_SIZES:
        raise ValidationError(f"font_size must be one of {', '.join(FONT_SIZES)}")


def validate_pin(pin: Any) -> str:
    if not isinstance(pin, str) or not PIN_RE.match(pin):
        raise ValidationError("pin must be exactly 4 digits")
    return pin


def parse_sale_items(raw_items: Any) -> list[dict]:
    """
    Normalize sale line input.

    Each item: {product_id, unit (CRATE|BOTTLE|GLASS), quantity >= 1, unit_price_fc?}
    Quantities must be real integers: booleans and decimals are rejected.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items: list[dict] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")

        product_id = raw.get("product_id")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"items[{index}].product_id must be an integer")

        unit = str(raw.get("unit") or "").strip().upper()
        if unit not in STOCK_UNITS:
            raise ValidationError(f"items[{index}].unit must be one of {', '.join(STOCK_UNITS)}")

        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"items[{index}].quantity must be an integer")
        if quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be >= 1")

        unit_price_fc = raw.get("unit_price_fc")
        if unit_price_fc is not None:
            try:
                unit_price_fc = to_decimal(unit_price_fc, field=f"items[{index}].unit_price_fc")
            except CurrencyError as e:
                raise ValidationError(str(e))
            if unit_price_fc < 0:
                raise ValidationError(f"items[{index}].unit_price_fc must be >= 0")

        items.append({
            "product_id": product_id,
            "unit": unit,
            "quantity": quantity,
            "unit_price_fc": unit_price_fc,
        })

    return items
