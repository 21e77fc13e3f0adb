from __future__ import annotations
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from counterpos.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: ₹99,99,999.99 (999,999,999 paise)
MAX_PRICE_PAISE = 999_999_999
MAX_STOCK_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


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

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
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

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_paise(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_PRICE_PAISE:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_PAISE}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_paise(patch, "price_paise")
    _check_paise(patch, "wholesale_price_paise")
    _check_paise(patch, "cost_price_paise")

    if "stock_quantity" in patch:
        qty = patch["stock_quantity"]
        if qty < 0:
            raise ValidationError("stock_quantity must be >= 0")
        if qty > MAX_STOCK_QUANTITY:
            raise ValidationError(f"stock_quantity cannot exceed {MAX_STOCK_QUANTITY}")


def enforce_rules_stock_purchase(patch: dict) -> None:
    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")
    if patch["quantity"] > MAX_STOCK_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_STOCK_QUANTITY}")
    _check_paise(patch, "unit_cost_paise")


def enforce_rules_return(patch: dict) -> None:
    refund = patch.get("refund_paise")
    if refund is None or refund <= 0:
        raise ValidationError("refund_paise must be > 0")
    _check_paise(patch, "refund_paise")


# =============================================================================
# FREE-FORM MONEY INPUT
# =============================================================================

def parse_amount_to_paise(value: Any) -> int:
    """
    Parse a rupee amount typed by the operator ("20", "20.5", 20) into paise.

    Raises ValidationError on anything that is not a finite decimal number.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("amount must be a number")
    if not amount.is_finite():
        raise ValidationError("amount must be a number")
    paise = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if abs(paise) > MAX_PRICE_PAISE:
        raise ValidationError(f"amount cannot exceed {MAX_PRICE_PAISE} paise")
    return paise


_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INFINITY = re.compile(r"\s*\+?Infinity")


def parse_discount_input(value: Any) -> int:
    """
    Lenient variant used for the checkout discount box. Reads the leading
    number the way a browser's parseFloat does ("20abc" is 20), so blank or
    non-numeric input means no discount. Negative amounts count as zero and
    oversized amounts are clamped to MAX_PRICE_PAISE, never dropped.
    """
    if value is None or isinstance(value, bool):
        return 0
    text = str(value)
    if _LEADING_INFINITY.match(text):
        return MAX_PRICE_PAISE
    match = _LEADING_NUMBER.match(text)
    if not match:
        return 0
    amount = Decimal(match.group(1))
    if amount <= 0:
        return 0
    if amount >= Decimal(MAX_PRICE_PAISE) / 100:
        return MAX_PRICE_PAISE
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
