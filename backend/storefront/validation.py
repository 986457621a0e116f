from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate payment reference)."""


class NotFoundError(LookupError):
    """404-level missing entity."""


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

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
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

    Keys in the payload that the policy does not list are ignored, so callers
    may validate a subset of a wider request body.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}

    for k in policy.writable_fields:
        if k not in payload:
            continue
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")
        col = cols[k]
        raw = payload[k]

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


def require_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        stripped = value.strip() if isinstance(value, str) else ""
        # isdigit alone accepts superscripts and other non-decimal digits
        if stripped.isascii() and stripped.isdigit():
            value = int(stripped)
        else:
            raise ValidationError(f"{field} must be a positive integer")
    if value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value


def parse_amount_cents(value: Any, field: str = "amount") -> int:
    """
    Convert a decimal amount ("250.00", 250, 250.5) to integer cents.

    Floats are routed through str() so 250.1 becomes Decimal("250.1"), not its
    binary expansion. More than two fractional digits is rejected rather than
    rounded.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal amount")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a decimal amount")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > Decimal(MAX_AMOUNT_CENTS) / 100:
        raise ValidationError(f"{field} cannot exceed {format_cents(MAX_AMOUNT_CENTS)}")

    cents = amount * 100
    if cents != cents.to_integral_value():
        raise ValidationError(f"{field} cannot have more than two decimal places")
    cents = int(cents)
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {format_cents(MAX_AMOUNT_CENTS)}")
    return cents


def format_cents(cents: int | None) -> str | None:
    if cents is None:
        return None
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    return f"{sign}{whole}.{frac:02d}"


def validate_shipping_address(value: Any) -> dict:
    """Shipping address must be a non-empty JSON object, never a bare string."""
    if not isinstance(value, dict) or not value:
        raise ValidationError("Valid shipping address is required")
    cleaned = {}
    for key, raw in value.items():
        if isinstance(raw, (dict, list)):
            raise ValidationError(f"shipping_address.{key} must be a scalar value")
        cleaned[str(key)] = raw.strip() if isinstance(raw, str) else raw
    return cleaned
