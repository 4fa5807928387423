from __future__ import annotations
from datetime import date, datetime
from orderapp.time_utils import parse_iso_date

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bound for any single monetary integer (unit price, line amount, order total).
# Keeps values inside a signed 64-bit column on every backend.
MAX_AMOUNT = 999_999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what callers are allowed to set (security boundary)
    - required_on_create: fields required when creating a row
    - create_only_fields: writable on create, rejected on update (immutable keys)
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)
    create_only_fields: frozenset[str] = field(default_factory=frozenset)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly: money and quantities are whole numbers
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_date(key: str, value: Any) -> date:
    try:
        d = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)")
    if d is None:
        raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)")
    return d


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    # Dates (accept date objects or YYYY-MM-DD strings)
    if isinstance(coltype, Date):
        if isinstance(value, (date, datetime, str)):
            return coerce_date(col.key, value)
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
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
    Validates + normalizes an incoming dict against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys; a key that is
    absent stays unchanged, a key present with None sets the column to NULL)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")
        if partial and k in policy.create_only_fields:
            raise ValidationError(f"{k} cannot be changed")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
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


def _check_amount(key: str, value: int, *, minimum: int = 0) -> None:
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if value > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "unit_price" in patch:
        _check_amount("unit_price", patch["unit_price"])


def enforce_rules_order(patch: dict) -> None:
    if "customer_id" in patch and patch["customer_id"] <= 0:
        raise ValidationError("customer_id must be a positive integer")
    if "total_amount" in patch:
        _check_amount("total_amount", patch["total_amount"])


def line_amount(quantity: int, unit_price: int) -> int:
    """Amount of one order line. The only place the rule is written down."""
    return quantity * unit_price


def enforce_rules_order_detail(patch: dict) -> None:
    # quantity > 0, unit_price >= 0, amount == quantity * unit_price
    if patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")
    _check_amount("unit_price", patch["unit_price"])

    expected = line_amount(patch["quantity"], patch["unit_price"])
    if patch.get("amount") is None:
        patch["amount"] = expected
    elif patch["amount"] != expected:
        raise ValidationError(
            f"amount must equal quantity * unit_price ({patch['quantity']} * {patch['unit_price']} = {expected})"
        )
    _check_amount("amount", patch["amount"])
