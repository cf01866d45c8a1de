from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from stockdesk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from flask import request
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta
from werkzeug.routing import IntegerConverter


# Maximum price: 9,999,999,999.99 (fits Numeric(12, 2))
MAX_PRICE = Decimal("9999999999.99")
CENTS = Decimal("0.01")

# Signed 64-bit range of integer columns (SQLite INTEGER, BIGINT)
MIN_DB_INTEGER = -2 ** 63
MAX_DB_INTEGER = 2 ** 63 - 1


class ApiError(Exception):
    """Base for errors that map onto the {"error": message} envelope."""
    status_code = 500


class ValidationError(ApiError, ValueError):
    """400-level input problem."""
    status_code = 400


class AuthenticationError(ApiError):
    """401: no session, or the session token failed verification."""
    status_code = 401


class PermissionDeniedError(ApiError):
    """403: the principal lacks the required role."""
    status_code = 403


class NotFoundError(ApiError):
    """404: id absent OR owned by another user (never distinguished)."""
    status_code = 404


class ConflictError(ApiError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class RegistrationClosedError(ApiError):
    """410: self-registration is switched off."""
    status_code = 410


class RateLimitedError(ApiError):
    """429: fixed-window limit exceeded for this client."""
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


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


def _check_integer_range(key: str, value: int) -> int:
    if not MIN_DB_INTEGER <= value <= MAX_DB_INTEGER:
        raise ValidationError(f"{key} is out of range")
    return value


def coerce_integer(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return _check_integer_range(key, value)
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
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
        return _check_integer_range(key, parsed)
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


class RecordIdConverter(IntegerConverter):
    """<int:...> URL converter capped at the integer column range; larger ids do not match (404)."""

    def __init__(self, map, fixed_digits=0, min=None, max=MAX_DB_INTEGER, signed=False):
        super().__init__(map, fixed_digits=fixed_digits, min=min, max=max, signed=signed)


def coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, str, Decimal)):
        try:
            # str() first so floats like 0.1 keep their short repr
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{key} must be a finite number")
        try:
            return amount.quantize(CENTS)
        except InvalidOperation:
            raise ValidationError(f"{key} is out of range")
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_integer(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

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

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
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
        missing = sorted(f for f in required if payload.get(f) is None)
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


def pop_record_id(payload: dict, path_id: int | None) -> int:
    """
    PUT/DELETE accept the record id in the path or as "id" in the body.
    The body key is removed so the remaining payload can be validated.
    """
    body_id = payload.pop("id", None)
    record_id = path_id if path_id is not None else body_id
    if record_id is None:
        raise ValidationError("id is required")
    return coerce_integer("id", record_id)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    if "quantity" in patch and patch["quantity"] is not None:
        if patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")


def enforce_rules_invoice(patch: dict) -> None:
    if "quantity" in patch:
        if patch["quantity"] is None or patch["quantity"] <= 0:
            raise ValidationError("quantity must be > 0")

    if "unit_price" in patch:
        if patch["unit_price"] is None or patch["unit_price"] < 0:
            raise ValidationError("unit_price must be >= 0")
        if patch["unit_price"] > MAX_PRICE:
            raise ValidationError(f"unit_price cannot exceed {MAX_PRICE}")


def json_payload() -> dict:
    """
    The request's JSON body as a dict ({} when there is no body).

    Raises ValidationError when a body is present but is not a JSON object.
    """
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError("Invalid JSON payload")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data
