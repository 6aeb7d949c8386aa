from __future__ import annotations
from datetime import datetime
from autoshop.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import EXPENSE_TYPES
from .services.transaction_engine import LineRequest


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_LINE_QUANTITY = 100_000


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


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer", details={key: "must be an integer"})
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(
                f"{key} must be a plain integer (scientific notation not allowed)",
                details={key: "must be a plain integer"},
            )
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)", details={key: "must be an integer"})
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer", details={key: "must be an integer"})
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal", details={key: "must be an integer"})
    raise ValidationError(f"{key} must be an integer", details={key: "must be an integer"})


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(
                    f"{col.key} must be an ISO-8601 datetime",
                    details={col.key: "must be an ISO-8601 datetime"},
                )
            if dt is None:
                raise ValidationError(
                    f"{col.key} must be an ISO-8601 datetime",
                    details={col.key: "must be an ISO-8601 datetime"},
                )
            return dt
        raise ValidationError(f"{col.key} must be a datetime", details={col.key: "must be a datetime"})

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
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={f: "is required" for f in missing},
            )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}", details={k: "is not allowed"})
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}", details={k: "is unknown"})

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", details={k: "cannot be null"})
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", details={k: "cannot be blank"})

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(
                    f"{k} exceeds max length {col.type.length}",
                    details={k: f"exceeds max length {col.type.length}"},
                )

        patch[k] = val

    return patch


def _check_price(key: str, value: int, *, allow_zero: bool = False) -> None:
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValidationError(f"{key} must be {bound}", details={key: f"must be {bound}"})
    if value > MAX_PRICE_CENTS:
        raise ValidationError(
            f"{key} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})",
            details={key: f"cannot exceed {MAX_PRICE_CENTS}"},
        )


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("cost_price_cents", "selling_price_cents"):
        if key in patch and patch[key] is not None:
            _check_price(key, patch[key])

    if "stock_quantity" in patch and patch["stock_quantity"] is not None:
        if patch["stock_quantity"] < 0:
            raise ValidationError(
                "stock_quantity must be >= 0",
                details={"stock_quantity": "must be >= 0"},
            )


def enforce_rules_expense(patch: dict) -> None:
    if "type" in patch and patch["type"] not in EXPENSE_TYPES:
        raise ValidationError(
            f"type must be one of {', '.join(EXPENSE_TYPES)}",
            details={"type": f"must be one of {', '.join(EXPENSE_TYPES)}"},
        )
    if "amount_cents" in patch and patch["amount_cents"] is not None:
        _check_price("amount_cents", patch["amount_cents"])


def _require_str(payload: dict, key: str, errors: dict, *, max_length: int) -> str | None:
    raw = payload.get(key)
    if raw is None:
        errors[key] = "is required"
        return None
    if not isinstance(raw, str):
        errors[key] = "must be a string"
        return None
    val = raw.strip()
    if not val:
        errors[key] = "cannot be blank"
        return None
    if len(val) > max_length:
        errors[key] = f"exceeds max length {max_length}"
        return None
    return val


def _parse_lines(
    raw_lines: Any,
    *,
    field: str,
    with_price: bool,
    errors: dict,
) -> list[LineRequest]:
    if not isinstance(raw_lines, list):
        errors[field] = "must be a list"
        return []

    lines: list[LineRequest] = []
    for i, raw in enumerate(raw_lines):
        path = f"{field}[{i}]"
        if not isinstance(raw, dict):
            errors[path] = "must be an object"
            continue

        allowed = {"product_id", "quantity", "price_at_sale_cents"} if with_price else {"product_id", "quantity"}
        for key in sorted(set(raw) - allowed):
            errors[f"{path}.{key}"] = "is not allowed"

        values = {}
        for key in ("product_id", "quantity") + (("price_at_sale_cents",) if with_price else ()):
            if key not in raw or raw[key] is None:
                errors[f"{path}.{key}"] = "is required"
                continue
            try:
                values[key] = _coerce_int(key, raw[key])
            except ValidationError:
                errors[f"{path}.{key}"] = "must be an integer"

        if "product_id" in values and values["product_id"] <= 0:
            errors[f"{path}.product_id"] = "must be a positive integer"
        if "quantity" in values and not 0 < values["quantity"] <= MAX_LINE_QUANTITY:
            errors[f"{path}.quantity"] = "must be a positive integer"
        if "price_at_sale_cents" in values and not 0 < values["price_at_sale_cents"] <= MAX_PRICE_CENTS:
            errors[f"{path}.price_at_sale_cents"] = "must be > 0"

        if not any(k.startswith(path) for k in errors):
            lines.append(
                LineRequest(
                    product_id=values["product_id"],
                    quantity=values["quantity"],
                    price_at_sale_cents=values.get("price_at_sale_cents"),
                )
            )
    return lines


def parse_sale_payload(payload: Any) -> list[LineRequest]:
    """
    Validate a sale create/update body: {"items": [{product_id, quantity, price_at_sale_cents}]}.

    At least one line is required. Errors are collected per field path
    (e.g. "items[1].quantity") before raising.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: dict = {}
    for key in sorted(set(payload) - {"items"}):
        errors[key] = "is not allowed"

    if "items" not in payload:
        errors["items"] = "is required"
        lines = []
    else:
        lines = _parse_lines(payload["items"], field="items", with_price=True, errors=errors)
        if "items" not in errors and not payload["items"]:
            errors["items"] = "must contain at least one item"

    if errors:
        raise ValidationError("Invalid sale payload", details=errors)
    return lines


SERVICE_FIELDS = {
    "customer_name",
    "car_plate_number",
    "service_type",
    "technician_notes",
    "total_price_cents",
    "parts_used",
}


def parse_service_payload(payload: Any) -> tuple[dict, list[LineRequest]]:
    """
    Validate a service create/update body.

    Returns (fields, parts). parts_used is optional and defaults to [].
    The same shape is required for create and update (full replacement).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: dict = {}
    for key in sorted(set(payload) - SERVICE_FIELDS):
        errors[key] = "is not allowed"

    fields = {
        "customer_name": _require_str(payload, "customer_name", errors, max_length=255),
        "car_plate_number": _require_str(payload, "car_plate_number", errors, max_length=32),
        "service_type": _require_str(payload, "service_type", errors, max_length=120),
    }

    notes = payload.get("technician_notes")
    if notes is not None and not isinstance(notes, str):
        errors["technician_notes"] = "must be a string"
    fields["technician_notes"] = (notes.strip() or None) if isinstance(notes, str) else None

    if payload.get("total_price_cents") is None:
        errors["total_price_cents"] = "is required"
    else:
        try:
            total = _coerce_int("total_price_cents", payload["total_price_cents"])
            _check_price("total_price_cents", total, allow_zero=True)
            fields["total_price_cents"] = total
        except ValidationError as e:
            errors.update(e.details)

    parts = _parse_lines(payload.get("parts_used", []), field="parts_used", with_price=False, errors=errors)

    if errors:
        raise ValidationError("Invalid service payload", details=errors)
    return fields, parts
