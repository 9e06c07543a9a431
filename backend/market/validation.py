from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import Boolean, Integer, JSON, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Whole won; keeps prices inside a 32-bit INTEGER column
MAX_PRICE = 999_999_999

SEAT_TEXT_KEYS = ("grade", "sector")
SEAT_NUMBER_KEYS = ("row", "number")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., item already sold, own item)."""


class NotFoundError(LookupError):
    """404-level: a referenced entity does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a route lets clients write for one model:
    - writable_fields: allowlist; anything else in the body is rejected
    - required_on_create: must be present and non-empty on create
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass but never a valid id or amount
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # JSON encoders send 150000.0 for whole amounts
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        if "." in text:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        if "e" in text.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        try:
            return int(text)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    raise ValidationError(f"{key} must be an integer")


def _coerce_json_object(key: str, value: Any) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{key} must be an object")
    return value


def _coerce_text(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


def _coercer_for(coltype) -> Callable[[str, Any], Any] | None:
    if isinstance(coltype, Integer):
        return _coerce_int
    if isinstance(coltype, Boolean):
        return lambda _key, value: bool(value)
    if isinstance(coltype, JSON):
        return _coerce_json_object
    if isinstance(coltype, (String, Text)):
        return _coerce_text
    return None


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON body against a model's columns and a policy; return the
    cleaned patch (writable fields only, values coerced to column types).

    partial=False is create semantics: every required_on_create field must be
    present and not null/blank. partial=True only checks the keys supplied.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns[key]

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        coerce = _coercer_for(column.type)
        value = coerce(key, raw) if coerce else raw

        if isinstance(value, str):
            if value == "" and not column.nullable:
                raise ValidationError(f"{key} cannot be blank")
            length = getattr(column.type, "length", None)
            if length and len(value) > length:
                raise ValidationError(f"{key} exceeds max length {length}")

        patch[key] = value

    return patch


def _enforce_price(patch: dict, key: str) -> None:
    price = patch.get(key)
    if price is None:
        return
    if price <= 0:
        raise ValidationError(f"{key} must be > 0")
    if price > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,}")


def _enforce_seat_info(seat_info: dict) -> None:
    """Known seat keys must be well-typed; extra keys are stored as given."""
    for key in SEAT_TEXT_KEYS:
        if key in seat_info:
            value = seat_info[key]
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"seat_info.{key} must be a non-empty string")
    for key in SEAT_NUMBER_KEYS:
        if key in seat_info:
            value = seat_info[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"seat_info.{key} must be a positive integer")


def enforce_rules_item(patch: dict) -> None:
    _enforce_price(patch, "price")


def enforce_rules_ticket(patch: dict) -> None:
    _enforce_price(patch, "original_price")
    if patch.get("seat_info") is not None:
        _enforce_seat_info(patch["seat_info"])


def enforce_rules_transaction(patch: dict) -> None:
    _enforce_price(patch, "final_price")


def enforce_rules_review(patch: dict) -> None:
    rating = patch.get("rating")
    if rating is None or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
