from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import Product, Warehouse, Distributor


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "ean", "unit", "mrp_cents", "selling_price_cents"},
    required_on_create={"sku", "name", "ean", "unit", "mrp_cents", "selling_price_cents"},
)

# Identity fields are fixed after creation
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "mrp_cents", "selling_price_cents"},
)

WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "email"},
    required_on_create={"name", "location", "email"},
)

DISTRIBUTOR_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "city", "warehouse_id"},
    required_on_create={"name", "email", "city", "warehouse_id"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, name: str) -> int:
    """Strict integer coercion: ints and plain digit strings only."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

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
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
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


def enforce_rules_product(patch: dict) -> None:
    """Price range rules not captured by column metadata."""
    for field in ("mrp_cents", "selling_price_cents"):
        if field in patch and patch[field] is not None:
            price = patch[field]
            if price < 0:
                raise ValidationError(f"{field} must be >= 0")
            if price > MAX_PRICE_CENTS:
                raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def enforce_rules_email(patch: dict) -> None:
    if "email" in patch:
        email = patch["email"].lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("email must be a valid email address")
        patch["email"] = email


def validate_product(payload: dict, *, partial: bool) -> dict:
    policy = PRODUCT_UPDATE_POLICY if partial else PRODUCT_POLICY
    patch = validate_payload(model=Product, payload=payload, policy=policy, partial=partial)
    enforce_rules_product(patch)
    return patch


def validate_warehouse(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Warehouse, payload=payload, policy=WAREHOUSE_POLICY, partial=partial)
    enforce_rules_email(patch)
    return patch


def validate_distributor(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Distributor, payload=payload, policy=DISTRIBUTOR_POLICY, partial=partial)
    enforce_rules_email(patch)
    return patch


def split_fields(payload: dict | None, *names: str) -> tuple[dict, dict]:
    """Pull non-model fields (e.g. password) out of a payload before validate_payload."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    extracted = {name: payload.pop(name, None) for name in names}
    return payload, extracted
