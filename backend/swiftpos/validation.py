from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from swiftpos.time_utils import parse_iso_datetime


# Maximum money value: 9,999,999.99
# This prevents nonsensical prices and overflow in reports
MAX_MONEY = 9_999_999.99

EXPENSE_CATEGORIES = ("Salary", "Rent", "Utilities", "Supply", "Other")
USER_ROLES = ("admin", "manager", "staff")

# Field kinds understood by _coerce_value
STR, TEXT, MONEY, INT, BOOL, DATETIME = "str", "text", "money", "int", "bool", "datetime"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


@dataclass(frozen=True)
class RecordPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to set, mapped to their kind (security boundary)
    - required_on_create: fields required for POST
    - nullable: fields that may be explicitly set to null
    - max_length: per-field limit for string fields
    """
    fields: dict[str, str]
    required_on_create: frozenset = frozenset()
    nullable: frozenset = frozenset()
    max_length: int = 255


PRODUCT_POLICY = RecordPolicy(
    fields={"name": STR, "price": MONEY, "costPrice": MONEY, "stock": INT, "category": STR},
    required_on_create=frozenset({"name"}),
    nullable=frozenset({"costPrice", "category"}),
)

CUSTOMER_POLICY = RecordPolicy(
    fields={"name": STR, "phone": STR, "email": STR},
    required_on_create=frozenset({"name", "phone"}),
    nullable=frozenset({"email"}),
)

EXPENSE_POLICY = RecordPolicy(
    fields={"description": STR, "amount": MONEY, "category": STR, "date": DATETIME},
    required_on_create=frozenset({"description", "amount", "category"}),
)

TRANSACTION_POLICY = RecordPolicy(
    fields={"customerName": STR, "date": DATETIME, "items": "items"},
)

USER_POLICY = RecordPolicy(
    fields={"name": STR, "username": STR, "password": TEXT, "role": STR},
    required_on_create=frozenset({"name", "username", "password", "role"}),
)

SETTINGS_POLICY = RecordPolicy(
    fields={
        "storeName": STR,
        "address": STR,
        "phone": STR,
        "email": STR,
        "footerMessage": TEXT,
        "autoBackup": BOOL,
        "googleDriveConnected": BOOL,
    },
    max_length=1000,
)

ITEM_FIELDS = ("productId", "productName", "quantity", "priceAtSale", "costAtSale")


def _coerce_value(key: str, kind: str, value: Any, policy: RecordPolicy):
    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if kind == INT:
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
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
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValidationError(f"{key} must be an integer, not a decimal")
        raise ValidationError(f"{key} must be an integer")

    # Money - non-negative, two decimals
    if kind == MONEY:
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{key} must be a number")
        if amount != amount or amount in (float("inf"), float("-inf")):
            raise ValidationError(f"{key} must be a finite number")
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_MONEY:
            raise ValidationError(f"{key} cannot exceed {MAX_MONEY:,.2f}")
        return round(amount, 2)

    # Booleans - JSON true/false only ("false" is a truthy string)
    if kind == BOOL:
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{key} must be true or false")

    # Datetimes (accept ISO-8601 strings; keep the string form)
    if kind == DATETIME:
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        if dt is None:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        return value.strip()

    if kind == "items":
        return _validate_items(value)

    # Strings; TEXT keeps surrounding whitespace (passwords, footers)
    text = str(value) if kind == TEXT else str(value).strip()
    limit = policy.max_length if kind == STR else policy.max_length * 4
    if len(text) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")
    return text


def _validate_items(items: Any) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    cleaned = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        missing = [f for f in ITEM_FIELDS if f not in item]
        if missing:
            raise ValidationError(f"items[{index}] missing fields: {', '.join(missing)}")
        quantity = _coerce_value("quantity", INT, item["quantity"], TRANSACTION_POLICY)
        if quantity is None or quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        price = _coerce_value("priceAtSale", MONEY, item["priceAtSale"], TRANSACTION_POLICY)
        cost = _coerce_value("costAtSale", MONEY, item["costAtSale"], TRANSACTION_POLICY)
        cleaned.append({
            "productId": str(item["productId"]),
            "productName": str(item["productName"]),
            "quantity": quantity,
            "priceAtSale": price,
            "costAtSale": cost,
            "subtotal": round(price * quantity, 2),
        })
    return cleaned


LINE_POLICY = RecordPolicy(fields={})


def coerce_field(key: str, kind: str, value: Any) -> Any:
    """Coerce a single value outside a record payload (cart lines); None passes through."""
    return _coerce_value(key, kind, value, LINE_POLICY)


def validate_payload(*, payload: Any, policy: RecordPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a RecordPolicy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        if raw is None:
            if k not in policy.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, policy.fields[k], raw, policy)

        # Blank string check for required text fields
        if k in policy.required_on_create and isinstance(val, str) and val == "":
            raise ValidationError(f"{k} cannot be blank")

        patch[k] = val

    return patch


def validate_bulk(*, payload: Any, policy: RecordPolicy) -> list[dict]:
    """Validate a list of create payloads; errors name the failing row."""
    if not isinstance(payload, list):
        raise ValidationError("Expected a list of records")
    rows = []
    for index, row in enumerate(payload):
        try:
            rows.append(validate_payload(payload=row, policy=policy, partial=False))
        except ValidationError as e:
            raise ValidationError(f"Row {index + 1}: {e}")
    return rows


def enforce_rules_expense(patch: dict) -> None:
    """
    Business rules that are not captured by the field kinds alone.
    Keep these small and centralized.
    """
    if "category" in patch and patch["category"] not in EXPENSE_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(EXPENSE_CATEGORIES)}")
    if "amount" in patch and patch["amount"] is not None and patch["amount"] <= 0:
        raise ValidationError("amount must be > 0")


def enforce_rules_user(patch: dict) -> None:
    if "role" in patch and patch["role"] not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
    if "password" in patch and not patch["password"]:
        raise ValidationError("password cannot be blank")
