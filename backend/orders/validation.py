# Overview: Request payload and query-string parsing for API routes.

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError
from .services.dto import AddItemRequest


# Maximum unit price: 9,999,999,999.99 (fits Numeric(12, 2))
MAX_UNIT_PRICE = Decimal("9999999999.99")


def require_json_object(payload: Any) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def coerce_int(field: str, value: Any) -> int:
    """
    Strict integer coercion.

    Accepts ints (not bools) and plain digit strings. Rejects floats,
    decimal points and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(
                f"{field} must be a plain integer (scientific notation not allowed)",
                details={"field": field},
            )
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)", details={"field": field})
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", details={"field": field})
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal", details={"field": field})
    raise ValidationError(f"{field} must be an integer", details={"field": field})


def coerce_decimal(field: str, value: Any) -> Decimal:
    """Numbers and numeric strings -> Decimal. Floats go through str() first."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a number", details={"field": field})
    try:
        result = Decimal(value.strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", details={"field": field})
    return result


def require_string(payload: dict, field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value


def parse_add_item_payload(payload: Any) -> AddItemRequest:
    """
    {name, quantity, unitPrice} -> AddItemRequest.

    Range rules (quantity > 0, price >= 0) stay with OrderItem; only the
    shape and the column ceiling are checked here.
    """
    payload = require_json_object(payload)

    missing = [f for f in ("name", "quantity", "unitPrice") if f not in payload]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    name = payload["name"]
    if not isinstance(name, str):
        raise ValidationError("name must be a string", details={"field": "name"})

    quantity = coerce_int("quantity", payload["quantity"])
    unit_price = coerce_decimal("unitPrice", payload["unitPrice"])
    if unit_price > MAX_UNIT_PRICE:
        raise ValidationError(f"unitPrice cannot exceed {MAX_UNIT_PRICE}", details={"field": "unitPrice"})

    return AddItemRequest(name=name, quantity=quantity, unit_price=unit_price)


def parse_register_payload(payload: Any) -> tuple[str, str, str | None]:
    payload = require_json_object(payload)
    email = require_string(payload, "email")
    password = payload.get("password")
    full_name = payload.get("fullName")
    if full_name is not None:
        if not isinstance(full_name, str):
            raise ValidationError("fullName must be a string", details={"field": "fullName"})
        full_name = full_name.strip() or None
    return email, password, full_name


def parse_login_payload(payload: Any) -> tuple[Any, Any]:
    # Shape problems fall through to the service so they fail as bad credentials.
    payload = require_json_object(payload)
    return payload.get("email"), payload.get("password")


def parse_paging_args(args, default_page_size: int = 20) -> dict:
    """
    page, pageSize, sort, status query params -> page_for_user kwargs.

    Out-of-range numbers are normalised by the service; non-integers fail here.
    """
    page = args.get("page")
    page_size = args.get("pageSize")
    return {
        "page": coerce_int("page", page) if page not in (None, "") else 1,
        "page_size": coerce_int("pageSize", page_size) if page_size not in (None, "") else default_page_size,
        "sort": args.get("sort") or None,
        "status": args.get("status") or None,
    }
