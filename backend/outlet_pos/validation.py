from __future__ import annotations
from datetime import date
from decimal import Decimal, InvalidOperation

from outlet_pos.time_utils import parse_iso_date


# Maximum unit price: Rs 9,999,999.99
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = Decimal("9999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


def require_text(value, field: str, *, max_length: int | None = None) -> str:
    if value is None:
        raise ValidationError(f"{field} cannot be null")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} cannot be blank")
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def parse_int(value, field: str, *, minimum: int | None = None) -> int:
    """
    Strict integer parsing for request payloads and CLI input.

    Rejects floats, booleans, decimal strings and scientific notation.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def parse_decimal(value, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number")
    return result


def validate_unit_price(value: Decimal) -> Decimal:
    if value < 0:
        raise ValidationError("unit price must be non-negative")
    if value > MAX_PRICE:
        raise ValidationError(f"unit price cannot exceed {MAX_PRICE:,}")
    return value


def validate_discount_percent(value: Decimal) -> Decimal:
    if value < 0 or value > 100:
        raise ValidationError("discount must be between 0 and 100")
    return value


def parse_date(value, field: str, *, required: bool = True) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
