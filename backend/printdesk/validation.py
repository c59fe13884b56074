from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Maximum unit price / order total the Numeric(10, 2) columns can hold
MAX_AMOUNT = Decimal("99999999.99")

CENTS = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """
    404-level lookup failure.

    Raised both when a record does not exist and when it exists but belongs
    to someone else, so callers cannot probe for other customers' orders.
    """


class StateConflictError(ValueError):
    """409-level business rule conflict (e.g., editing a non-pending order)."""


class AuthorizationError(PermissionError):
    """403-level: authenticated, but the role does not allow the action."""


class DependencyFailure(RuntimeError):
    """503-level: storage or file upload failed; nothing was committed."""


def money(value: Decimal) -> Decimal:
    """Round an exact amount to cents, half-up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def coerce_int(field: str, value: Any) -> int:
    """
    Strict integer coercion for client input.

    Accepts ints and plain digit strings; rejects bools, floats, decimals
    and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_quantity(value: Any) -> int:
    """Order quantity: integer >= 1; missing means 1."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    qty = coerce_int("quantity", value)
    if qty < 1:
        raise ValidationError("quantity must be at least 1")
    return qty


def coerce_amount(field: str, value: Any) -> Decimal:
    """
    Non-negative monetary amount from JSON/form input.

    Numbers and numeric strings are accepted; bools, NaN/Infinity, blanks and
    negatives are rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        raw = str(value)
    elif isinstance(value, Decimal):
        raw = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")
    return money(amount)


def clean_text(value: Any) -> str:
    """Strip a free-text field; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def require_text(field: str, value: Any) -> str:
    text = clean_text(value)
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def coerce_flag(value: Any) -> bool:
    """Checkbox-style flag: JSON bools, or form values 'on'/'true'/'1'/'yes'."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"on", "true", "1", "yes"}
