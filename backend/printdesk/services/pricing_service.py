# Overview: Service-layer operations for pricing; the pure price calculation plus the pricing table row.

"""
Pricing Engine

compute_total() is a pure function of its arguments: no database access, no
rounding. Callers that persist a total round it with validation.money().

    total = base_price * paper_multiplier * quantity
          + laminating * quantity      (lamination add-on, non-Laminating only)

Photo Development and Laminating are priced per piece and ignore paper size.
The lamination add-on is never scaled by paper size.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Pricing
from ..models.pricing import DEFAULT_PRICES, PRICE_FIELDS
from ..models.orders import (
    SERVICE_PRINT,
    SERVICE_PHOTOCOPY,
    SERVICE_SCANNING,
    SERVICE_PHOTO_DEVELOPMENT,
    SERVICE_LAMINATING,
    SERVICES,
)
from ..time_utils import utcnow
from ..validation import (
    ValidationError,
    StateConflictError,
    DependencyFailure,
    coerce_amount,
    coerce_quantity,
    coerce_flag,
    money,
)
from .concurrency import run_with_retry


PAPER_MULTIPLIERS = {
    "A4": Decimal("1.0"),
    "Short": Decimal("1.0"),
    "Long": Decimal("1.2"),
}

COLOR_OPTION_COLOR = "color"
COLOR_OPTION_BW = "bw"

_SERVICES_BY_KEY = {name.lower(): name for name in SERVICES}


@dataclass(frozen=True)
class PriceTable:
    """Snapshot of the six unit prices, detached from the database row."""
    print_bw: Decimal
    print_color: Decimal
    photocopying: Decimal
    scanning: Decimal
    photo_development: Decimal
    laminating: Decimal

    @classmethod
    def from_model(cls, pricing: Pricing) -> "PriceTable":
        return cls(**{field: Decimal(getattr(pricing, field)) for field in PRICE_FIELDS})

    @classmethod
    def defaults(cls) -> "PriceTable":
        return cls(**DEFAULT_PRICES)


def canonical_service(service: str | None) -> str | None:
    """Map any casing of a known service to its canonical name, else None."""
    if not service:
        return None
    return _SERVICES_BY_KEY.get(service.strip().lower())


def paper_multiplier(paper_size: str | None) -> Decimal:
    return PAPER_MULTIPLIERS.get(paper_size or "", Decimal("1.0"))


def base_unit_price(service: str, color_option: str | None, table: PriceTable) -> Decimal:
    """
    Unit price for a service before paper size and quantity.

    Unknown services price at 0; order creation rejects them before this
    point, so a 0 here means an upstream validation gap, not a discount.
    """
    name = canonical_service(service)
    if name == SERVICE_PRINT:
        return table.print_color if color_option == COLOR_OPTION_COLOR else table.print_bw
    if name == SERVICE_PHOTOCOPY:
        return table.photocopying
    if name == SERVICE_SCANNING:
        return table.scanning
    if name == SERVICE_PHOTO_DEVELOPMENT:
        return table.photo_development
    if name == SERVICE_LAMINATING:
        return table.laminating
    return Decimal("0")


def compute_total(
    service: str,
    quantity: int,
    color_option: str | None,
    paper_size: str | None,
    add_lamination: bool,
    table: PriceTable,
) -> Decimal:
    name = canonical_service(service)

    if name in (SERVICE_PHOTO_DEVELOPMENT, SERVICE_LAMINATING):
        multiplier = Decimal("1.0")
    else:
        multiplier = paper_multiplier(paper_size)

    total = base_unit_price(service, color_option, table) * multiplier * quantity

    if add_lamination and name != SERVICE_LAMINATING:
        total += table.laminating * quantity

    return total


def get_pricing() -> Pricing:
    """Return the live pricing row, creating it with defaults on first read."""
    pricing = db.session.query(Pricing).order_by(Pricing.id.asc()).first()
    if pricing is None:
        pricing = Pricing(**DEFAULT_PRICES, updated_at=utcnow())
        db.session.add(pricing)
        db.session.commit()
    return pricing


def get_price_table() -> PriceTable:
    return PriceTable.from_model(get_pricing())


def set_pricing(values: Mapping[str, Any], *, actor_user_id: int | None = None) -> Pricing:
    """
    Replace all six unit prices.

    Every key is required; each value must be a finite, non-negative number.
    Nothing is written unless all six validate.
    """
    if not isinstance(values, Mapping):
        raise ValidationError("Invalid pricing payload")

    missing = [field for field in PRICE_FIELDS if field not in values]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned = {field: coerce_amount(field, values[field]) for field in PRICE_FIELDS}

    def _op() -> Pricing:
        pricing = get_pricing()
        for field, amount in cleaned.items():
            setattr(pricing, field, amount)
        pricing.updated_by_user_id = actor_user_id
        pricing.updated_at = utcnow()
        db.session.commit()
        return pricing

    try:
        return run_with_retry(_op)
    except StaleDataError:
        db.session.rollback()
        raise StateConflictError("Pricing was changed by another request; reload and try again")
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DependencyFailure("Could not save pricing") from exc


def quote(service: str, quantity: Any = None, options: Mapping[str, Any] | None = None) -> dict:
    """Price preview against the current table; nothing is persisted."""
    name = canonical_service(service)
    if name is None:
        raise ValidationError(f"Unknown service '{service}'. Must be one of: {', '.join(SERVICES)}")
    qty = coerce_quantity(quantity)
    options = options or {}

    color_option = options.get("color_option") or COLOR_OPTION_BW
    paper_size = options.get("paper_size") or "A4"
    add_lamination = coerce_flag(options.get("add_lamination"))

    table = get_price_table()
    total = compute_total(name, qty, color_option, paper_size, add_lamination, table)
    size_invariant = name in (SERVICE_PHOTO_DEVELOPMENT, SERVICE_LAMINATING)

    return {
        "service": name,
        "quantity": qty,
        "unit_price": f"{base_unit_price(name, color_option, table):.2f}",
        "paper_multiplier": "1.0" if size_invariant else str(paper_multiplier(paper_size)),
        "add_lamination": add_lamination and name != SERVICE_LAMINATING,
        "total_amount": f"{money(total):.2f}",
    }
