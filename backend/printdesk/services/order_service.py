# Overview: Service-layer operations for orders; create/edit/status/delete with pricing and archival.

"""
PrintDesk Order Lifecycle Service

================================================================================
STATE MACHINE:
    pending -> in-progress -> completed
    pending -> cancelled
    in-progress -> cancelled

    pending:     customer may still edit (fields, options, files); repriced on edit
    in-progress: staff is working on it; customer edits are refused
    completed:   terminal
    cancelled:   terminal

RULES:
1. Only pending orders can be edited by customers.
2. total_amount is fixed at create/edit time; later price changes never touch it.
3. Status changes never touch total, specifications or files.
4. Deletion always archives first; a failed archive leaves the order in place.
5. Customers only ever see their own orders; a foreign order is "not found".

Status edges are enforced only when ENFORCE_STATUS_TRANSITIONS is set;
otherwise admins may move an order between any two statuses.
================================================================================
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any, Iterable, Mapping

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Order, DeletedOrder, User
from ..models.orders import (
    ORDER_STATUSES,
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    DELIVERY_DELIVERY,
    DELIVERY_OPTIONS,
    PAYMENT_CASH,
    SERVICES,
)
from ..time_utils import epoch_millis, utcnow
from ..validation import (
    ValidationError,
    NotFoundError,
    StateConflictError,
    AuthorizationError,
    DependencyFailure,
    clean_text,
    coerce_flag,
    coerce_int,
    coerce_quantity,
    money,
    require_text,
)
from .archive_service import archive_order
from .concurrency import lock_for_update, run_with_retry
from .identity_service import enrich_orders
from .pricing_service import canonical_service, compute_total, get_price_table
from .specification_codec import (
    BLACK_AND_WHITE,
    COLOR_OPTIONS,
    PAPER_SIZES,
    OrderOptions,
    decode_specifications,
    encode_specifications,
)
from .storage_service import FileStorage, Upload, store_uploads


ORDER_ID_PREFIX = "ORD"
ORDER_ID_ATTEMPTS = 10

DEFAULT_OPTIONS = OrderOptions(paper_size="A4", color_option=BLACK_AND_WHITE, photo_size="A4")

STATUS_TRANSITIONS = {
    (STATUS_PENDING, STATUS_IN_PROGRESS),
    (STATUS_IN_PROGRESS, STATUS_COMPLETED),
    (STATUS_PENDING, STATUS_CANCELLED),
    (STATUS_IN_PROGRESS, STATUS_CANCELLED),
}

_PAPER_SIZE_VALUES = {size.lower(): size for size in PAPER_SIZES}


# =============================================================================
# VALIDATION HELPERS
# =============================================================================

def _require_admin(actor: User) -> None:
    if actor is None or not actor.is_admin:
        raise AuthorizationError("Admin access required")


def _require_service(service: Any) -> str:
    name = canonical_service(service if isinstance(service, str) else None)
    if name is None:
        raise ValidationError(f"Invalid service. Must be one of: {', '.join(SERVICES)}")
    return name


def validate_status(status: Any) -> str:
    value = clean_text(status).lower()
    if value not in ORDER_STATUSES:
        raise ValidationError(f"Invalid status '{status}'. Must be one of: {', '.join(ORDER_STATUSES)}")
    return value


def can_transition(from_status: str, to_status: str) -> bool:
    """Directed edges of the order state machine; same-status is allowed as a no-op."""
    if from_status == to_status:
        return True
    return (from_status, to_status) in STATUS_TRANSITIONS


def clean_options(raw: Mapping[str, Any] | None) -> dict:
    """
    Validate submitted option values.

    Only keys that were supplied (non-blank) are returned, so the result can
    be merged over stored options on edit.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("options must be an object")

    cleaned: dict[str, Any] = {}

    paper_size = clean_text(raw.get("paper_size"))
    if paper_size:
        if paper_size.lower() not in _PAPER_SIZE_VALUES:
            raise ValidationError(f"Invalid paper_size. Must be one of: {', '.join(PAPER_SIZES)}")
        cleaned["paper_size"] = _PAPER_SIZE_VALUES[paper_size.lower()]

    color_option = clean_text(raw.get("color_option")).lower()
    if color_option:
        if color_option not in COLOR_OPTIONS:
            raise ValidationError(f"Invalid color_option. Must be one of: {', '.join(COLOR_OPTIONS)}")
        cleaned["color_option"] = color_option

    photo_size = clean_text(raw.get("photo_size"))
    if photo_size:
        if "\n" in photo_size or "\r" in photo_size:
            raise ValidationError("photo_size must be a single line")
        cleaned["photo_size"] = photo_size

    if "add_lamination" in raw and raw.get("add_lamination") is not None:
        cleaned["add_lamination"] = coerce_flag(raw.get("add_lamination"))

    return cleaned


def _with_defaults(options: OrderOptions) -> OrderOptions:
    return OrderOptions(
        paper_size=options.paper_size or DEFAULT_OPTIONS.paper_size,
        color_option=options.color_option or DEFAULT_OPTIONS.color_option,
        photo_size=options.photo_size or DEFAULT_OPTIONS.photo_size,
        add_lamination=options.add_lamination,
    )


def _clean_delivery(option: Any, address: Any) -> tuple[str, str | None]:
    value = clean_text(option).lower()
    if value not in DELIVERY_OPTIONS:
        raise ValidationError(f"Invalid delivery_option. Must be one of: {', '.join(DELIVERY_OPTIONS)}")
    if value == DELIVERY_DELIVERY:
        return value, require_text("delivery_address", address)
    return value, None


def _check_version(order: Order, expected_version: Any) -> None:
    if expected_version is None:
        return
    if coerce_int("expected_version", expected_version) != order.version_id:
        raise StateConflictError("Order was modified by another request; reload and try again")


def _ensure_editable(order: Order, expected_version: Any) -> None:
    if order.status != STATUS_PENDING:
        raise StateConflictError("Cannot edit non-pending order")
    _check_version(order, expected_version)


def _price(service: str, quantity: int, options: OrderOptions) -> Decimal:
    table = get_price_table()
    return money(compute_total(
        service,
        quantity,
        options.color_option,
        options.paper_size,
        options.add_lamination,
        table,
    ))


def _stored_options(order: Order) -> tuple[OrderOptions, str]:
    """Structured options and note for an order; decodes the blob for legacy rows."""
    if order.options is not None:
        return OrderOptions.from_dict(order.options), order.notes or ""
    decoded = decode_specifications(order.specifications)
    return decoded.options, decoded.note


def _persist(op, *, action: str):
    """Run a write through run_with_retry and map storage errors to the domain taxonomy."""
    try:
        return run_with_retry(op)
    except StaleDataError:
        db.session.rollback()
        raise StateConflictError("Order was modified by another request; reload and try again")
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DependencyFailure(f"Could not {action}") from exc


# =============================================================================
# LOOKUPS
# =============================================================================

def _scoped_query(actor: User):
    query = db.session.query(Order)
    if not actor.is_admin:
        query = query.filter(Order.user_id == actor.id)
    return query


def _find_order(actor: User, order_ref: Any, *, lock: bool = False) -> Order:
    ref = clean_text(order_ref)
    if not ref:
        raise NotFoundError("Order not found")

    query = _scoped_query(actor)
    if actor.is_admin and ref.isdigit():
        query = query.filter(db.or_(Order.order_id == ref, Order.id == int(ref)))
    else:
        query = query.filter(Order.order_id == ref)

    if lock:
        query = lock_for_update(query)

    order = query.first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_order(actor: User, order_ref: Any) -> Order:
    """
    Fetch one order visible to `actor`.

    Customers can only reach their own orders by external order_id; admins
    can also use the internal numeric id. Foreign orders raise NotFoundError.
    """
    return _find_order(actor, order_ref)


def list_orders(actor: User, status: Any = None) -> list[dict]:
    """
    Serialized orders visible to `actor`, newest first.

    Admin listings are enriched with customer name/email where the cached
    copy is blank.
    """
    query = _scoped_query(actor)
    if status is not None and clean_text(status):
        query = query.filter(Order.status == validate_status(status))

    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    if actor.is_admin:
        return enrich_orders(orders)
    return [order.to_dict() for order in orders]


def dashboard_stats(actor: User) -> dict:
    """Order counts and completed spend, scoped like list_orders."""
    query = _scoped_query(actor)

    total = query.count()
    pending = query.filter(Order.status == STATUS_PENDING).count()
    completed = query.filter(Order.status == STATUS_COMPLETED).count()

    spent_query = db.session.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(
        Order.status == STATUS_COMPLETED
    )
    if not actor.is_admin:
        spent_query = spent_query.filter(Order.user_id == actor.id)
    total_spent = Decimal(spent_query.scalar() or 0)

    return {
        "total_orders": total,
        "pending_orders": pending,
        "completed_orders": completed,
        "total_spent": f"{money(total_spent):.2f}",
    }


def list_deleted_orders(actor: User) -> list[DeletedOrder]:
    _require_admin(actor)
    return (
        db.session.query(DeletedOrder)
        .order_by(DeletedOrder.deleted_at.desc(), DeletedOrder.id.desc())
        .all()
    )


# =============================================================================
# MUTATIONS
# =============================================================================

def generate_order_id() -> str:
    """`ORD-<epoch-ms>-<nnn>`, checked against existing orders and archives."""
    for _ in range(ORDER_ID_ATTEMPTS):
        candidate = f"{ORDER_ID_PREFIX}-{epoch_millis()}-{secrets.randbelow(1000):03d}"
        taken = (
            db.session.query(Order.id).filter(Order.order_id == candidate).first()
            or db.session.query(DeletedOrder.id).filter(DeletedOrder.order_id == candidate).first()
        )
        if not taken:
            return candidate
    raise DependencyFailure("Could not allocate a unique order id")


def create_order(
    actor: User,
    *,
    service: Any,
    quantity: Any = None,
    options: Mapping[str, Any] | None = None,
    note: Any = None,
    delivery_option: Any = None,
    delivery_address: Any = None,
    uploads: Iterable[Upload] | None = None,
    storage: FileStorage | None = None,
) -> Order:
    """
    Validate, price and persist a new pending order.

    Uploads are stored before anything is written; if any upload fails the
    DependencyFailure propagates and no order exists afterwards.
    """
    name = _require_service(service)
    qty = coerce_quantity(quantity)
    text = require_text("specifications", note)
    delivery, address = _clean_delivery(delivery_option, delivery_address)
    opts = _with_defaults(OrderOptions().merged(clean_options(options))).relevant_to(name)

    files = store_uploads(uploads, storage)

    def _op() -> Order:
        now = utcnow()
        order = Order(
            order_id=generate_order_id(),
            user_id=actor.id,
            user_name=actor.full_name,
            user_email=actor.email,
            service=name,
            quantity=qty,
            specifications=encode_specifications(name, opts, text),
            options=opts.to_dict(),
            notes=text,
            delivery_option=delivery,
            delivery_address=address,
            status=STATUS_PENDING,
            payment_method=PAYMENT_CASH,
            total_amount=_price(name, qty, opts),
            files=files,
            created_at=now,
            updated_at=now,
        )
        db.session.add(order)
        db.session.commit()
        return order

    return _persist(_op, action="save order")


def update_order(
    actor: User,
    order_ref: Any,
    *,
    service: Any = None,
    quantity: Any = None,
    options: Mapping[str, Any] | None = None,
    note: Any = None,
    delivery_option: Any = None,
    delivery_address: Any = None,
    uploads: Iterable[Upload] | None = None,
    storage: FileStorage | None = None,
    expected_version: Any = None,
) -> Order:
    """
    Edit a pending order and reprice it against the current pricing table.

    Omitted fields keep their stored values. Submitted options are merged
    over the stored options; a blank note keeps the stored note. New files
    replace the file list; no new files keeps it.
    """
    # Cheap pre-check so uploads are not stored for an order that cannot be edited
    _ensure_editable(_find_order(actor, order_ref), expected_version)

    changes = clean_options(options)
    new_service = _require_service(service) if clean_text(service) else None
    new_quantity = coerce_quantity(quantity) if clean_text(quantity) else None
    new_note = clean_text(note)
    new_files = store_uploads(uploads, storage)

    def _op() -> Order:
        order = _find_order(actor, order_ref, lock=True)
        _ensure_editable(order, expected_version)

        stored_opts, stored_note = _stored_options(order)
        name = new_service or order.service
        qty = new_quantity or order.quantity
        opts = _with_defaults(stored_opts.merged(changes)).relevant_to(name)
        text = new_note or stored_note

        if clean_text(delivery_option):
            delivery, address = _clean_delivery(
                delivery_option,
                delivery_address if clean_text(delivery_address) else order.delivery_address,
            )
        else:
            delivery = order.delivery_option
            address = order.delivery_address
            if delivery == DELIVERY_DELIVERY and clean_text(delivery_address):
                address = clean_text(delivery_address)

        total = _price(name, qty, opts)

        order.service = name
        order.quantity = qty
        order.options = opts.to_dict()
        order.notes = text
        order.specifications = encode_specifications(name, opts, text)
        order.delivery_option = delivery
        order.delivery_address = address
        order.total_amount = total
        if new_files:
            order.files = new_files
        order.updated_at = utcnow()

        db.session.commit()
        return order

    return _persist(_op, action="update order")


def set_status(actor: User, order_ref: Any, new_status: Any, *, expected_version: Any = None) -> Order:
    """
    Admin status change.

    Never touches total, specifications or files. With
    ENFORCE_STATUS_TRANSITIONS set, only the edges in STATUS_TRANSITIONS are
    allowed and anything else raises StateConflictError.
    """
    _require_admin(actor)
    target = validate_status(new_status)
    _find_order(actor, order_ref)

    def _op() -> Order:
        order = _find_order(actor, order_ref, lock=True)
        _check_version(order, expected_version)

        if order.status == target:
            return order

        if current_app.config.get("ENFORCE_STATUS_TRANSITIONS") and not can_transition(order.status, target):
            raise StateConflictError(f"Cannot change status from {order.status} to {target}")

        order.status = target
        order.updated_at = utcnow()
        db.session.commit()
        return order

    return _persist(_op, action="update order status")


def delete_order(actor: User, order_ref: Any) -> DeletedOrder:
    """
    Archive then delete an order, in any status, as one transaction.

    Any failure while archiving rolls the whole transaction back and raises
    DependencyFailure; the live order is still there afterwards.
    """
    _require_admin(actor)
    _find_order(actor, order_ref)

    def _op() -> DeletedOrder:
        order = _find_order(actor, order_ref, lock=True)
        try:
            snapshot = archive_order(order, deleted_by_user_id=actor.id)
            db.session.commit()
        except SQLAlchemyError:
            raise
        except Exception as exc:
            db.session.rollback()
            raise DependencyFailure("Could not archive order; order was not deleted") from exc
        return snapshot

    return _persist(_op, action="archive order; order was not deleted")
