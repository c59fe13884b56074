# Overview: Snapshot an order into the deleted-orders archive and remove the live row.

from __future__ import annotations

from ..extensions import db
from ..models import Order, DeletedOrder
from ..time_utils import utcnow
from .identity_service import resolve_identity


def snapshot_order(order: Order, *, deleted_by_user_id: int | None = None) -> DeletedOrder:
    """Build (but do not persist) the archive row for `order`."""
    user_name, user_email = resolve_identity(order.user_id, order.user_name, order.user_email)

    return DeletedOrder(
        original_id=order.id,
        order_id=order.order_id or str(order.id),
        user_id=order.user_id,
        user_name=user_name,
        user_email=user_email,
        service=order.service or "",
        quantity=order.quantity or 1,
        specifications=order.specifications or "",
        options=dict(order.options) if order.options is not None else None,
        notes=order.notes,
        delivery_option=order.delivery_option or "",
        delivery_address=order.delivery_address,
        status=order.status,
        payment_method=order.payment_method,
        total_amount=order.total_amount,
        files=list(order.files or []),
        created_at=order.created_at,
        updated_at=order.updated_at,
        deleted_at=utcnow(),
        deleted_by_user_id=deleted_by_user_id,
    )


def archive_order(order: Order, *, deleted_by_user_id: int | None = None) -> DeletedOrder:
    """
    Write the snapshot, then remove the live order, inside the caller's transaction.

    The snapshot is flushed before the delete is issued, so a failed insert
    raises before the order is touched. The caller commits or rolls back.
    """
    snapshot = snapshot_order(order, deleted_by_user_id=deleted_by_user_id)
    db.session.add(snapshot)
    db.session.flush()

    db.session.delete(order)
    db.session.flush()

    return snapshot
