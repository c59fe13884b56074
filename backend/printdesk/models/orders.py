from __future__ import annotations

from decimal import Decimal

from sqlalchemy import event

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SERVICE_PRINT = "Print"
SERVICE_PHOTOCOPY = "Photocopy"
SERVICE_SCANNING = "Scanning"
SERVICE_PHOTO_DEVELOPMENT = "Photo Development"
SERVICE_LAMINATING = "Laminating"

SERVICES = (
    SERVICE_PRINT,
    SERVICE_PHOTOCOPY,
    SERVICE_SCANNING,
    SERVICE_PHOTO_DEVELOPMENT,
    SERVICE_LAMINATING,
)

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED)

DELIVERY_PICKUP = "pickup"
DELIVERY_DELIVERY = "delivery"
DELIVERY_OPTIONS = (DELIVERY_PICKUP, DELIVERY_DELIVERY)

PAYMENT_CASH = "cash"


def _amount(value) -> str | None:
    if value is None:
        return None
    return f"{Decimal(value):.2f}"


class Order(db.Model):
    """
    A customer print/copy/scan/photo/laminate job.

    `specifications` is the human-readable blob shown to staff and exported;
    `options` and `notes` hold the same information in structured form so an
    edit never has to re-parse the blob. Legacy rows may have only the blob.

    `user_id` is a weak back-link: there is no foreign key, and deleting the
    account leaves the order (and its cached name/email) in place.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_status_created", "user_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # External identifier shown to customers (e.g., "ORD-1718000000000-042")
    order_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_name = db.Column(db.String(255), nullable=False, default="")
    user_email = db.Column(db.String(255), nullable=False, default="")

    service = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    specifications = db.Column(db.Text, nullable=False, default="")
    options = db.Column(db.JSON, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    delivery_option = db.Column(db.String(16), nullable=False, default=DELIVERY_PICKUP)
    delivery_address = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)
    payment_method = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    # Opaque storage URLs, in upload order
    files = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_email": self.user_email,
            "service": self.service,
            "quantity": self.quantity,
            "specifications": self.specifications,
            "options": self.options,
            "notes": self.notes,
            "delivery_option": self.delivery_option,
            "delivery_address": self.delivery_address,
            "status": self.status,
            "payment_method": self.payment_method,
            "total_amount": _amount(self.total_amount),
            "files": list(self.files or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class DeletedOrder(db.Model):
    """
    Immutable snapshot of an order taken at deletion time.

    Written once by the archive service in the same transaction that removes
    the live order; never updated, never deleted, never read by order logic.
    """
    __tablename__ = "deleted_orders"
    __table_args__ = (
        db.Index("ix_deleted_orders_deleted_at", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Internal id of the live order this was copied from
    original_id = db.Column(db.Integer, nullable=False, index=True)
    order_id = db.Column(db.String(64), nullable=False, index=True)

    user_id = db.Column(db.Integer, nullable=True)
    user_name = db.Column(db.String(255), nullable=False, default="")
    user_email = db.Column(db.String(255), nullable=False, default="")

    service = db.Column(db.String(32), nullable=False, default="")
    quantity = db.Column(db.Integer, nullable=False, default=1)
    specifications = db.Column(db.Text, nullable=False, default="")
    options = db.Column(db.JSON, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    delivery_option = db.Column(db.String(16), nullable=False, default="")
    delivery_address = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, default=PAYMENT_CASH)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    files = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_by_user_id = db.Column(db.Integer, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_id": self.original_id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_email": self.user_email,
            "service": self.service,
            "quantity": self.quantity,
            "specifications": self.specifications,
            "options": self.options,
            "notes": self.notes,
            "delivery_option": self.delivery_option,
            "delivery_address": self.delivery_address,
            "status": self.status,
            "payment_method": self.payment_method,
            "total_amount": _amount(self.total_amount),
            "files": list(self.files or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
            "deleted_by_user_id": self.deleted_by_user_id,
        }


class ArchiveImmutableError(RuntimeError):
    """Raised when something tries to modify an archived order snapshot."""


@event.listens_for(DeletedOrder, "before_update")
def _block_snapshot_update(mapper, connection, target):
    raise ArchiveImmutableError(f"Archived order {target.order_id} is read-only")


@event.listens_for(DeletedOrder, "before_delete")
def _block_snapshot_delete(mapper, connection, target):
    raise ArchiveImmutableError(f"Archived order {target.order_id} cannot be deleted")
