from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


# Unit prices (PHP) used when the pricing row is first created
DEFAULT_PRICES = {
    "print_bw": Decimal("1.00"),
    "print_color": Decimal("2.00"),
    "photocopying": Decimal("2.00"),
    "scanning": Decimal("5.00"),
    "photo_development": Decimal("15.00"),
    "laminating": Decimal("20.00"),
}

PRICE_FIELDS = tuple(DEFAULT_PRICES)


class Pricing(db.Model):
    """
    Shop-wide unit price table.

    Exactly one row is live. It is created with DEFAULT_PRICES the first
    time anything reads it and is only ever updated, never deleted.
    Orders copy the computed total at create/edit time, so changing a price
    here never reprices existing orders.
    """
    __tablename__ = "pricing"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    print_bw = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["print_bw"])
    print_color = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["print_color"])
    photocopying = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["photocopying"])
    scanning = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["scanning"])
    photo_development = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["photo_development"])
    laminating = db.Column(db.Numeric(10, 2), nullable=False, default=DEFAULT_PRICES["laminating"])

    updated_by_user_id = db.Column(db.Integer, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        data = {field: f"{Decimal(getattr(self, field)):.2f}" for field in PRICE_FIELDS}
        data.update({
            "updated_by_user_id": self.updated_by_user_id,
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        })
        return data
