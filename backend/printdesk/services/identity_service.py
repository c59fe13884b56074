# Overview: User directory lookups and best-effort backfill of customer name/email on orders.

"""
Identity Enrichment

Orders cache the customer's display name and email at creation time. Rows
written before that cache existed (or by imports) can have blanks; these
helpers fill them from the user directory when possible.

Enrichment is best-effort: a customer account that no longer exists leaves
the fields blank and never fails the caller. Archival in particular must
succeed for orders whose owner has been deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import User, Order
from ..models.auth import ROLE_CUSTOMER


@dataclass(frozen=True)
class CustomerIdentity:
    first_name: str
    last_name: str
    email: str

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_user(cls, user: User) -> "CustomerIdentity":
        return cls(
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            email=user.email or "",
        )


def find_user(user_id: int | None) -> CustomerIdentity | None:
    """Directory lookup by id; None when the account does not exist."""
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        return None
    return CustomerIdentity.from_user(user)


def find_users(user_ids: Iterable[int]) -> dict[int, CustomerIdentity]:
    """Batched directory lookup: one query for all ids, missing ids omitted."""
    ids = {uid for uid in user_ids if uid is not None}
    if not ids:
        return {}
    users = db.session.query(User).filter(User.id.in_(ids)).all()
    return {user.id: CustomerIdentity.from_user(user) for user in users}


def resolve_identity(user_id: int | None, cached_name: str | None, cached_email: str | None) -> tuple[str, str]:
    """
    Return (name, email) for an order, preferring the cached copy.

    Falls back to the directory only when the cached name is blank.
    """
    name = cached_name or ""
    email = cached_email or ""
    if name:
        return name, email

    identity = find_user(user_id)
    if identity is None:
        current_app.logger.warning("No customer account for user_id=%s; leaving name blank", user_id)
        return name, email

    return identity.display_name, identity.email or email


def enrich_orders(orders: Iterable[Order]) -> list[dict]:
    """
    Serialize orders, filling blank user_name/user_email from the directory.

    All distinct missing user ids are resolved with a single query.
    Stored rows are not modified.
    """
    payload = [order.to_dict() for order in orders]

    missing_ids = {row["user_id"] for row in payload if not row["user_name"] and row["user_id"] is not None}
    if not missing_ids:
        return payload

    directory = find_users(missing_ids)
    unresolved = missing_ids - set(directory)
    if unresolved:
        current_app.logger.warning("Could not resolve customer accounts: %s", sorted(unresolved))

    for row in payload:
        if row["user_name"]:
            continue
        identity = directory.get(row["user_id"])
        if identity is not None:
            row["user_name"] = identity.display_name
            row["user_email"] = identity.email or row["user_email"]

    return payload


def list_customers() -> list[dict]:
    """
    Customer accounts, newest first, each with its live order count.

    Counts come from one grouped query over orders; archived orders are
    not counted.
    """
    customers = (
        db.session.query(User)
        .filter(User.role == ROLE_CUSTOMER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    if not customers:
        return []

    counts = dict(
        db.session.query(Order.user_id, func.count(Order.id))
        .filter(Order.user_id.in_([user.id for user in customers]))
        .group_by(Order.user_id)
        .all()
    )

    payload = []
    for user in customers:
        row = user.to_dict()
        row["total_orders"] = counts.get(user.id, 0)
        payload.append(row)
    return payload
