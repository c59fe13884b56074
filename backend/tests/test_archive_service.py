"""
Archival and identity enrichment tests.

Verifies:
- Deleting an order leaves exactly one snapshot and no live row
- Snapshots survive (and are written for) customers whose account is gone
- Blank cached names are backfilled from the user directory
- Snapshots are immutable
- A failed archive aborts the delete
"""

from decimal import Decimal

import pytest
from sqlalchemy import event

from printdesk.extensions import db
from printdesk.models import DeletedOrder, Order, User
from printdesk.models.orders import ArchiveImmutableError
from printdesk.services import archive_service, identity_service, order_service
from printdesk.validation import DependencyFailure, NotFoundError


def _order(db_session, user_id, *, name="", email="", order_id="ORD-1700000000000-123"):
    order = Order(
        order_id=order_id,
        user_id=user_id,
        user_name=name,
        user_email=email,
        service="Photocopy",
        quantity=2,
        specifications="Paper Size: A4\nCopy Type: Standard\nthanks",
        options={"paper_size": "A4", "color_option": None, "photo_size": None, "add_lamination": False},
        notes="thanks",
        delivery_option="pickup",
        status="in-progress",
        total_amount=Decimal("4.00"),
        files=["/uploads/1.pdf"],
    )
    db_session.add(order)
    db_session.commit()
    return order


class TestDeleteOrder:
    def test_delete_archives_then_removes(self, db_session, customer, admin):
        order = _order(db_session, customer.id, name="Ana Cruz", email="ana@example.com")
        original_id = order.id

        snapshot = order_service.delete_order(admin, order.order_id)

        assert db_session.query(Order).filter_by(order_id="ORD-1700000000000-123").count() == 0
        snapshots = db_session.query(DeletedOrder).all()
        assert len(snapshots) == 1
        assert snapshots[0].id == snapshot.id
        assert snapshot.original_id == original_id
        assert snapshot.status == "in-progress"
        assert snapshot.total_amount == Decimal("4.00")
        assert snapshot.files == ["/uploads/1.pdf"]
        assert snapshot.notes == "thanks"
        assert snapshot.deleted_by_user_id == admin.id
        assert snapshot.deleted_at is not None

    def test_delete_after_customer_account_removed(self, db_session, customer, admin):
        order = _order(db_session, customer.id)
        db_session.delete(customer)
        db_session.commit()

        snapshot = order_service.delete_order(admin, order.order_id)

        assert snapshot.user_name == ""
        assert snapshot.user_email == ""
        assert db_session.query(Order).count() == 0
        assert db_session.query(DeletedOrder).count() == 1

    def test_blank_identity_backfilled_from_directory(self, db_session, customer, admin):
        order = _order(db_session, customer.id)

        snapshot = order_service.delete_order(admin, order.order_id)

        assert snapshot.user_name == "Ana Cruz"
        assert snapshot.user_email == "ana@example.com"

    def test_delete_unknown_order(self, db_session, admin):
        with pytest.raises(NotFoundError):
            order_service.delete_order(admin, "ORD-0-000")

    def test_failed_archive_keeps_order(self, db_session, customer, admin, monkeypatch):
        order = _order(db_session, customer.id, name="Ana Cruz")

        def _boom(*args, **kwargs):
            raise RuntimeError("archive store down")

        monkeypatch.setattr(archive_service, "snapshot_order", _boom)

        with pytest.raises(DependencyFailure):
            order_service.delete_order(admin, order.order_id)

        db_session.expire_all()
        assert db_session.query(Order).filter_by(id=order.id).count() == 1
        assert db_session.query(DeletedOrder).count() == 0

    def test_snapshots_are_immutable(self, db_session, customer, admin):
        order = _order(db_session, customer.id, name="Ana Cruz")
        snapshot = order_service.delete_order(admin, order.order_id)

        snapshot.status = "completed"
        with pytest.raises(ArchiveImmutableError):
            db_session.commit()
        db_session.rollback()

        db_session.delete(db_session.get(DeletedOrder, snapshot.id))
        with pytest.raises(ArchiveImmutableError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(DeletedOrder).count() == 1

    def test_deleted_orders_newest_first(self, db_session, customer, admin):
        first = _order(db_session, customer.id, order_id="ORD-1700000000000-001")
        second = _order(db_session, customer.id, order_id="ORD-1700000000000-002")
        order_service.delete_order(admin, first.order_id)
        order_service.delete_order(admin, second.order_id)

        listed = [s.order_id for s in order_service.list_deleted_orders(admin)]
        assert listed == ["ORD-1700000000000-002", "ORD-1700000000000-001"]


class TestIdentityEnrichment:
    def test_find_user(self, db_session, customer):
        identity = identity_service.find_user(customer.id)
        assert identity.display_name == "Ana Cruz"
        assert identity_service.find_user(999999) is None

    def test_enrich_fills_only_blank_names(self, db_session, customer, other_customer):
        cached = _order(db_session, customer.id, name="Cached Name", email="cached@example.com",
                        order_id="ORD-1700000000000-010")
        blank = _order(db_session, other_customer.id, order_id="ORD-1700000000000-011")
        orphan = _order(db_session, 424242, order_id="ORD-1700000000000-012")

        rows = {row["order_id"]: row for row in identity_service.enrich_orders([cached, blank, orphan])}

        assert rows[cached.order_id]["user_name"] == "Cached Name"
        assert rows[blank.order_id]["user_name"] == "Ben Reyes"
        assert rows[blank.order_id]["user_email"] == "ben@example.com"
        assert rows[orphan.order_id]["user_name"] == ""

        db_session.expire_all()
        assert db_session.get(Order, blank.id).user_name == ""

    def test_enrich_uses_one_directory_query(self, db_session, customer, monkeypatch):
        orders = [
            _order(db_session, customer.id, order_id=f"ORD-1700000000000-02{i}")
            for i in range(3)
        ]
        calls = []
        real = identity_service.find_users

        def _counting(ids):
            calls.append(set(ids))
            return real(ids)

        monkeypatch.setattr(identity_service, "find_users", _counting)
        identity_service.enrich_orders(orders)

        assert calls == [{customer.id}]

    def test_deleting_user_keeps_orders(self, db_session, customer):
        order = _order(db_session, customer.id, name="Ana Cruz")
        db_session.delete(db_session.get(User, customer.id))
        db_session.commit()

        assert db_session.get(Order, order.id).user_name == "Ana Cruz"

    def test_list_customers_counts_in_one_query(self, db_session, customer, other_customer, admin):
        _order(db_session, customer.id, order_id="ORD-1700000000000-030")
        _order(db_session, customer.id, order_id="ORD-1700000000000-031")
        _order(db_session, 424242, order_id="ORD-1700000000000-032")

        statements = []

        def _record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(db.engine, "before_cursor_execute", _record)
        try:
            customers = identity_service.list_customers()
        finally:
            event.remove(db.engine, "before_cursor_execute", _record)

        counts = {row["email"]: row["total_orders"] for row in customers}
        assert counts == {"ana@example.com": 2, "ben@example.com": 0}
        assert len(statements) == 2
        assert sum("count(" in s.lower() for s in statements) == 1

    def test_list_customers_empty(self, db_session, admin):
        assert identity_service.list_customers() == []
