"""
Pricing engine tests.

Covers:
- compute_total arithmetic for every service
- Paper size multipliers and the lamination add-on
- Determinism and linearity in quantity
- Pricing table get-or-create, validation and replacement
"""

import unittest
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from printdesk.models import Pricing
from printdesk.services import pricing_service
from printdesk.services.pricing_service import PriceTable, compute_total
from printdesk.validation import DependencyFailure, StateConflictError, ValidationError, money


DEFAULTS = PriceTable.defaults()


class ComputeTotalTests(unittest.TestCase):
    def test_print_color_long_paper(self):
        total = compute_total("Print", 10, "color", "Long", False, DEFAULTS)
        self.assertEqual(money(total), Decimal("24.00"))

    def test_print_black_and_white_uses_bw_price(self):
        total = compute_total("Print", 5, "bw", "A4", False, DEFAULTS)
        self.assertEqual(total, Decimal("5.00"))

    def test_service_name_is_case_insensitive(self):
        self.assertEqual(
            compute_total("print", 2, "color", "Short", False, DEFAULTS),
            compute_total("PRINT", 2, "color", "Short", False, DEFAULTS),
        )

    def test_photocopy_and_scanning_use_paper_multiplier(self):
        self.assertEqual(money(compute_total("Photocopy", 1, None, "Long", False, DEFAULTS)), Decimal("2.40"))
        self.assertEqual(money(compute_total("Scanning", 2, "bw", "Long", False, DEFAULTS)), Decimal("12.00"))

    def test_photo_development_ignores_paper_size(self):
        total = compute_total("Photo Development", 4, None, "Long", False, DEFAULTS)
        self.assertEqual(total, Decimal("60.00"))

    def test_laminating_is_not_double_charged(self):
        plain = compute_total("Laminating", 3, None, None, False, DEFAULTS)
        with_addon = compute_total("Laminating", 3, None, None, True, DEFAULTS)
        self.assertEqual(plain, Decimal("60.00"))
        self.assertEqual(with_addon, Decimal("60.00"))

    def test_lamination_addon_is_not_scaled_by_paper(self):
        total = compute_total("Print", 2, "bw", "Long", True, DEFAULTS)
        # 1.00 * 1.2 * 2 + 20.00 * 2
        self.assertEqual(money(total), Decimal("42.40"))

    def test_unknown_paper_size_uses_multiplier_one(self):
        self.assertEqual(
            compute_total("Print", 3, "bw", "Legal", False, DEFAULTS),
            compute_total("Print", 3, "bw", "A4", False, DEFAULTS),
        )

    def test_unknown_service_prices_at_zero(self):
        self.assertEqual(compute_total("Binding", 5, None, "A4", False, DEFAULTS), Decimal("0"))

    def test_deterministic_and_linear_in_quantity(self):
        cases = [
            ("Print", "color", "Long"),
            ("Print", "bw", "Short"),
            ("Photocopy", None, "Long"),
            ("Scanning", "color", "A4"),
            ("Photo Development", None, None),
            ("Laminating", None, None),
        ]
        for service, color, paper in cases:
            one = compute_total(service, 1, color, paper, False, DEFAULTS)
            self.assertEqual(one, compute_total(service, 1, color, paper, False, DEFAULTS))
            for n in (2, 7, 25):
                self.assertEqual(
                    compute_total(service, n, color, paper, False, DEFAULTS),
                    n * one,
                    f"{service} x{n}",
                )

    def test_custom_table(self):
        table = PriceTable(
            print_bw=Decimal("0.75"),
            print_color=Decimal("3.10"),
            photocopying=Decimal("1.00"),
            scanning=Decimal("4.00"),
            photo_development=Decimal("12.00"),
            laminating=Decimal("18.50"),
        )
        total = compute_total("Print", 3, "color", "Long", False, table)
        self.assertEqual(money(total), Decimal("11.16"))


class TestPricingTable:
    def test_get_pricing_creates_defaults_once(self, db_session):
        first = pricing_service.get_pricing()
        second = pricing_service.get_pricing()

        assert first.id == second.id
        assert db_session.query(Pricing).count() == 1
        assert first.to_dict()["print_color"] == "2.00"
        assert first.to_dict()["laminating"] == "20.00"

    def test_set_pricing_replaces_all_fields(self, db_session, admin):
        pricing = pricing_service.set_pricing({
            "print_bw": "1.50",
            "print_color": 3,
            "photocopying": 2.25,
            "scanning": "5",
            "photo_development": "16.00",
            "laminating": 22,
        }, actor_user_id=admin.id)

        data = pricing.to_dict()
        assert data["print_bw"] == "1.50"
        assert data["print_color"] == "3.00"
        assert data["photocopying"] == "2.25"
        assert data["laminating"] == "22.00"
        assert data["updated_by_user_id"] == admin.id
        assert db_session.query(Pricing).count() == 1

    def test_set_pricing_requires_every_field(self, db_session):
        with pytest.raises(ValidationError, match="Missing required fields"):
            pricing_service.set_pricing({"print_bw": 1})

    @pytest.mark.parametrize("bad", [-1, "-0.01", "abc", "", None, True, "NaN", "Infinity"])
    def test_set_pricing_rejects_invalid_values(self, db_session, bad):
        values = {field: 1 for field in ("print_bw", "print_color", "photocopying",
                                         "scanning", "photo_development", "laminating")}
        values["scanning"] = bad

        with pytest.raises(ValidationError):
            pricing_service.set_pricing(values)

        assert pricing_service.get_pricing().to_dict()["scanning"] == "5.00"

    def test_quote_uses_current_table(self, db_session):
        result = pricing_service.quote("print", 10, {"color_option": "color", "paper_size": "Long"})
        assert result["service"] == "Print"
        assert result["total_amount"] == "24.00"
        assert result["unit_price"] == "2.00"

    def test_quote_rejects_unknown_service(self, db_session):
        with pytest.raises(ValidationError):
            pricing_service.quote("Binding", 1)

    def test_set_pricing_maps_storage_errors(self, db_session, monkeypatch):
        values = {field: 1 for field in ("print_bw", "print_color", "photocopying",
                                         "scanning", "photo_development", "laminating")}

        def _stale(op):
            raise StaleDataError("pricing row changed")

        monkeypatch.setattr(pricing_service, "run_with_retry", _stale)
        with pytest.raises(StateConflictError):
            pricing_service.set_pricing(values)

        def _down(op):
            raise OperationalError("UPDATE pricing", {}, Exception("database is locked"))

        monkeypatch.setattr(pricing_service, "run_with_retry", _down)
        with pytest.raises(DependencyFailure):
            pricing_service.set_pricing(values)
