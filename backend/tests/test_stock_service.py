# Overview: Pytest coverage for the append-only stock ledger.

from datetime import datetime, timedelta

import pytest

from storefront.models import StockMovement
from storefront.services import stock_service
from storefront.services.stock_service import InsufficientStock
from storefront.validation import NotFoundError, ValidationError


class TestAvailableQuantity:

    def test_unknown_key_is_zero(self, db_session, product):
        assert stock_service.available_quantity(product.id, "XL") == 0

    def test_signed_sum_of_movements(self, db_session, product):
        """Opening 10 IN, then 3 OUT and 2 IN leaves 9."""
        stock_service.record_movement(product.id, "M", 3, "OUT")
        stock_service.record_movement(product.id, "M", 2, "IN")

        assert stock_service.available_quantity(product.id, "M") == 9

    def test_as_of_is_inclusive(self, db_session, product):
        t0 = datetime(2026, 1, 1, 12, 0, 0)
        stock_service.record_movement(product.id, "S", 4, "IN", occurred_at=t0)
        stock_service.record_movement(product.id, "S", 1, "OUT", occurred_at=t0 + timedelta(hours=1))

        assert stock_service.available_quantity(product.id, "S", as_of=t0 - timedelta(seconds=1)) == 0
        assert stock_service.available_quantity(product.id, "S", as_of=t0) == 4
        assert stock_service.available_quantity(product.id, "S", as_of=t0 + timedelta(hours=1)) == 3

    def test_sizes_are_independent(self, db_session, product):
        stock_service.record_movement(product.id, "L", 2, "IN")

        balances = stock_service.available_quantities([(product.id, "M"), (product.id, "L"), (product.id, "S")])
        assert balances == {(product.id, "M"): 10, (product.id, "L"): 2, (product.id, "S"): 0}


class TestRecordMovement:

    def test_rejects_non_positive_quantity(self, db_session, product):
        with pytest.raises(ValidationError):
            stock_service.record_movement(product.id, "M", 0, "IN")

    def test_rejects_unknown_direction(self, db_session, product):
        with pytest.raises(ValidationError):
            stock_service.record_movement(product.id, "M", 1, "ADJUST")

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            stock_service.record_movement(99999, "M", 1, "IN")

    def test_appends_rows(self, db_session, product):
        before = db_session.query(StockMovement).count()
        stock_service.record_movement(product.id, "M", 1, "OUT", note="Damaged")
        assert db_session.query(StockMovement).count() == before + 1


class TestManualMovement:

    def test_write_off_beyond_balance_is_refused(self, db_session, product):
        with pytest.raises(InsufficientStock) as exc:
            stock_service.post_manual_movement(product.id, "M", 11, "OUT")

        assert exc.value.details["items"][0]["available"] == 10
        assert stock_service.available_quantity(product.id, "M") == 10

    def test_write_off_allowed_when_not_enforced(self, db_session, product):
        stock_service.post_manual_movement(product.id, "M", 11, "OUT", enforce_available=False)
        assert stock_service.available_quantity(product.id, "M") == -1

    def test_summary_per_size(self, db_session, product):
        stock_service.post_manual_movement(product.id, "M", 4, "OUT")
        stock_service.post_manual_movement(product.id, "L", 6, "IN")

        summary = stock_service.stock_summary(product.id)
        assert summary == [
            {"product_id": product.id, "size": "L", "total_in": 6, "total_out": 0, "available": 6},
            {"product_id": product.id, "size": "M", "total_in": 10, "total_out": 4, "available": 6},
        ]


def test_reading_balance_is_idempotent(db_session, product):
    first = stock_service.available_quantity(product.id, "M")
    assert stock_service.available_quantity(product.id, "M") == first
