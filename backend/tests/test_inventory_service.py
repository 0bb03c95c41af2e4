"""
Inventory ledger tests.

Verifies:
- Conditional decrement never drives stock negative
- Shortfall reports the freshly read available count
- Restock / override land in the audit ledger
"""

import pytest

from dealernet.errors import InsufficientStock, NotFound, ValidationError
from dealernet.models import LedgerEvent, Product
from dealernet.services import inventory_service
from dealernet.validation import MAX_STRIPS

from conftest import fresh


class TestDecrementStock:

    def test_decrement_returns_remaining(self, db_session, product):
        remaining = inventory_service.decrement_stock(product.id, 30)
        db_session.commit()

        assert remaining == 70
        assert fresh(Product, product.id).stock == 70

    def test_decrement_entire_stock(self, db_session, product):
        assert inventory_service.decrement_stock(product.id, 100) == 0

    def test_shortfall_raises_with_available(self, db_session, product):
        with pytest.raises(InsufficientStock) as exc:
            inventory_service.decrement_stock(product.id, 101)

        assert exc.value.available == 100
        assert exc.value.requested == 101
        assert exc.value.details() == {"available": 100, "requested": 101}
        assert fresh(Product, product.id).stock == 100

    def test_missing_product(self, db_session):
        with pytest.raises(NotFound):
            inventory_service.decrement_stock(9999, 1)

    def test_rejects_non_positive(self, db_session, product):
        with pytest.raises(ValidationError):
            inventory_service.decrement_stock(product.id, 0)


class TestAdminStockEdits:

    def test_restock_adds_and_records(self, db_session, product, admin):
        updated = inventory_service.increment_stock(product.id, 25, admin.id, note="Truck 12")

        assert updated.stock == 125
        event = db_session.query(LedgerEvent).filter_by(event_type="product.restocked").one()
        assert event.quantity_delta == 25
        assert event.actor_user_id == admin.id
        assert event.note == "Truck 12"

    def test_restock_capped(self, db_session, product, admin):
        with pytest.raises(ValidationError):
            inventory_service.increment_stock(product.id, MAX_STRIPS, admin.id)
        assert fresh(Product, product.id).stock == 100

    def test_override_records_signed_delta(self, db_session, product, admin):
        delta = inventory_service.override_stock(product.id, 40, admin.id)
        db_session.commit()

        assert delta == -60
        assert fresh(Product, product.id).stock == 40
        event = db_session.query(LedgerEvent).filter_by(event_type="product.stock_override").one()
        assert event.quantity_delta == -60

    def test_override_to_same_value_is_silent(self, db_session, product, admin):
        assert inventory_service.override_stock(product.id, 100, admin.id) == 0
        assert db_session.query(LedgerEvent).filter_by(event_type="product.stock_override").count() == 0

    def test_override_rejects_negative(self, db_session, product, admin):
        with pytest.raises(ValidationError):
            inventory_service.override_stock(product.id, -1, admin.id)
