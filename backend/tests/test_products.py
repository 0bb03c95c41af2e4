"""
Catalog management tests.

Verifies:
- Admin CRUD with model-metadata validation
- Stock edits go through the audit ledger
- Referenced products cannot be deleted
"""

import pytest

from dealernet.models import LedgerEvent, Product
from dealernet.services import dealer_request_service

from conftest import fresh


NEW_PRODUCT = {
    "title": "Coffee 100g",
    "description": "Filter blend",
    "packet_price_cents": 1250,
    "packets_per_strip": 6,
    "stock": 40,
}


class TestProductCrud:

    def test_create(self, client, db_session, admin_headers, admin):
        resp = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)

        assert resp.status_code == 201
        product = resp.get_json()["data"]["product"]
        assert product["title"] == "Coffee 100g"
        assert product["stock"] == 40
        assert product["packet_price"] == "12.50"
        event = db_session.query(LedgerEvent).filter_by(event_type="product.created").one()
        assert event.quantity_delta == 40
        assert event.actor_user_id == admin.id

    @pytest.mark.parametrize(
        "patch",
        [
            {"packet_price_cents": -1},
            {"packets_per_strip": 0},
            {"stock": -5},
            {"packet_price_cents": "12.5"},
            {"title": ""},
            {"sku": "not-a-field"},
        ],
    )
    def test_create_invalid(self, client, admin_headers, patch):
        resp = client.post("/api/products", json={**NEW_PRODUCT, **patch}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_create_missing_fields(self, client, admin_headers):
        resp = client.post("/api/products", json={"title": "Only a title"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_list_ordered_by_title(self, client, dealer_headers, make_product):
        make_product(title="Zeta")
        make_product(title="Alpha")

        resp = client.get("/api/products", headers=dealer_headers)

        titles = [p["title"] for p in resp.get_json()["data"]["products"]]
        assert titles == ["Alpha", "Zeta"]

    def test_get_missing(self, client, salesman_headers, db_session):
        assert client.get("/api/products/9999", headers=salesman_headers).status_code == 404

    def test_update_fields_and_stock(self, client, db_session, admin_headers, product):
        resp = client.put(
            f"/api/products/{product.id}",
            json={"title": "Tea 50g (new pack)", "stock": 120},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]["product"]
        assert data["title"] == "Tea 50g (new pack)"
        assert data["stock"] == 120
        override = db_session.query(LedgerEvent).filter_by(event_type="product.stock_override").one()
        assert override.quantity_delta == 20

    def test_restock(self, client, admin_headers, product):
        resp = client.post(
            f"/api/products/{product.id}/restock",
            json={"strips": 30, "note": "Weekly"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["product"]["stock"] == 130

    def test_restock_rejects_zero(self, client, admin_headers, product):
        resp = client.post(f"/api/products/{product.id}/restock", json={"strips": 0}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_unreferenced(self, client, admin_headers, product):
        resp = client.delete(f"/api/products/{product.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert fresh(Product, product.id) is None

    def test_delete_referenced_conflict(self, client, admin_headers, dealer, product):
        dealer_request_service.create_request(dealer.id, product.id, 1)

        resp = client.delete(f"/api/products/{product.id}", headers=admin_headers)

        assert resp.status_code == 409
        assert fresh(Product, product.id) is not None

    def test_dealer_cannot_manage(self, client, dealer_headers, product):
        assert client.post("/api/products", json=NEW_PRODUCT, headers=dealer_headers).status_code == 403
        assert client.put(f"/api/products/{product.id}", json={"stock": 1}, headers=dealer_headers).status_code == 403
        assert client.delete(f"/api/products/{product.id}", headers=dealer_headers).status_code == 403
