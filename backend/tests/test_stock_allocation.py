"""
Stock allocation ledger tests.

Verifies:
- Allocations never exceed the dealer's approved strips (scenario: 50 approved)
- Dealer stock is derived, deterministic and attributed FIFO to lots
- Salesmen must belong to the allocating dealer
- Salesman stock rolls up allocations per product
"""

import pytest

from dealernet.errors import InsufficientStock, NotFound
from dealernet.models import LedgerEvent, StockAllocation, User
from dealernet.services import allocation_service, dealer_request_service

from conftest import make_user


def approve(dealer, admin, product, strips):
    req = dealer_request_service.create_request(dealer.id, product.id, strips)
    return dealer_request_service.approve_request(req.id, admin.id)


class TestAllocate:

    def test_allocate_then_shortfall(self, client, dealer_headers, admin, dealer, salesman, product):
        approve(dealer, admin, product, 50)

        resp = client.post(
            "/api/stock-allocation/allocate",
            json={"salesman_id": salesman.id, "product_id": product.id, "strips": 30, "notes": "Route 4"},
            headers=dealer_headers,
        )
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["total_allocated"] == 30
        assert data["allocation"]["strips"] == 30
        assert data["allocation"]["salesman"]["id"] == salesman.id
        assert data["allocation"]["notes"] == "Route 4"

        resp = client.get("/api/stock-allocation/dealer/stock", headers=dealer_headers)
        stocks = resp.get_json()["data"]["stocks"]
        assert len(stocks) == 1
        assert stocks[0]["total_strips"] == 50
        assert stocks[0]["allocated_strips"] == 30
        assert stocks[0]["available_strips"] == 20

        resp = client.post(
            "/api/stock-allocation/allocate",
            json={"salesman_id": salesman.id, "product_id": product.id, "strips": 25},
            headers=dealer_headers,
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["available"] == 20
        assert body["requested"] == 25

    def test_nothing_approved(self, db_session, dealer, salesman, product):
        dealer_request_service.create_request(dealer.id, product.id, 10)  # still pending

        with pytest.raises(InsufficientStock) as exc:
            allocation_service.allocate(dealer.id, salesman.id, product.id, 1)
        assert exc.value.available == 0

    def test_exact_remaining(self, db_session, admin, dealer, salesman, product):
        approve(dealer, admin, product, 12)
        _alloc, total = allocation_service.allocate(dealer.id, salesman.id, product.id, 12)
        assert total == 12

        with pytest.raises(InsufficientStock):
            allocation_service.allocate(dealer.id, salesman.id, product.id, 1)

    def test_foreign_salesman(self, db_session, admin, dealer, dealer_b, product):
        approve(dealer, admin, product, 10)
        other = make_user("Other", "other.salesman@dealernet.test", "salesman", dealer_b)

        with pytest.raises(NotFound) as exc:
            allocation_service.allocate(dealer.id, other.id, product.id, 1)
        assert exc.value.message == "Salesman not found or not assigned to you"

    def test_target_must_be_salesman(self, db_session, admin, dealer, dealer_b, product):
        approve(dealer, admin, product, 10)
        with pytest.raises(NotFound):
            allocation_service.allocate(dealer.id, dealer_b.id, product.id, 1)

    def test_unknown_product(self, db_session, dealer, salesman):
        with pytest.raises(NotFound):
            allocation_service.allocate(dealer.id, salesman.id, 9999, 1)

    def test_bumps_ledger_version_and_logs(self, db_session, admin, dealer, salesman, product):
        approve(dealer, admin, product, 10)
        alloc, _total = allocation_service.allocate(dealer.id, salesman.id, product.id, 4)

        db_session.expire_all()
        assert db_session.get(User, dealer.id).ledger_version == 1
        event = db_session.query(LedgerEvent).filter_by(allocation_id=alloc.id).one()
        assert event.event_type == "stock.allocated"
        assert event.quantity_delta == -4

    def test_failed_allocation_appends_nothing(self, db_session, admin, dealer, salesman, product):
        approve(dealer, admin, product, 5)
        with pytest.raises(InsufficientStock):
            allocation_service.allocate(dealer.id, salesman.id, product.id, 6)
        assert db_session.query(StockAllocation).count() == 0

    def test_salesman_cannot_allocate(self, client, salesman_headers, salesman, product):
        resp = client.post(
            "/api/stock-allocation/allocate",
            json={"salesman_id": salesman.id, "product_id": product.id, "strips": 1},
            headers=salesman_headers,
        )
        assert resp.status_code == 403


class TestDealerStock:

    def test_fifo_lots(self, db_session, admin, dealer, salesman, product):
        first = approve(dealer, admin, product, 10)
        second = approve(dealer, admin, product, 15)
        allocation_service.allocate(dealer.id, salesman.id, product.id, 12)

        stocks = allocation_service.get_dealer_stock(dealer.id)
        lots = stocks[0]["lots"]

        assert [lot["request_id"] for lot in lots] == [first.id, second.id]
        assert lots[0]["allocated_strips"] == 10
        assert lots[0]["available_strips"] == 0
        assert lots[1]["allocated_strips"] == 2
        assert lots[1]["available_strips"] == 13
        assert stocks[0]["available_strips"] == 13

    def test_ordered_by_title_and_idempotent(self, db_session, admin, dealer, make_product):
        zeta = make_product(title="Zeta", stock=50)
        alpha = make_product(title="Alpha", stock=50)
        approve(dealer, admin, zeta, 5)
        approve(dealer, admin, alpha, 7)

        once = allocation_service.get_dealer_stock(dealer.id)
        twice = allocation_service.get_dealer_stock(dealer.id)

        assert once == twice
        assert [s["product"]["title"] for s in once] == ["Alpha", "Zeta"]

    def test_cancelled_and_pending_excluded(self, db_session, admin, dealer, product):
        approve(dealer, admin, product, 5)
        pending = dealer_request_service.create_request(dealer.id, product.id, 7)
        cancelled = dealer_request_service.create_request(dealer.id, product.id, 9)
        dealer_request_service.cancel_request(cancelled.id, admin.id)

        stocks = allocation_service.get_dealer_stock(dealer.id)
        assert stocks[0]["total_strips"] == 5
        assert pending.id not in [lot["request_id"] for lot in stocks[0]["lots"]]

    def test_other_dealers_isolated(self, db_session, admin, dealer, dealer_b, product):
        approve(dealer_b, admin, product, 5)
        assert allocation_service.get_dealer_stock(dealer.id) == []


class TestSalesmanViews:

    def test_salesman_stock(self, client, salesman_headers, admin, dealer, salesman, product):
        approve(dealer, admin, product, 20)
        first, _ = allocation_service.allocate(dealer.id, salesman.id, product.id, 5)
        second, _ = allocation_service.allocate(dealer.id, salesman.id, product.id, 3)

        resp = client.get("/api/stock-allocation/salesman/stock", headers=salesman_headers)

        assert resp.status_code == 200
        stocks = resp.get_json()["data"]["stocks"]
        assert len(stocks) == 1
        assert stocks[0]["total_strips"] == 8
        assert [a["id"] for a in stocks[0]["allocations"]] == [second.id, first.id]
        assert stocks[0]["allocations"][0]["dealer"]["id"] == dealer.id

    def test_dealer_allocations_grouped(self, client, dealer_headers, admin, dealer, salesman, product):
        other = make_user("Anil", "anil@dealernet.test", "salesman", dealer)
        approve(dealer, admin, product, 20)
        allocation_service.allocate(dealer.id, salesman.id, product.id, 5)
        allocation_service.allocate(dealer.id, other.id, product.id, 4)
        allocation_service.allocate(dealer.id, salesman.id, product.id, 1)

        resp = client.get("/api/stock-allocation/dealer/allocations", headers=dealer_headers)

        groups = resp.get_json()["data"]["allocations"]
        assert [g["salesman"]["name"] for g in groups] == ["Anil", "Ravi"]
        assert [g["total_strips"] for g in groups] == [4, 6]

    def test_dealer_salesmen(self, client, dealer_headers, dealer_b, salesman):
        make_user("Not Mine", "notmine@dealernet.test", "salesman", dealer_b)

        resp = client.get("/api/stock-allocation/dealer/salesmen", headers=dealer_headers)

        names = [s["name"] for s in resp.get_json()["data"]["salesmen"]]
        assert names == ["Ravi"]

    def test_dealer_cannot_read_salesman_stock(self, client, dealer_headers):
        resp = client.get("/api/stock-allocation/salesman/stock", headers=dealer_headers)
        assert resp.status_code == 403
