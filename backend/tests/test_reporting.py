"""
Distribution query layer tests.

Verifies:
- Stalkists see stats only for dealers they created
- Totals are strips * packets_per_strip * packet price at read time
- Role counts always list every role
"""

from dealernet.services import dealer_request_service, reporting_service

from conftest import headers_for, make_user


class TestDealerStats:

    def test_stats_totals(self, client, stalkist_headers, admin, dealer, product, make_product):
        biscuits = make_product(title="Biscuits", stock=50, packet_price_cents=1000, packets_per_strip=12)

        approved = dealer_request_service.create_request(dealer.id, product.id, 20)
        dealer_request_service.approve_request(approved.id, admin.id)
        dealer_request_service.create_request(dealer.id, biscuits.id, 2)
        cancelled = dealer_request_service.create_request(dealer.id, product.id, 3)
        dealer_request_service.cancel_request(cancelled.id, admin.id)

        resp = client.get(f"/api/dealer-requests/dealer/{dealer.id}/stats", headers=stalkist_headers)

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["dealer"]["id"] == dealer.id
        assert data["dealer"]["role"] == "dealer"

        stats = data["stats"]
        assert stats["total_requests"] == 3
        assert stats["pending_requests"] == 1
        assert stats["approved_requests"] == 1
        assert stats["cancelled_requests"] == 1
        assert stats["total_strips_requested"] == 25
        assert stats["total_strips_approved"] == 20
        assert stats["total_strips_pending"] == 2
        assert stats["total_strips_cancelled"] == 3
        # 20 * 10 * 5.00
        assert stats["total_value_approved"] == "1000.00"
        # 2 * 12 * 10.00
        assert stats["total_value_pending"] == "240.00"
        # 1000 + 240 + 3 * 10 * 5.00
        assert stats["total_value_requested"] == "1390.00"
        assert stats["total_value_requested_cents"] == 139000

        rows = {r["id"]: r for r in data["requests"]}
        assert rows[approved.id]["total_value"] == "1000.00"

    def test_current_price_at_read_time(self, db_session, stalkist, admin, dealer, product):
        req = dealer_request_service.create_request(dealer.id, product.id, 20)
        dealer_request_service.approve_request(req.id, admin.id)

        product.packet_price_cents = 600
        db_session.commit()

        stats = reporting_service.dealer_stats(stalkist.id, dealer.id)["stats"]
        assert stats["total_value_approved"] == "1200.00"

    def test_other_stalkists_dealer(self, client, admin, dealer):
        other = make_user("South Stalkist", "south@dealernet.test", "stalkist", admin)

        resp = client.get(f"/api/dealer-requests/dealer/{dealer.id}/stats", headers=headers_for(other))

        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Dealer not found or access denied"

    def test_dealer_cannot_read_stats(self, client, dealer_headers, dealer):
        resp = client.get(f"/api/dealer-requests/dealer/{dealer.id}/stats", headers=dealer_headers)
        assert resp.status_code == 403

    def test_no_requests(self, db_session, stalkist, dealer):
        stats = reporting_service.dealer_stats(stalkist.id, dealer.id)["stats"]
        assert stats["total_requests"] == 0
        assert stats["total_value_requested"] == "0.00"


class TestRoleCounts:

    def test_counts(self, client, admin_headers, salesman, dealer_b):
        resp = client.get("/api/reports/user-counts", headers=admin_headers)

        assert resp.status_code == 200
        counts = resp.get_json()["data"]["counts"]
        assert counts == {"admin": 1, "stalkist": 1, "dealer": 2, "salesman": 1}

    def test_inactive_not_counted(self, db_session, admin, stalkist):
        stalkist.is_active = False
        db_session.commit()
        assert reporting_service.role_counts() == {"admin": 1, "stalkist": 0, "dealer": 0, "salesman": 0}

    def test_stalkist_forbidden(self, client, stalkist_headers):
        assert client.get("/api/reports/user-counts", headers=stalkist_headers).status_code == 403
