"""
Audit ledger API tests.
"""

from dealernet.services import dealer_request_service


class TestLedgerApi:

    def _seed(self, dealer, admin, product, n=3):
        ids = []
        for _ in range(n):
            req = dealer_request_service.create_request(dealer.id, product.id, 2)
            ids.append(req.id)
        dealer_request_service.approve_request(ids[0], admin.id, "ok")
        return ids

    def test_newest_first(self, client, admin_headers, admin, dealer, product):
        self._seed(dealer, admin, product)

        resp = client.get("/api/ledger", headers=admin_headers)

        assert resp.status_code == 200
        events = resp.get_json()["data"]["events"]
        assert [e["event_type"] for e in events] == [
            "dealer_request.approved",
            "dealer_request.created",
            "dealer_request.created",
            "dealer_request.created",
        ]
        assert events[0]["quantity_delta"] == -2
        assert events[0]["occurred_at"].endswith("Z")

    def test_filters(self, client, admin_headers, admin, dealer, product):
        ids = self._seed(dealer, admin, product)

        resp = client.get(f"/api/ledger?dealer_request_id={ids[0]}", headers=admin_headers)
        events = resp.get_json()["data"]["events"]
        assert {e["dealer_request_id"] for e in events} == {ids[0]}
        assert len(events) == 2

        resp = client.get("/api/ledger?event_type=dealer_request.approved", headers=admin_headers)
        assert len(resp.get_json()["data"]["events"]) == 1

    def test_cursor_pages(self, client, admin_headers, admin, dealer, product):
        self._seed(dealer, admin, product)

        first = client.get("/api/ledger?limit=3", headers=admin_headers).get_json()["data"]
        assert len(first["events"]) == 3
        assert first["next_cursor"] == first["events"][-1]["id"]

        second = client.get(
            f"/api/ledger?limit=3&cursor={first['next_cursor']}", headers=admin_headers
        ).get_json()["data"]
        assert len(second["events"]) == 1
        assert second["next_cursor"] is None
        assert second["events"][0]["id"] < first["events"][-1]["id"]

    def test_bad_cursor(self, client, admin_headers):
        resp = client.get("/api/ledger?cursor=abc", headers=admin_headers)
        assert resp.status_code == 400
