"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401 in the response envelope
- Login / me / logout round trip
- Each role is limited to its own capabilities (403)
"""

from datetime import timedelta

import pytest

from dealernet.errors import Conflict, ValidationError
from dealernet.models import SessionToken
from dealernet.services import session_service
from dealernet.time_utils import utcnow

from conftest import TEST_PASSWORD, auth_headers, make_user


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/dealer-requests"),
            ("POST", "/api/dealer-requests"),
            ("GET", "/api/dealer-requests/1"),
            ("PUT", "/api/dealer-requests/1/approve"),
            ("PUT", "/api/dealer-requests/1/upload-receipt"),
            ("GET", "/api/dealer-requests/upi-id"),
            ("GET", "/api/dealer-requests/dealer/1/stats"),
            ("POST", "/api/stock-allocation/allocate"),
            ("GET", "/api/stock-allocation/dealer/stock"),
            ("GET", "/api/stock-allocation/salesman/stock"),
            ("GET", "/api/reports/user-counts"),
            ("GET", "/api/ledger"),
            ("GET", "/uploads/receipts/x.jpg"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["success"] is False

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


# =============================================================================
# LOGIN / SESSION
# =============================================================================


class TestLogin:

    def test_login_me_logout(self, client, dealer):
        resp = client.post("/api/auth/login", json={"email": "DEALER.A@dealernet.test", "password": TEST_PASSWORD})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["role"] == "dealer"
        assert "CREATE_DEALER_REQUESTS" in data["permissions"]
        assert data["expires_at"].endswith("Z")
        headers = auth_headers(data["token"])

        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["id"] == dealer.id

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_bad_password(self, client, dealer):
        resp = client.post("/api/auth/login", json={"email": dealer.email, "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid credentials"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_deactivated_user_rejected(self, client, db_session, dealer, dealer_headers):
        dealer.is_active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=dealer_headers).status_code == 401

    def test_revoke_all_sessions(self, client, db_session, dealer):
        first = auth_headers(session_service.create_session(dealer.id)[1])
        second = auth_headers(session_service.create_session(dealer.id)[1])

        assert session_service.revoke_all_user_sessions(dealer.id) == 2
        assert client.get("/api/auth/me", headers=first).status_code == 401
        assert client.get("/api/auth/me", headers=second).status_code == 401

    def test_idle_session_expires(self, client, db_session, dealer):
        session, token = session_service.create_session(dealer.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        db_session.expire_all()
        assert db_session.get(SessionToken, session.id).is_revoked is True


# =============================================================================
# ROLE CAPABILITIES - 403
# =============================================================================


class TestRoleBoundaries:

    def test_salesman_denied(self, client, salesman_headers):
        assert client.post("/api/dealer-requests", json={"product_id": 1, "strips": 1},
                           headers=salesman_headers).status_code == 403
        assert client.get("/api/stock-allocation/dealer/stock", headers=salesman_headers).status_code == 403
        assert client.get("/api/ledger", headers=salesman_headers).status_code == 403

    def test_stalkist_denied(self, client, stalkist_headers):
        assert client.get("/api/dealer-requests", headers=stalkist_headers).status_code == 403
        assert client.post("/api/products", json={}, headers=stalkist_headers).status_code == 403

    def test_admin_cannot_allocate_or_request(self, client, admin_headers):
        assert client.post("/api/dealer-requests", json={}, headers=admin_headers).status_code == 403
        assert client.post("/api/stock-allocation/allocate", json={}, headers=admin_headers).status_code == 403

    def test_denial_body(self, client, salesman_headers):
        resp = client.get("/api/reports/user-counts", headers=salesman_headers)
        body = resp.get_json()
        assert body["success"] is False
        assert body["required_permission"] == "VIEW_USER_COUNTS"

    def test_everyone_sees_products(self, client, admin_headers, stalkist_headers, dealer_headers, salesman_headers):
        for headers in (admin_headers, stalkist_headers, dealer_headers, salesman_headers):
            assert client.get("/api/products", headers=headers).status_code == 200


class TestEnvelope:

    def test_unknown_route(self, client, db_session):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"success": False, "message": "Not found"}

    def test_wrong_method(self, client, db_session):
        resp = client.delete("/api/auth/login")
        assert resp.status_code == 405
        assert resp.get_json()["success"] is False

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "healthy"


class TestAccountHierarchy:

    def test_legacy_role_spelling(self, stalkist):
        user = make_user("Dealer C", "dealer.c@dealernet.test", "dellear", stalkist)
        assert user.role == "dealer"
        assert user.created_by_id == stalkist.id

    def test_dealer_cannot_create_dealer(self, dealer):
        with pytest.raises(Conflict):
            make_user("Dealer D", "dealer.d@dealernet.test", "dealer", dealer)

    def test_salesman_needs_creator(self, db_session):
        with pytest.raises(ValidationError):
            make_user("Orphan", "orphan@dealernet.test", "salesman")

    def test_duplicate_email(self, dealer, stalkist):
        with pytest.raises(Conflict):
            make_user("Dealer A again", "Dealer.A@dealernet.test", "dealer", stalkist)


class TestPermissionCatalog:

    def test_every_granted_code_is_defined(self):
        from dealernet.permissions import DEFAULT_ROLE_PERMISSIONS, get_permission_definition

        for role, codes in DEFAULT_ROLE_PERMISSIONS.items():
            for code in codes:
                assert get_permission_definition(code) is not None, f"{role}: {code}"

    def test_unknown_code_rejected_at_decoration(self):
        from dealernet.decorators import require_permission

        with pytest.raises(ValueError):
            require_permission("LAUNCH_ROCKETS")
