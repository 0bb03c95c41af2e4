# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Login exchanges email + password for an opaque bearer token; the token is
sent as "Authorization: Bearer <token>" on every other route.

Self-registration does not exist: accounts are created from the CLI
(flask users create), which records the creating account.
"""

from flask import Blueprint, request, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth, bearer_token
from ..errors import DomainError
from ..responses import ok, fail, error_response, server_error
from ..validation import json_object
from dealernet.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info, the token, its expiry and the caller's permissions.
    """
    try:
        data = json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            return fail("email and password required", 400)

        user = auth_service.authenticate(email, password)
        if not user:
            return fail("Invalid credentials", 401)

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        context = session_service.validate_session(token)

        return ok({
            "user": user.to_dict(),
            "token": token,
            "permissions": sorted(context.permissions),
            "expires_at": to_utc_z(session.expires_at),
        }, message="Login successful")

    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("login user")


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token(), reason="User logout")
    return ok(message="Logged out")


@auth_bp.get("/me")
@require_auth
def me_route():
    return ok({
        "user": g.current_user.to_dict(),
        "permissions": sorted(g.permissions),
    })
