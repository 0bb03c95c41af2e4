# Overview: Bearer-token sessions for the dealer network API.

"""
Bearer sessions

Login hands the client an opaque token; only its SHA-256 digest is stored
in session_tokens. A session dies when any of these hold:
- expires_at has passed (SESSION_ABSOLUTE_TIMEOUT_HOURS after login)
- it was idle longer than SESSION_IDLE_TIMEOUT_HOURS
- the user logged out or was deactivated

Role and permissions are resolved from the users row on each call, never
cached on the session, so a role change applies to open sessions.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..errors import NotFound
from ..permissions import get_role_permissions
from dealernet.time_utils import utcnow


@dataclass
class SessionContext:
    """What require_auth puts on flask.g for the current caller."""
    user: User
    session: SessionToken
    role: str
    permissions: frozenset


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 2))


def generate_token() -> str:
    """64 hex chars from the OS CSPRNG; returned to the client once."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens carry 256 bits of entropy, so an unsalted digest is enough
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Open a session for a user who has just authenticated.

    Returns (row, plaintext token). Raises NotFound for an unknown user id.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its caller, or None if it no longer works.

    Idle sessions and sessions of deactivated users are revoked on the spot;
    a live session has last_used_at bumped.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        role=user.role,
        permissions=get_role_permissions(user.role),
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Logout. False when the token is unknown or already revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """End every open session of a user (CLI deactivate). Returns how many were open."""
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).all()

    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason

    db.session.commit()
    return len(sessions)
