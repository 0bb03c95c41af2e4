# Overview: JSON response envelope shared by every route.

"""
Every API response is {success, message, data}; errors are
{success: false, message, ...details}.
"""

from __future__ import annotations

from flask import current_app, jsonify

from .errors import DomainError
from .extensions import db


def ok(data: dict | None = None, message: str = "OK", status: int = 200):
    return jsonify({"success": True, "message": message, "data": data if data is not None else {}}), status


def fail(message: str, status: int = 400, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def error_response(e: DomainError):
    """Render a service-layer DomainError with its status code and details."""
    return fail(e.message, e.status_code, **e.details())


def server_error(action: str):
    """
    Roll back, log the active exception and answer 500.

    Call only from inside an except block.
    """
    db.session.rollback()
    current_app.logger.exception("Failed to %s", action)
    return fail("Internal server error", 500)
