# Overview: Domain error taxonomy shared by services and routes.

"""
Every business-rule failure raised by a service is a DomainError subclass.
Routes render them with responses.error_response(); anything else is a 500.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class; status_code is the HTTP status the API answers with."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict:
        """Extra keys merged into the error body."""
        return {}


class ValidationError(DomainError):
    """400-level input problem."""


class InsufficientStock(DomainError):
    """Requested strips exceed what the relevant ledger can give."""

    def __init__(self, available: int, requested: int, message: str | None = None):
        super().__init__(
            message
            or f"Insufficient stock. Available: {available} strips, Requested: {requested} strips"
        )
        self.available = available
        self.requested = requested

    def details(self) -> dict:
        return {"available": self.available, "requested": self.requested}


class InvalidState(DomainError):
    """Transition not permitted from the record's current state."""


class NotFound(DomainError):
    status_code = 404


class Forbidden(DomainError):
    status_code = 403


class Unauthenticated(DomainError):
    status_code = 401


class Conflict(DomainError):
    """409-level business rule conflict (e.g., duplicate email)."""

    status_code = 409
