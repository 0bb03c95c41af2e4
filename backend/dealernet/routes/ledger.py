# Overview: Flask API routes for ledger operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..services.ledger_service import list_ledger_events, MAX_PAGE_SIZE
from ..errors import DomainError
from ..decorators import require_auth, require_permission
from ..responses import ok, error_response, server_error
from ..validation import require_id

"""
Query params:
- event_type, product_id, dealer_request_id: optional filters
- limit: 1..500 (default 100)
- cursor: next_cursor from the previous page (events with a smaller id)
"""

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


def _optional_id(name: str) -> int | None:
    raw = request.args.get(name)
    return require_id(raw, name) if raw else None


@ledger_bp.get("")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_ledger_events_route():
    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    try:
        events, next_cursor = list_ledger_events(
            event_type=request.args.get("event_type") or None,
            product_id=_optional_id("product_id"),
            dealer_request_id=_optional_id("dealer_request_id"),
            before_id=_optional_id("cursor"),
            limit=limit,
        )
        return ok({
            "events": [e.to_dict() for e in events],
            "next_cursor": next_cursor,
            "limit": limit,
        })
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("list ledger events")
