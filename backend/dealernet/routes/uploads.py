# Overview: Serves stored payment receipts to the owning dealer and to admins.

from flask import Blueprint, g, send_file

from ..decorators import require_auth, require_any_permission
from ..errors import DomainError
from ..services import payment_service
from ..services.receipt_storage import resolve_receipt_path
from ..responses import error_response, fail, server_error


uploads_bp = Blueprint("uploads", __name__, url_prefix="/uploads")


@uploads_bp.get("/receipts/<name>")
@require_auth
@require_any_permission("VIEW_OWN_DEALER_REQUESTS", "VIEW_ALL_DEALER_REQUESTS")
def receipt_file_route(name: str):
    """Same visibility as the request itself: its dealer, or a VIEW_ALL_DEALER_REQUESTS holder."""
    try:
        path = resolve_receipt_path(name)
        if path is None:
            return fail("Receipt not found", 404)
        payment_service.get_receipt_request(
            name, g.current_user, scope_all="VIEW_ALL_DEALER_REQUESTS" in g.permissions
        )
        return send_file(path)
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("read receipt")
