# Overview: Flask API routes for dealer requests and their payment receipts.

"""
Dealer request routes

Dealers file requests and upload payment receipts; admins approve/cancel
requests and verify/reject payments; stalkists read stats of the dealers
they created.

Static paths (/upi-id, /dealer/...) are registered before /<int:request_id>.
"""

from flask import Blueprint, request, g

from ..services import dealer_request_service
from ..services import payment_service
from ..services import reporting_service
from ..errors import DomainError
from ..decorators import require_auth, require_permission, require_any_permission
from ..validation import json_object
from ..responses import ok, error_response, server_error


dealer_requests_bp = Blueprint("dealer_requests", __name__, url_prefix="/api/dealer-requests")


def _scope_all() -> bool:
    return "VIEW_ALL_DEALER_REQUESTS" in g.permissions


def _notes() -> str | None:
    return json_object(request.get_json(silent=True)).get("notes")


# =============================================================================
# PAYMENT SETTINGS
# =============================================================================

@dealer_requests_bp.get("/upi-id")
@require_auth
@require_permission("VIEW_PAYMENT_SETTINGS")
def get_upi_id_route():
    try:
        return ok({"upi_id": payment_service.get_upi_id()})
    except Exception:
        return server_error("get UPI id")


@dealer_requests_bp.put("/upi-id")
@require_auth
@require_permission("MANAGE_PAYMENT_SETTINGS")
def set_upi_id_route():
    try:
        data = json_object(request.get_json(silent=True))
        upi_id = payment_service.set_upi_id(data.get("upi_id"), g.current_user.id)
        return ok({"upi_id": upi_id}, message="UPI id updated")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("set UPI id")


# =============================================================================
# STALKIST STATS
# =============================================================================

@dealer_requests_bp.get("/dealer/<int:dealer_id>/stats")
@require_auth
@require_permission("VIEW_DEALER_STATS")
def dealer_stats_route(dealer_id: int):
    try:
        return ok(reporting_service.dealer_stats(g.current_user.id, dealer_id))
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("fetch dealer statistics")


# =============================================================================
# REQUESTS
# =============================================================================

@dealer_requests_bp.post("")
@require_auth
@require_permission("CREATE_DEALER_REQUESTS")
def create_request_route():
    try:
        data = json_object(request.get_json(silent=True))
        req = dealer_request_service.create_request(
            g.current_user.id,
            data.get("product_id"),
            data.get("strips"),
        )
        return ok({"request": req.to_dict()}, message="Request created successfully", status=201)
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("create dealer request")


@dealer_requests_bp.get("")
@require_auth
@require_any_permission("VIEW_OWN_DEALER_REQUESTS", "VIEW_ALL_DEALER_REQUESTS")
def list_requests_route():
    """
    Query params:
    - status: pending | approved | cancelled (optional)
    - payment_status: pending | paid | verified | rejected (optional)
    """
    try:
        requests = dealer_request_service.list_requests(
            g.current_user,
            scope_all=_scope_all(),
            status=request.args.get("status"),
            payment_status=request.args.get("payment_status"),
        )
        return ok({"requests": [r.to_dict() for r in requests]})
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("list dealer requests")


@dealer_requests_bp.get("/<int:request_id>")
@require_auth
@require_any_permission("VIEW_OWN_DEALER_REQUESTS", "VIEW_ALL_DEALER_REQUESTS")
def get_request_route(request_id: int):
    try:
        req = dealer_request_service.get_visible_request(
            request_id, g.current_user, scope_all=_scope_all()
        )
        return ok({"request": req.to_dict()})
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("get dealer request")


@dealer_requests_bp.put("/<int:request_id>/approve")
@require_auth
@require_permission("PROCESS_DEALER_REQUESTS")
def approve_request_route(request_id: int):
    try:
        req = dealer_request_service.approve_request(request_id, g.current_user.id, _notes())
        return ok({"request": req.to_dict()}, message="Request approved successfully")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("approve dealer request")


@dealer_requests_bp.put("/<int:request_id>/cancel")
@require_auth
@require_permission("PROCESS_DEALER_REQUESTS")
def cancel_request_route(request_id: int):
    try:
        req = dealer_request_service.cancel_request(request_id, g.current_user.id, _notes())
        return ok({"request": req.to_dict()}, message="Request cancelled successfully")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("cancel dealer request")


# =============================================================================
# PAYMENTS
# =============================================================================

@dealer_requests_bp.put("/<int:request_id>/upload-receipt")
@require_auth
@require_permission("UPLOAD_RECEIPTS")
def upload_receipt_route(request_id: int):
    """Multipart upload; the file goes in the "receipt" field."""
    try:
        req = payment_service.upload_receipt(
            request_id, g.current_user.id, request.files.get("receipt")
        )
        return ok({"request": req.to_dict()}, message="Receipt uploaded successfully")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("upload receipt")


@dealer_requests_bp.put("/<int:request_id>/verify-payment")
@require_auth
@require_permission("VERIFY_PAYMENTS")
def verify_payment_route(request_id: int):
    try:
        req = payment_service.verify_payment(request_id, g.current_user.id, _notes())
        return ok({"request": req.to_dict()}, message="Payment verified successfully")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("verify payment")


@dealer_requests_bp.put("/<int:request_id>/reject-payment")
@require_auth
@require_permission("VERIFY_PAYMENTS")
def reject_payment_route(request_id: int):
    try:
        req = payment_service.reject_payment(request_id, g.current_user.id, _notes())
        return ok({"request": req.to_dict()}, message="Payment rejected")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("reject payment")
