# Overview: Flask API routes for dealer -> salesman stock allocation.

from flask import Blueprint, request, g

from ..services import allocation_service
from ..errors import DomainError
from ..decorators import require_auth, require_permission
from ..validation import json_object
from ..responses import ok, error_response, server_error


stock_allocation_bp = Blueprint("stock_allocation", __name__, url_prefix="/api/stock-allocation")


@stock_allocation_bp.post("/allocate")
@require_auth
@require_permission("ALLOCATE_STOCK")
def allocate_route():
    """
    Body: {salesman_id, product_id, strips, notes?}

    Fails with InsufficientStock (400, available/requested) when strips
    exceed the dealer's unallocated approved strips for the product.
    """
    try:
        data = json_object(request.get_json(silent=True))
        allocation, total_allocated = allocation_service.allocate(
            g.current_user.id,
            data.get("salesman_id"),
            data.get("product_id"),
            data.get("strips"),
            data.get("notes"),
        )
        return ok(
            {"allocation": allocation.to_dict(), "total_allocated": total_allocated},
            message="Stock allocated successfully",
            status=201,
        )
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("allocate stock")


@stock_allocation_bp.get("/dealer/stock")
@require_auth
@require_permission("VIEW_DEALER_STOCK")
def dealer_stock_route():
    try:
        return ok({"stocks": allocation_service.get_dealer_stock(g.current_user.id)})
    except Exception:
        return server_error("fetch dealer stock")


@stock_allocation_bp.get("/dealer/allocations")
@require_auth
@require_permission("VIEW_DEALER_STOCK")
def dealer_allocations_route():
    try:
        return ok({"allocations": allocation_service.get_dealer_allocations(g.current_user.id)})
    except Exception:
        return server_error("fetch dealer allocations")


@stock_allocation_bp.get("/dealer/salesmen")
@require_auth
@require_permission("ALLOCATE_STOCK")
def dealer_salesmen_route():
    try:
        salesmen = allocation_service.list_dealer_salesmen(g.current_user.id)
        return ok({"salesmen": [s.summary() for s in salesmen]})
    except Exception:
        return server_error("list salesmen")


@stock_allocation_bp.get("/salesman/stock")
@require_auth
@require_permission("VIEW_SALESMAN_STOCK")
def salesman_stock_route():
    try:
        return ok({"stocks": allocation_service.get_salesman_stock(g.current_user.id)})
    except Exception:
        return server_error("fetch salesman stock")
