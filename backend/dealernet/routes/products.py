# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/dealernet/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_PRODUCTS permission (every role)
- Write operations require MANAGE_PRODUCTS permission (admin)
"""
from flask import Blueprint, request, g

from ..services import products_service
from ..services.inventory_service import get_product
from ..models import Product
from ..errors import DomainError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    require_strips,
    optional_text,
    json_object,
)
from ..decorators import require_auth, require_permission
from ..responses import ok, error_response, server_error

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "packet_price_cents", "packets_per_strip", "image_url", "stock"},
    required_on_create={"title", "packet_price_cents", "packets_per_strip"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products_route():
    """List all products ordered by title."""
    try:
        products = products_service.list_products()
        return ok({"products": [p.to_dict() for p in products]})
    except Exception:
        return server_error("list products")


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    try:
        return ok({"product": get_product(product_id).to_dict()})
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("get product")


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """
    Create a new product.

    Body: title, packet_price_cents, packets_per_strip (required);
    description, image_url, stock (optional, opening stock in strips).
    """
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch, actor_id=g.current_user.id)
        return ok({"product": product.to_dict()}, message="Product created", status=201)
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("create product")


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    """
    Partial update. Sending "stock" sets the stock outright (recorded as an
    override in the audit ledger).
    """
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = products_service.update_product(
            product_id=product_id, patch=patch, actor_id=g.current_user.id
        )
        return ok({"product": product.to_dict()}, message="Product updated")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("update product")


@products_bp.post("/<int:product_id>/restock")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def restock_product_route(product_id: int):
    try:
        data = json_object(request.get_json(silent=True))
        strips = require_strips(data.get("strips"))
        note = optional_text(data.get("note"), "note")
        product = products_service.restock_product(
            product_id=product_id, strips=strips, actor_id=g.current_user.id, note=note
        )
        return ok({"product": product.to_dict()}, message="Stock added")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("restock product")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id, actor_id=g.current_user.id)
        return ok(message="Product deleted")
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("delete product")
