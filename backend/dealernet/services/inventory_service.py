# Overview: Service-layer operations for the product stock pool (inventory ledger).

# backend/dealernet/services/inventory_service.py
"""
Inventory Ledger Invariants (authoritative)

Stock model:
- Product.stock is the single global pool, counted in strips.
- stock >= 0 at all times.

Mutation rules:
- Every stock change is ONE conditional UPDATE whose WHERE clause carries the
  precondition (stock >= n for decrements). A matched-row count of 0 means the
  precondition failed; the caller gets InsufficientStock with a fresh read of
  the current value. There is never a read-modify-write of the stock column
  in Python.
- decrement_stock never commits: approval calls it inside its own transaction
  so the stock debit and the request status change commit (or roll back) together.
- increment_stock / override_stock are admin corrections, outside the request
  flow, and are recorded in the audit ledger.
"""

from __future__ import annotations

from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Product
from ..errors import InsufficientStock, NotFound, ValidationError
from ..validation import MAX_STRIPS
from .concurrency import guarded_update, run_with_retry
from .ledger_service import append_ledger_event


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def current_stock(product_id: int) -> int:
    """Fresh read of the stock column, bypassing any identity-map copy."""
    value = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    if value is None:
        raise NotFound("Product not found")
    return int(value)


def check_available(product: Product, strips: int) -> None:
    """
    Soft availability check (request creation).

    Stock can change before approval, so approval repeats the check as part
    of the conditional decrement.
    """
    if product.stock < strips:
        raise InsufficientStock(available=product.stock, requested=strips)


def decrement_stock(product_id: int, strips: int) -> int:
    """
    Debit strips from a product's stock: UPDATE ... WHERE stock >= strips.

    Joins the caller's transaction (no commit). Returns the remaining stock.

    Raises:
        NotFound: product does not exist
        InsufficientStock: stock < strips at the moment of the write
    """
    if strips < 1:
        raise ValidationError("strips must be at least 1")

    matched = guarded_update(
        db.session.query(Product).filter(Product.id == product_id, Product.stock >= strips),
        {Product.stock: Product.stock - strips},
    )
    if matched != 1:
        available = current_stock(product_id)  # raises NotFound for a missing product
        raise InsufficientStock(available=available, requested=strips)

    return current_stock(product_id)


def increment_stock(product_id: int, strips: int, actor_id: int, note: str | None = None) -> Product:
    """
    Admin restock: add strips to a product's stock and commit.

    Not part of the request flow; approval never increments.
    """
    if strips < 1:
        raise ValidationError("strips must be at least 1")

    def _op():
        matched = guarded_update(
            db.session.query(Product).filter(
                Product.id == product_id,
                Product.stock <= MAX_STRIPS - strips,
            ),
            {Product.stock: Product.stock + strips},
        )
        if matched != 1:
            current_stock(product_id)  # NotFound when missing
            raise ValidationError(f"stock cannot exceed {MAX_STRIPS}")

        append_ledger_event(
            event_type="product.restocked",
            entity_type="product",
            entity_id=product_id,
            actor_user_id=actor_id,
            product_id=product_id,
            quantity_delta=strips,
            note=note,
        )
        db.session.commit()
        return get_product(product_id)

    return run_with_retry(_op)


def override_stock(product_id: int, new_stock: int, actor_id: int, note: str | None = None) -> int:
    """
    Admin explicit stock edit. Sets the value outright and records the delta.

    Joins the caller's transaction (products_service.update_product commits it
    together with the other field changes). Returns the signed delta applied.
    """
    if new_stock < 0:
        raise ValidationError("stock cannot be negative")

    before = current_stock(product_id)
    matched = guarded_update(
        db.session.query(Product).filter(Product.id == product_id, Product.stock == before),
        {Product.stock: new_stock},
    )
    if matched != 1:
        # stock moved between the read and the write; let the retry loop re-read
        raise StaleDataError("product stock changed during override")

    delta = new_stock - before
    if delta:
        append_ledger_event(
            event_type="product.stock_override",
            entity_type="product",
            entity_id=product_id,
            actor_user_id=actor_id,
            product_id=product_id,
            quantity_delta=delta,
            note=note,
        )
    return delta
