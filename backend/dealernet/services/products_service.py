# backend/dealernet/services/products_service.py
"""
Products Service

Admin-owned catalog. Field edits go through the validation policy in the
route; stock edits never write the column directly and are routed through
inventory_service (override / restock) so each change lands in the audit
ledger.

Deletion is refused while any dealer request or allocation references the
product; those rows carry stock history that must stay resolvable.
"""
from __future__ import annotations

from ..extensions import db
from ..models import DealerRequest, LedgerEvent, Product, StockAllocation
from ..errors import Conflict, NotFound
from dealernet.time_utils import utcnow
from .concurrency import guarded_update, lock_for_update, run_with_retry
from .inventory_service import get_product, increment_stock, override_stock
from .ledger_service import append_ledger_event

PRODUCT_MUTABLE_FIELDS = {"title", "description", "packet_price_cents", "packets_per_strip", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.title.asc(), Product.id.asc()).all()


def create_product(*, patch: dict, actor_id: int) -> Product:
    """
    Create product using a validated patch dict.

    stock in the patch becomes the opening stock and is recorded in the ledger.
    """
    p = Product(created_by_id=actor_id, stock=patch.get("stock") or 0)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()  # ensure p.id exists before ledger append

    append_ledger_event(
        event_type="product.created",
        entity_type="product",
        entity_id=p.id,
        actor_user_id=actor_id,
        product_id=p.id,
        quantity_delta=p.stock or None,
        note=f"Created product title={p.title}",
    )

    db.session.commit()
    return p


def update_product(*, product_id: int, patch: dict, actor_id: int) -> Product:
    """
    Partial update. A "stock" key is an explicit admin override.

    Raises:
        NotFound: product does not exist
    """
    def _op():
        p = get_product(product_id)

        fields = [k for k in patch if k in PRODUCT_MUTABLE_FIELDS]
        apply_product_patch(p, patch)
        if fields:
            p.updated_at = utcnow()
            append_ledger_event(
                event_type="product.updated",
                entity_type="product",
                entity_id=p.id,
                actor_user_id=actor_id,
                product_id=p.id,
                note=f"Updated fields: {', '.join(sorted(fields))}",
            )
        db.session.flush()

        if patch.get("stock") is not None:
            override_stock(product_id, patch["stock"], actor_id, note="Stock set by admin")

        db.session.commit()
        db.session.expire_all()
        return get_product(product_id)

    return run_with_retry(_op)


def restock_product(*, product_id: int, strips: int, actor_id: int, note: str | None = None) -> Product:
    return increment_stock(product_id, strips, actor_id, note=note or None)


def delete_product(*, product_id: int, actor_id: int) -> None:
    """
    Hard-delete an unreferenced product.

    The product row is locked and written before the reference check, so a
    dealer request filed concurrently either commits first and is seen here,
    or finds the product gone when create_request re-checks after its insert.

    Raises:
        NotFound: product does not exist
        Conflict: product has dealer requests or allocations
    """
    def _op():
        p = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if p is None:
            raise NotFound("Product not found")
        guarded_update(
            db.session.query(Product).filter(Product.id == product_id),
            {Product.updated_at: utcnow()},
        )

        referenced = (
            db.session.query(DealerRequest.id).filter(DealerRequest.product_id == product_id).first()
            or db.session.query(StockAllocation.id).filter(StockAllocation.product_id == product_id).first()
        )
        if referenced:
            raise Conflict("Product has dealer requests or allocations and cannot be deleted")

        # Mirrors the FK's ON DELETE SET NULL on backends that do not enforce it
        db.session.query(LedgerEvent).filter(LedgerEvent.product_id == product_id).update(
            {LedgerEvent.product_id: None}, synchronize_session=False
        )

        append_ledger_event(
            event_type="product.deleted",
            entity_type="product",
            entity_id=product_id,
            actor_user_id=actor_id,
            note=f"Deleted product title={p.title}",
        )

        db.session.delete(p)
        db.session.commit()

    run_with_retry(_op)
