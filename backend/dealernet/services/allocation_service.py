# Overview: Service-layer operations for the dealer -> salesman stock allocation ledger.

"""
Stock Allocation Ledger

WHY: A dealer's stock is not stored; it is derived. For each product:

    total     = SUM(strips of the dealer's approved requests)
    allocated = SUM(strips the dealer has allocated to salesmen)
    available = total - allocated

Allocations are append-only (they mirror a physical handoff), so there is no
undo path and available can only shrink between approvals.

CONCURRENCY:
The availability check and the append must be one atomic unit, otherwise two
allocations could each see the same available figure. Every allocation first
claims the dealer's row (UPDATE users SET ledger_version = ledger_version + 1
WHERE id = :dealer). That write serializes allocators for the same dealer on
every backend (row lock on Postgres/MySQL, database write lock on SQLite);
the sums are computed only after the claim, inside the same transaction.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import DealerRequest, Product, StockAllocation, User
from ..errors import InsufficientStock, NotFound
from ..permissions import Role
from ..validation import optional_text, require_id, require_strips
from .concurrency import guarded_update, run_with_retry
from .ledger_service import append_ledger_event
from dealernet.time_utils import to_utc_z


def _approved_strips(dealer_id: int, product_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(DealerRequest.strips), 0))
        .filter(
            DealerRequest.dealer_id == dealer_id,
            DealerRequest.product_id == product_id,
            DealerRequest.status == "approved",
        )
        .scalar()
    )
    return int(total or 0)


def _allocated_strips(dealer_id: int, product_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(StockAllocation.strips), 0))
        .filter(
            StockAllocation.dealer_id == dealer_id,
            StockAllocation.product_id == product_id,
        )
        .scalar()
    )
    return int(total or 0)


def _claim_dealer_ledger(dealer_id: int) -> None:
    matched = guarded_update(
        db.session.query(User).filter(User.id == dealer_id, User.role == Role.DEALER),
        {User.ledger_version: User.ledger_version + 1},
    )
    if matched != 1:
        raise NotFound("Dealer not found")


def _get_owned_salesman(dealer_id: int, salesman_id: int) -> User:
    salesman = (
        db.session.query(User)
        .filter(
            User.id == salesman_id,
            User.role == Role.SALESMAN,
            User.created_by_id == dealer_id,
            User.is_active.is_(True),
        )
        .first()
    )
    if salesman is None:
        raise NotFound("Salesman not found or not assigned to you")
    return salesman


def allocate(
    dealer_id: int,
    salesman_id,
    product_id,
    strips,
    notes: str | None = None,
) -> tuple[StockAllocation, int]:
    """
    Hand strips from the dealer's approved stock to one of their salesmen.

    Args:
        dealer_id: Allocating dealer
        salesman_id: Receiving salesman (created by this dealer)
        product_id: Product being allocated
        strips: Number of strips (int >= 1)
        notes: Optional free text

    Returns:
        (allocation, total_allocated) where total_allocated is the dealer's
        total allocated strips for the product after this allocation.

    Raises:
        ValidationError: Bad ids, strips or notes
        NotFound: Salesman not owned by the dealer, or product missing
        InsufficientStock: strips > dealer's available strips for the product
    """
    salesman_id = require_id(salesman_id, "salesman_id")
    product_id = require_id(product_id, "product_id")
    strips = require_strips(strips)
    notes = optional_text(notes, "notes")

    def _op():
        _get_owned_salesman(dealer_id, salesman_id)

        if db.session.get(Product, product_id) is None:
            raise NotFound("Product not found")

        _claim_dealer_ledger(dealer_id)

        available = _approved_strips(dealer_id, product_id) - _allocated_strips(dealer_id, product_id)
        if strips > available:
            raise InsufficientStock(available=available, requested=strips)

        allocation = StockAllocation(
            dealer_id=dealer_id,
            salesman_id=salesman_id,
            product_id=product_id,
            strips=strips,
            notes=notes,
        )
        db.session.add(allocation)
        db.session.flush()

        append_ledger_event(
            event_type="stock.allocated",
            entity_type="stock_allocation",
            entity_id=allocation.id,
            actor_user_id=dealer_id,
            product_id=product_id,
            allocation_id=allocation.id,
            quantity_delta=-strips,
            note=notes or None,
        )

        total_allocated = _allocated_strips(dealer_id, product_id)
        db.session.commit()
        return allocation, total_allocated

    return run_with_retry(_op)


def _fifo_lots(requests: list[DealerRequest], allocated: int) -> list[dict]:
    """Attribute allocated strips to approved requests, oldest first."""
    lots = []
    remaining = allocated
    for req in requests:
        used = min(req.strips, remaining)
        remaining -= used
        lots.append({
            "request_id": req.id,
            "strips": req.strips,
            "allocated_strips": used,
            "available_strips": req.strips - used,
            "approved_at": to_utc_z(req.processed_at),
        })
    return lots


def get_dealer_stock(dealer_id: int) -> list[dict]:
    """
    Dealer stock per product with any approved strips.

    Ordered by product title then id. Reads only; calling it twice without
    an intervening mutation returns identical output.
    """
    approved = (
        db.session.query(DealerRequest)
        .join(Product, Product.id == DealerRequest.product_id)
        .filter(
            DealerRequest.dealer_id == dealer_id,
            DealerRequest.status == "approved",
        )
        .order_by(
            Product.title.asc(),
            Product.id.asc(),
            DealerRequest.processed_at.asc(),
            DealerRequest.id.asc(),
        )
        .all()
    )

    allocated_by_product = dict(
        db.session.query(StockAllocation.product_id, func.sum(StockAllocation.strips))
        .filter(StockAllocation.dealer_id == dealer_id)
        .group_by(StockAllocation.product_id)
        .all()
    )

    grouped: dict[int, list[DealerRequest]] = {}
    for req in approved:
        grouped.setdefault(req.product_id, []).append(req)

    stocks = []
    for product_id, requests in grouped.items():
        product = requests[0].product
        total = sum(r.strips for r in requests)
        allocated = int(allocated_by_product.get(product_id) or 0)
        stocks.append({
            "product": product.summary(),
            "total_strips": total,
            "allocated_strips": allocated,
            "available_strips": total - allocated,
            "lots": _fifo_lots(requests, allocated),
        })
    return stocks


def get_salesman_stock(salesman_id: int) -> list[dict]:
    """Strips received by a salesman, per product, with allocation history newest first."""
    allocations = (
        db.session.query(StockAllocation)
        .join(Product, Product.id == StockAllocation.product_id)
        .filter(StockAllocation.salesman_id == salesman_id)
        .order_by(
            Product.title.asc(),
            Product.id.asc(),
            StockAllocation.created_at.desc(),
            StockAllocation.id.desc(),
        )
        .all()
    )

    stocks: dict[int, dict] = {}
    for alloc in allocations:
        entry = stocks.get(alloc.product_id)
        if entry is None:
            entry = stocks[alloc.product_id] = {
                "product": alloc.product.summary(),
                "total_strips": 0,
                "allocations": [],
            }
        entry["total_strips"] += alloc.strips
        entry["allocations"].append({
            "id": alloc.id,
            "strips": alloc.strips,
            "dealer": alloc.dealer.summary() if alloc.dealer else None,
            "notes": alloc.notes or "",
            "allocated_at": to_utc_z(alloc.created_at),
        })
    return list(stocks.values())


def get_dealer_allocations(dealer_id: int) -> list[dict]:
    """Allocations made by a dealer, grouped by salesman (newest first within each)."""
    allocations = (
        db.session.query(StockAllocation)
        .join(User, User.id == StockAllocation.salesman_id)
        .filter(StockAllocation.dealer_id == dealer_id)
        .order_by(
            User.name.asc(),
            User.id.asc(),
            StockAllocation.created_at.desc(),
            StockAllocation.id.desc(),
        )
        .all()
    )

    grouped: dict[int, dict] = {}
    for alloc in allocations:
        entry = grouped.get(alloc.salesman_id)
        if entry is None:
            entry = grouped[alloc.salesman_id] = {
                "salesman": alloc.salesman.summary(),
                "total_strips": 0,
                "allocations": [],
            }
        entry["total_strips"] += alloc.strips
        entry["allocations"].append(alloc.to_dict())
    return list(grouped.values())


def list_dealer_salesmen(dealer_id: int) -> list[User]:
    """Active salesmen created by this dealer (allocation targets)."""
    return (
        db.session.query(User)
        .filter(
            User.role == Role.SALESMAN,
            User.created_by_id == dealer_id,
            User.is_active.is_(True),
        )
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )
