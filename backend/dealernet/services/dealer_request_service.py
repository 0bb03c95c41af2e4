# backend/dealernet/services/dealer_request_service.py
"""
Dealer request service.

WHY: A dealer draws strips from the central product stock by filing a
request that an admin approves or cancels. Approval is the only path that
debits Product.stock.

LIFECYCLE:
1. PENDING: Request created by the dealer (soft stock check)
2. APPROVED: Admin approved; stock debited in the same transaction (terminal)
3. CANCELLED: Admin cancelled; no stock effect (terminal)

CONCURRENCY:
- approve flips status with UPDATE ... WHERE status = 'pending' and debits
  stock with UPDATE ... WHERE stock >= strips, then commits both. If either
  guard matches zero rows the whole unit rolls back: a second concurrent
  approval of the same request gets InvalidState, a concurrent approval of
  another request that would over-draw the product gets InsufficientStock.
- Retrying approve/cancel on a processed request is answered with
  InvalidState and never re-applies the stock debit.
"""
from __future__ import annotations

from ..extensions import db
from ..models import DealerRequest, Product, User
from ..errors import Forbidden, InvalidState, NotFound, ValidationError
from ..validation import require_id, require_strips, optional_text
from dealernet.time_utils import utcnow
from .concurrency import guarded_update, lock_for_update, run_with_retry
from .inventory_service import check_available, decrement_stock
from .ledger_service import append_ledger_event


# Request status constants
REQUEST_STATUS_PENDING = "pending"
REQUEST_STATUS_APPROVED = "approved"
REQUEST_STATUS_CANCELLED = "cancelled"

VALID_REQUEST_STATUSES = [
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_CANCELLED,
]


def get_request(request_id: int) -> DealerRequest:
    request = db.session.get(DealerRequest, request_id)
    if request is None:
        raise NotFound("Request not found")
    return request


def create_request(dealer_id: int, product_id, strips) -> DealerRequest:
    """
    File a new request (status: pending, payment_status: pending).

    Args:
        dealer_id: Requesting dealer
        product_id: Product to draw from
        strips: Number of strips (int >= 1)

    Returns:
        DealerRequest: The created request

    Raises:
        ValidationError: Missing/invalid product_id or strips
        NotFound: Product does not exist
        InsufficientStock: strips > current product stock
    """
    product_id = require_id(product_id, "product_id")
    strips = require_strips(strips)

    def _op():
        product = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id)
        ).first()
        if product is None:
            raise NotFound("Product not found")

        check_available(product, strips)

        request = DealerRequest(
            dealer_id=dealer_id,
            product_id=product_id,
            strips=strips,
            status=REQUEST_STATUS_PENDING,
            payment_status="pending",
            requested_at=utcnow(),
        )
        db.session.add(request)
        db.session.flush()  # Get ID

        # The insert holds the write lock; a delete that committed after the read above shows here
        if db.session.query(Product.id).filter(Product.id == product_id).scalar() is None:
            raise NotFound("Product not found")

        append_ledger_event(
            event_type="dealer_request.created",
            entity_type="dealer_request",
            entity_id=request.id,
            actor_user_id=dealer_id,
            product_id=product_id,
            dealer_request_id=request.id,
        )

        db.session.commit()
        return request

    return run_with_retry(_op)


def _process_request(
    request_id: int,
    admin_id: int,
    new_status: str,
    notes: str | None,
) -> DealerRequest:
    """Shared approve/cancel transition. Approval also debits stock."""
    notes = optional_text(notes, "notes")

    def _op():
        request = lock_for_update(
            db.session.query(DealerRequest).filter_by(id=request_id)
        ).first()
        if request is None:
            raise NotFound("Request not found")

        if request.status != REQUEST_STATUS_PENDING:
            raise InvalidState(f"Request is already {request.status}")

        now = utcnow()
        matched = guarded_update(
            db.session.query(DealerRequest).filter(
                DealerRequest.id == request_id,
                DealerRequest.status == REQUEST_STATUS_PENDING,
            ),
            {
                DealerRequest.status: new_status,
                DealerRequest.processed_by_id: admin_id,
                DealerRequest.processed_at: now,
                DealerRequest.notes: notes,
                DealerRequest.updated_at: now,
            },
        )
        if matched != 1:
            db.session.rollback()
            current = db.session.query(DealerRequest.status).filter_by(id=request_id).scalar()
            raise InvalidState(f"Request is already {current}")

        quantity_delta = None
        if new_status == REQUEST_STATUS_APPROVED:
            # Rolls back the status flip above if stock is short
            decrement_stock(request.product_id, request.strips)
            quantity_delta = -request.strips

        append_ledger_event(
            event_type=f"dealer_request.{new_status}",
            entity_type="dealer_request",
            entity_id=request_id,
            actor_user_id=admin_id,
            product_id=request.product_id,
            dealer_request_id=request_id,
            quantity_delta=quantity_delta,
            note=notes or None,
        )

        db.session.commit()
        return get_request(request_id)

    return run_with_retry(_op)


def approve_request(request_id: int, admin_id: int, notes: str | None = None) -> DealerRequest:
    """
    Approve a pending request and debit the product stock atomically.

    Raises:
        NotFound: Request does not exist
        InvalidState: Request already approved/cancelled
        InsufficientStock: Stock fell below the requested strips; the
            request stays pending
    """
    return _process_request(request_id, admin_id, REQUEST_STATUS_APPROVED, notes)


def cancel_request(request_id: int, admin_id: int, notes: str | None = None) -> DealerRequest:
    """
    Cancel a pending request. Nothing was debited, so nothing is restored.

    Raises:
        NotFound: Request does not exist
        InvalidState: Request already approved/cancelled
    """
    return _process_request(request_id, admin_id, REQUEST_STATUS_CANCELLED, notes)


def list_requests(
    viewer: User,
    *,
    scope_all: bool,
    status: str | None = None,
    payment_status: str | None = None,
) -> list[DealerRequest]:
    """
    Requests visible to the viewer, newest first.

    scope_all=True returns every dealer's requests; otherwise only the
    viewer's own.
    """
    from .payment_service import VALID_PAYMENT_STATUSES

    query = db.session.query(DealerRequest)
    if not scope_all:
        query = query.filter(DealerRequest.dealer_id == viewer.id)

    if status:
        if status not in VALID_REQUEST_STATUSES:
            raise ValidationError(f"Invalid status: {status}. Must be one of {VALID_REQUEST_STATUSES}")
        query = query.filter(DealerRequest.status == status)

    if payment_status:
        if payment_status not in VALID_PAYMENT_STATUSES:
            raise ValidationError(
                f"Invalid payment_status: {payment_status}. Must be one of {VALID_PAYMENT_STATUSES}"
            )
        query = query.filter(DealerRequest.payment_status == payment_status)

    return query.order_by(DealerRequest.created_at.desc(), DealerRequest.id.desc()).all()


def get_visible_request(request_id: int, viewer: User, *, scope_all: bool) -> DealerRequest:
    """
    Single request, enforcing ownership when the viewer is not scope_all.

    Raises:
        NotFound: Request does not exist
        Forbidden: Request belongs to another dealer
    """
    request = get_request(request_id)
    if not scope_all and request.dealer_id != viewer.id:
        raise Forbidden("Access denied")
    return request
