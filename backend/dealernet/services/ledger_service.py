# Overview: Service-layer operations for the audit ledger.

from __future__ import annotations

from typing import Optional

from ..extensions import db
from ..models import LedgerEvent
"""
Audit Ledger Invariants (authoritative)

- Append-only audit log for stock, request, payment and allocation events.
- No domain/business logic in the ledger itself.
- Events are written inside the same DB transaction as the change they record
  (flush only; the caller commits or rolls back both together).
"""

MAX_PAGE_SIZE = 500


def append_ledger_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id: int,
    actor_user_id: int | None = None,
    product_id: int | None = None,
    dealer_request_id: int | None = None,
    allocation_id: int | None = None,
    quantity_delta: int | None = None,
    note: Optional[str] = None,
) -> LedgerEvent:
    """
    Append-only ledger event.

    - No domain logic here.
    - No deletes/updates of existing events.
    """
    ev = LedgerEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_user_id=actor_user_id,
        product_id=product_id,
        dealer_request_id=dealer_request_id,
        allocation_id=allocation_id,
        quantity_delta=quantity_delta,
        note=note,
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev


def list_ledger_events(
    *,
    event_type: str | None = None,
    product_id: int | None = None,
    dealer_request_id: int | None = None,
    before_id: int | None = None,
    limit: int = 100,
) -> tuple[list[LedgerEvent], int | None]:
    """
    Newest-first page of ledger events.

    Returns (events, next_cursor) where next_cursor is the before_id for the
    following page, or None when this page is the last one.
    """
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    q = db.session.query(LedgerEvent)
    if event_type:
        q = q.filter(LedgerEvent.event_type == event_type)
    if product_id is not None:
        q = q.filter(LedgerEvent.product_id == product_id)
    if dealer_request_id is not None:
        q = q.filter(LedgerEvent.dealer_request_id == dealer_request_id)
    if before_id is not None:
        q = q.filter(LedgerEvent.id < before_id)

    rows = q.order_by(LedgerEvent.id.desc()).limit(limit + 1).all()

    next_cursor = None
    if len(rows) > limit:
        rows = rows[:limit]
        next_cursor = rows[-1].id

    return rows, next_cursor
