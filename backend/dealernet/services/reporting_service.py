# Overview: Read-side aggregation across requests and users (stats, role counts).

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import DealerRequest, User
from ..errors import NotFound
from ..permissions import ALL_ROLES, Role
from dealernet.time_utils import format_cents, to_utc_z


def _owned_dealer(stalkist_id: int, dealer_id: int) -> User:
    dealer = (
        db.session.query(User)
        .filter(
            User.id == dealer_id,
            User.created_by_id == stalkist_id,
            User.role == Role.DEALER,
        )
        .first()
    )
    if dealer is None:
        raise NotFound("Dealer not found or access denied")
    return dealer


def dealer_stats(stalkist_id: int, dealer_id: int) -> dict:
    """
    Request statistics for one dealer created by the calling stalkist.

    Values are priced at read time from each product's current packet price:
    strips * packets_per_strip * packet_price.
    """
    dealer = _owned_dealer(stalkist_id, dealer_id)

    requests = (
        db.session.query(DealerRequest)
        .filter(DealerRequest.dealer_id == dealer.id)
        .order_by(DealerRequest.created_at.desc(), DealerRequest.id.desc())
        .all()
    )

    counts = {"pending": 0, "approved": 0, "cancelled": 0}
    strips = {"pending": 0, "approved": 0, "cancelled": 0}
    value_cents = {"pending": 0, "approved": 0, "cancelled": 0}

    rows = []
    for req in requests:
        total_cents = req.total_value_cents
        counts[req.status] += 1
        strips[req.status] += req.strips
        value_cents[req.status] += total_cents
        rows.append({
            "id": req.id,
            "product": req.product.summary(),
            "strips": req.strips,
            "status": req.status,
            "payment_status": req.payment_status,
            "requested_at": to_utc_z(req.requested_at),
            "processed_at": to_utc_z(req.processed_at),
            "total_value_cents": total_cents,
            "total_value": format_cents(total_cents),
        })

    requested_cents = sum(value_cents.values())

    stats = {
        "total_requests": len(requests),
        "pending_requests": counts["pending"],
        "approved_requests": counts["approved"],
        "cancelled_requests": counts["cancelled"],
        "total_strips_requested": sum(strips.values()),
        "total_strips_approved": strips["approved"],
        "total_strips_pending": strips["pending"],
        "total_strips_cancelled": strips["cancelled"],
        "total_value_requested": format_cents(requested_cents),
        "total_value_approved": format_cents(value_cents["approved"]),
        "total_value_pending": format_cents(value_cents["pending"]),
        "total_value_requested_cents": requested_cents,
        "total_value_approved_cents": value_cents["approved"],
        "total_value_pending_cents": value_cents["pending"],
    }

    return {
        "dealer": dict(dealer.summary(), role=dealer.role),
        "stats": stats,
        "requests": rows,
    }


def role_counts() -> dict:
    """Active users per role; every role is present even when zero."""
    rows = (
        db.session.query(User.role, func.count(User.id))
        .filter(User.is_active.is_(True))
        .group_by(User.role)
        .all()
    )
    counts = {role: 0 for role in ALL_ROLES}
    for role, count in rows:
        if role in counts:
            counts[role] = int(count)
    return counts
