from __future__ import annotations

from ..extensions import db
from dealernet.time_utils import to_utc_z


class LedgerEvent(db.Model):
    """
    Append-only audit spine for stock, request, payment and allocation events.

    Rows are written in the same DB transaction as the change they describe
    and are never updated or deleted.

    quantity_delta is the signed strip movement of the event for the stock
    pool it touches (negative for an approval draining product stock).
    """
    __tablename__ = "ledger_events"
    __table_args__ = (
        db.Index("ix_ledger_events_type_occurred", "event_type", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)

    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    dealer_request_id = db.Column(db.Integer, db.ForeignKey("dealer_requests.id"), nullable=True, index=True)
    allocation_id = db.Column(db.Integer, db.ForeignKey("stock_allocations.id"), nullable=True)

    quantity_delta = db.Column(db.Integer, nullable=True)
    note = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_user_id": self.actor_user_id,
            "product_id": self.product_id,
            "dealer_request_id": self.dealer_request_id,
            "allocation_id": self.allocation_id,
            "quantity_delta": self.quantity_delta,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
