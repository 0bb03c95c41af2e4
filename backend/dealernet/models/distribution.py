from __future__ import annotations

from ..extensions import db
from dealernet.time_utils import to_utc_z, format_cents


class DealerRequest(db.Model):
    """
    A dealer's request to draw strips from a product's central stock.

    Two independent state machines live on this row:
    - status: pending -> approved | cancelled (both terminal)
    - payment_status: pending -> paid -> verified | rejected, rejected -> paid

    Transitions are performed by services.dealer_request_service and
    services.payment_service with guarded UPDATEs (WHERE status = ...), so a
    repeated or concurrent transition matches zero rows instead of applying twice.
    """
    __tablename__ = "dealer_requests"
    __table_args__ = (
        db.CheckConstraint("strips >= 1", name="ck_dealer_requests_strips_positive"),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'cancelled')",
            name="ck_dealer_requests_status",
        ),
        db.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'verified', 'rejected')",
            name="ck_dealer_requests_payment_status",
        ),
        db.Index("ix_dealer_requests_dealer_status", "dealer_id", "status"),
        db.Index("ix_dealer_requests_product_status", "product_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    dealer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    strips = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending")
    processed_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=False, default="")

    payment_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    receipt_image = db.Column(db.String(512), nullable=True)
    receipt_uploaded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_verified_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    payment_verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_notes = db.Column(db.Text, nullable=False, default="")

    requested_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    dealer = db.relationship("User", foreign_keys=[dealer_id])
    product = db.relationship("Product", backref=db.backref("dealer_requests", lazy=True))
    processed_by = db.relationship("User", foreign_keys=[processed_by_id])
    payment_verified_by = db.relationship("User", foreign_keys=[payment_verified_by_id])

    def __repr__(self) -> str:
        return (
            f"<DealerRequest id={self.id} dealer_id={self.dealer_id} product_id={self.product_id} "
            f"strips={self.strips} status={self.status!r} payment_status={self.payment_status!r}>"
        )

    @property
    def total_value_cents(self) -> int:
        # Priced at read time from the product's current packet price
        return self.strips * self.product.strip_price_cents

    def to_dict(self) -> dict:
        product = None
        if self.product is not None:
            product = dict(self.product.summary(), stock=self.product.stock)

        return {
            "id": self.id,
            "dealer": self.dealer.summary() if self.dealer else None,
            "product": product,
            "strips": self.strips,
            "status": self.status,
            "payment_status": self.payment_status,
            "receipt_image": self.receipt_image,
            "receipt_uploaded_at": to_utc_z(self.receipt_uploaded_at),
            "payment_verified_by": self.payment_verified_by.summary() if self.payment_verified_by else None,
            "payment_verified_at": to_utc_z(self.payment_verified_at),
            "payment_notes": self.payment_notes or "",
            "processed_by": self.processed_by.summary() if self.processed_by else None,
            "processed_at": to_utc_z(self.processed_at),
            "notes": self.notes or "",
            "total_value_cents": self.total_value_cents if self.product else None,
            "total_value": format_cents(self.total_value_cents) if self.product else None,
            "requested_at": to_utc_z(self.requested_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockAllocation(db.Model):
    """
    Strips a dealer handed down to one of their salesmen.

    APPEND-ONLY: rows mirror a physical handoff of goods; there is no update
    or delete path. A dealer's available stock for a product is
    SUM(approved request strips) - SUM(allocation strips).
    """
    __tablename__ = "stock_allocations"
    __table_args__ = (
        db.CheckConstraint("strips >= 1", name="ck_stock_allocations_strips_positive"),
        db.Index("ix_stock_allocations_dealer_product", "dealer_id", "product_id"),
        db.Index("ix_stock_allocations_salesman_product", "salesman_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    dealer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    salesman_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    strips = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    dealer = db.relationship("User", foreign_keys=[dealer_id])
    salesman = db.relationship("User", foreign_keys=[salesman_id])
    product = db.relationship("Product", backref=db.backref("allocations", lazy=True))

    def __repr__(self) -> str:
        return (
            f"<StockAllocation id={self.id} dealer_id={self.dealer_id} "
            f"salesman_id={self.salesman_id} product_id={self.product_id} strips={self.strips}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dealer": self.dealer.summary() if self.dealer else None,
            "salesman": self.salesman.summary() if self.salesman else None,
            "product": self.product.summary() if self.product else None,
            "strips": self.strips,
            "notes": self.notes or "",
            "created_at": to_utc_z(self.created_at),
        }
