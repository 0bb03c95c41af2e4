from __future__ import annotations

from ..extensions import db
from dealernet.time_utils import to_utc_z, format_cents


class Product(db.Model):
    """
    Product master data and the central stock pool.

    STOCK UNITS: stock is counted in strips, not packets.
    One strip = packets_per_strip packets; packet_price_cents is per packet.

    INVARIANT: stock >= 0 (also enforced by a CHECK constraint). Stock only
    moves through services.inventory_service, which uses conditional updates.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("packets_per_strip >= 1", name="ck_products_packets_per_strip"),
        db.CheckConstraint("packet_price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_title", "title"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (clients only format for display)
    packet_price_cents = db.Column(db.Integer, nullable=False)
    packets_per_strip = db.Column(db.Integer, nullable=False, default=1)

    image_url = db.Column(db.String(512), nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} stock={self.stock}>"

    @property
    def strip_price_cents(self) -> int:
        return self.packet_price_cents * self.packets_per_strip

    def summary(self) -> dict:
        """Compact form embedded in requests, allocations and stock views."""
        return {
            "id": self.id,
            "title": self.title,
            "packet_price_cents": self.packet_price_cents,
            "packet_price": format_cents(self.packet_price_cents),
            "packets_per_strip": self.packets_per_strip,
            "image_url": self.image_url,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "packet_price_cents": self.packet_price_cents,
            "packet_price": format_cents(self.packet_price_cents),
            "packets_per_strip": self.packets_per_strip,
            "image_url": self.image_url,
            "stock": self.stock,
            "created_by_id": self.created_by_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
