from __future__ import annotations

from ..extensions import db
from dealernet.time_utils import to_utc_z


class AppSetting(db.Model):
    """
    Runtime key/value settings editable by admins.

    Known keys are declared in services.payment_service (e.g. payment.upi_id).
    """
    __tablename__ = "app_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False, default="")

    updated_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    updated_by = db.relationship("User", foreign_keys=[updated_by_id])

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "updated_by_id": self.updated_by_id,
            "updated_at": to_utc_z(self.updated_at),
        }
