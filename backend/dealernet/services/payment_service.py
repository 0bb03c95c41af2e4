# Overview: Service-layer operations for payment receipts and verification.

"""
Payment Verification Service

WHY: Dealers pay out-of-band (UPI) and upload a receipt against a request;
an admin verifies or rejects it. This state machine runs beside the request
status and does not gate approval.

STATE MACHINE (payment_status):
- pending  --upload-->  paid
- paid     --verify-->  verified (terminal)
- paid     --reject-->  rejected
- rejected --upload-->  paid (re-upload)

Every transition is a guarded UPDATE on the expected current payment_status;
a repeated or concurrent transition matches zero rows and surfaces as
InvalidState.
"""

from __future__ import annotations

import re

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..extensions import db
from ..models import AppSetting, DealerRequest, User
from ..errors import Forbidden, InvalidState, NotFound, ValidationError
from ..validation import optional_text
from dealernet.time_utils import utcnow
from .concurrency import guarded_update, run_with_retry
from .ledger_service import append_ledger_event
from .receipt_storage import discard_receipt, store_receipt


# =============================================================================
# PAYMENT STATUS (CONSTANTS)
# =============================================================================

PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_VERIFIED = "verified"
PAYMENT_STATUS_REJECTED = "rejected"

VALID_PAYMENT_STATUSES = [
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_VERIFIED,
    PAYMENT_STATUS_REJECTED,
]

UPLOADABLE_STATUSES = (PAYMENT_STATUS_PENDING, PAYMENT_STATUS_REJECTED)

UPI_ID_SETTING_KEY = "payment.upi_id"
UPI_ID_RE = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9.-]+$")


def _load(request_id: int) -> DealerRequest:
    request = db.session.get(DealerRequest, request_id)
    if request is None:
        raise NotFound("Request not found")
    return request


def _fresh(request_id: int) -> DealerRequest:
    db.session.expire_all()
    return _load(request_id)


# =============================================================================
# RECEIPT UPLOAD (DEALER)
# =============================================================================

def upload_receipt(request_id: int, dealer_id: int, file: FileStorage | None) -> DealerRequest:
    """
    Attach a payment receipt to the dealer's own request (payment -> paid).

    Args:
        request_id: Target request
        dealer_id: Uploading dealer (must own the request)
        file: Uploaded receipt (multipart field "receipt")

    Raises:
        NotFound: Request does not exist
        Forbidden: Request belongs to another dealer
        InvalidState: Request cancelled, or payment not pending/rejected
        ValidationError: Missing, empty or disallowed file
    """
    request = _load(request_id)
    if request.dealer_id != dealer_id:
        raise Forbidden("Access denied")
    if request.status == "cancelled":
        raise InvalidState("Cannot upload a receipt for a cancelled request")
    if request.payment_status not in UPLOADABLE_STATUSES:
        raise InvalidState(f"Cannot upload receipt when payment is {request.payment_status}")

    receipt_url = store_receipt(file)

    def _op():
        now = utcnow()
        matched = guarded_update(
            db.session.query(DealerRequest).filter(
                DealerRequest.id == request_id,
                DealerRequest.dealer_id == dealer_id,
                DealerRequest.status != "cancelled",
                DealerRequest.payment_status.in_(UPLOADABLE_STATUSES),
            ),
            {
                DealerRequest.payment_status: PAYMENT_STATUS_PAID,
                DealerRequest.receipt_image: receipt_url,
                DealerRequest.receipt_uploaded_at: now,
                DealerRequest.updated_at: now,
            },
        )
        if matched != 1:
            raise InvalidState("Payment state changed; receipt not accepted")

        append_ledger_event(
            event_type="payment.receipt_uploaded",
            entity_type="dealer_request",
            entity_id=request_id,
            actor_user_id=dealer_id,
            product_id=request.product_id,
            dealer_request_id=request_id,
            note=receipt_url,
        )
        db.session.commit()

    try:
        run_with_retry(_op)
    except Exception:
        discard_receipt(receipt_url)
        raise

    return _fresh(request_id)


def get_receipt_request(name: str, viewer: User, *, scope_all: bool) -> DealerRequest:
    """
    Request whose current receipt is the stored file `name`.

    Raises:
        NotFound: no request currently points at this file
        Forbidden: the receipt belongs to another dealer's request
    """
    base_url = current_app.config["RECEIPT_BASE_URL"].rstrip("/")
    request = (
        db.session.query(DealerRequest)
        .filter(DealerRequest.receipt_image == f"{base_url}/{name}")
        .first()
    )
    if request is None:
        raise NotFound("Receipt not found")
    if not scope_all and request.dealer_id != viewer.id:
        raise Forbidden("Access denied")
    return request


# =============================================================================
# VERIFICATION (ADMIN)
# =============================================================================

def _decide(request_id: int, admin_id: int, new_status: str, notes: str | None) -> DealerRequest:
    """paid -> verified | rejected."""
    notes = optional_text(notes, "notes")

    def _op():
        request = _load(request_id)
        if request.payment_status != PAYMENT_STATUS_PAID:
            raise InvalidState(
                f"Payment must be paid before it can be {new_status} "
                f"(current: {request.payment_status})"
            )

        now = utcnow()
        values = {
            DealerRequest.payment_status: new_status,
            DealerRequest.payment_notes: notes,
            DealerRequest.updated_at: now,
        }
        if new_status == PAYMENT_STATUS_VERIFIED:
            values[DealerRequest.payment_verified_by_id] = admin_id
            values[DealerRequest.payment_verified_at] = now

        matched = guarded_update(
            db.session.query(DealerRequest).filter(
                DealerRequest.id == request_id,
                DealerRequest.payment_status == PAYMENT_STATUS_PAID,
            ),
            values,
        )
        if matched != 1:
            raise InvalidState("Payment state changed; please refresh")

        append_ledger_event(
            event_type=f"payment.{new_status}",
            entity_type="dealer_request",
            entity_id=request_id,
            actor_user_id=admin_id,
            product_id=request.product_id,
            dealer_request_id=request_id,
            note=notes or None,
        )
        db.session.commit()
        return _fresh(request_id)

    return run_with_retry(_op)


def verify_payment(request_id: int, admin_id: int, notes: str | None = None) -> DealerRequest:
    """Accept an uploaded receipt. Verified is terminal."""
    return _decide(request_id, admin_id, PAYMENT_STATUS_VERIFIED, notes)


def reject_payment(request_id: int, admin_id: int, notes: str | None = None) -> DealerRequest:
    """Reject an uploaded receipt; the dealer may upload again."""
    return _decide(request_id, admin_id, PAYMENT_STATUS_REJECTED, notes)


# =============================================================================
# PAYMENT SETTINGS
# =============================================================================

def get_upi_id() -> str:
    """Current UPI id, falling back to DEFAULT_UPI_ID until an admin sets one."""
    setting = db.session.get(AppSetting, UPI_ID_SETTING_KEY)
    if setting is not None and setting.value:
        return setting.value
    return current_app.config.get("DEFAULT_UPI_ID", "") or ""


def set_upi_id(upi_id, admin_id: int) -> str:
    if not isinstance(upi_id, str):
        raise ValidationError("upi_id is required")
    upi_id = upi_id.strip()
    if not (2 <= len(upi_id) <= 256) or not UPI_ID_RE.match(upi_id):
        raise ValidationError("upi_id must look like name@bank")

    def _op():
        setting = db.session.get(AppSetting, UPI_ID_SETTING_KEY)
        if setting is None:
            setting = AppSetting(key=UPI_ID_SETTING_KEY)
            db.session.add(setting)
        setting.value = upi_id
        setting.updated_by_id = admin_id
        setting.updated_at = utcnow()
        db.session.commit()
        return setting.value

    return run_with_retry(_op)
