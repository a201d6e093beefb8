# =============================================================================
# 💳 utils/payments.py
# -----------------------------------------------------------------------------
# Zahlungs-Gateway (Razorpay) für das Upgrade eines dynamischen QR-Codes:
#   - Order erstellen, QR-ID + Benutzer-ID in den Notes
#   - Webhook-Signatur prüfen (HMAC-SHA256 über den rohen Body, via SDK)
#   - "payment.captured" → QR-Code reaktivieren + Zahlung im Ledger speichern
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError
from sqlalchemy.orm import Session

from models.payment import PaymentRecord, PaymentStatus
from models.qrcode import QRCode, QRStatus, utc_now
from models.user import User
from utils.config import (
    PAYMENT_GATEWAY,
    razorpay_key_id,
    razorpay_key_secret,
    upgrade_currency,
    upgrade_price_cents,
)
from utils.errors import AlreadyActive, Conflict, NotFound, Unauthorized, UpstreamFailure
from utils.qr_lifecycle import apply_payment

logger = logging.getLogger("qr_payments")

PAYMENT_CAPTURED_EVENT = "payment.captured"

GATEWAY_ERRORS = (BadRequestError, GatewayError, ServerError, requests.RequestException)


class WebhookOutcome:
    PROCESSED = "processed"
    IGNORED_EVENT = "ignored_event"
    UNATTRIBUTED = "unattributed"
    UNKNOWN_QR = "unknown_qr"
    DUPLICATE = "duplicate"
    RECORDED_ONLY = "recorded_only"


def gateway_client() -> razorpay.Client:
    """Razorpay-Client; ohne Keys reicht er nur für die Signaturprüfung."""
    key_id, key_secret = razorpay_key_id(), razorpay_key_secret()
    if key_id and key_secret:
        return razorpay.Client(auth=(key_id, key_secret))
    return razorpay.Client()


# -----------------------------------------------------------------------------
# 🔐 Signatur
# -----------------------------------------------------------------------------
def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> None:
    """Raises Unauthorized unless the header matches the body's HMAC."""
    if not signature:
        raise Unauthorized("Missing signature")
    try:
        body = raw_body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise Unauthorized("Invalid signature") from exc
    try:
        gateway_client().utility.verify_webhook_signature(body, signature.strip(), secret)
    except SignatureVerificationError as exc:
        raise Unauthorized("Invalid signature") from exc


# -----------------------------------------------------------------------------
# 🧾 Order erstellen
# -----------------------------------------------------------------------------
def create_gateway_order(db: Session, user: User, qr_code_id: str) -> dict[str, Any]:
    qr = (
        db.query(QRCode)
        .filter(QRCode.id == qr_code_id, QRCode.user_id == user.id)
        .first()
    )
    if not qr:
        raise NotFound()
    if qr.status == QRStatus.ACTIVE:
        raise AlreadyActive()
    if qr.status == QRStatus.BLOCKED:
        raise Conflict("This QR code has been blocked and cannot be upgraded")

    if not (razorpay_key_id() and razorpay_key_secret()):
        logger.error("❌ RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET are not configured")
        raise UpstreamFailure("Payment gateway not configured")

    amount = upgrade_price_cents()
    currency = upgrade_currency()
    try:
        order = gateway_client().order.create(
            data={
                "amount": amount,
                "currency": currency,
                "receipt": qr.id,
                "notes": {"qr_code_id": qr.id, "user_id": str(user.id)},
            }
        )
    except GATEWAY_ERRORS as exc:
        logger.error(f"❌ Gateway order for QR {qr.id} failed: {exc}")
        raise UpstreamFailure() from exc

    logger.info(f"🧾 Order {order['id']} created for QR {qr.id} ({amount} {currency})")
    return {
        "order_id": order["id"],
        "amount": order.get("amount", amount),
        "currency": order.get("currency", currency),
    }


# -----------------------------------------------------------------------------
# 🪝 Webhook-Event
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CapturedPayment:
    payment_id: str
    order_id: Optional[str]
    amount: Decimal
    currency: str
    qr_code_id: Optional[str]


def parse_captured_payment(event: Mapping[str, Any]) -> CapturedPayment:
    entity = event["payload"]["payment"]["entity"]
    # Razorpay schickt leere Notes als Liste
    notes = entity.get("notes")
    if not isinstance(notes, Mapping):
        notes = {}
    return CapturedPayment(
        payment_id=str(entity["id"]),
        order_id=entity.get("order_id"),
        amount=Decimal(int(entity.get("amount") or 0)) / 100,
        currency=str(entity.get("currency") or "").upper(),
        qr_code_id=notes.get("qr_code_id") or None,
    )


def _already_recorded(db: Session, payment_id: str) -> bool:
    return (
        db.query(PaymentRecord.id)
        .filter(PaymentRecord.gateway == PAYMENT_GATEWAY, PaymentRecord.payment_id == payment_id)
        .first()
        is not None
    )


def handle_payment_event(db: Session, event: Mapping[str, Any]) -> str:
    """
    Applies a verified gateway event. Call only after verify_signature.

    The status change and the ledger entry are committed together.
    """
    event_type = event.get("event")
    if event_type != PAYMENT_CAPTURED_EVENT:
        logger.info(f"ℹ️ Ignoring webhook event: {event_type}")
        return WebhookOutcome.IGNORED_EVENT

    payment = parse_captured_payment(event)
    if not payment.qr_code_id:
        logger.warning(f"⚠️ Payment {payment.payment_id} carries no qr_code_id")
        return WebhookOutcome.UNATTRIBUTED

    qr = db.query(QRCode).filter(QRCode.id == payment.qr_code_id).first()
    if not qr:
        logger.warning(f"⚠️ Payment {payment.payment_id} references unknown QR {payment.qr_code_id}")
        return WebhookOutcome.UNKNOWN_QR

    if _already_recorded(db, payment.payment_id):
        logger.info(f"🔁 Payment {payment.payment_id} already recorded, skipping")
        return WebhookOutcome.DUPLICATE

    reactivated = apply_payment(qr, utc_now())
    db.add(
        PaymentRecord(
            qr_code_id=qr.id,
            user_id=qr.user_id,
            amount=payment.amount,
            currency=payment.currency,
            gateway=PAYMENT_GATEWAY,
            payment_id=payment.payment_id,
            order_id=payment.order_id,
            status=PaymentStatus.SUCCESS,
        )
    )
    db.commit()

    if not reactivated:
        logger.warning(
            f"⚠️ Payment {payment.payment_id} recorded for QR {qr.id} in status '{qr.status}', "
            f"status left unchanged"
        )
        return WebhookOutcome.RECORDED_ONLY

    logger.info(f"✅ Payment {payment.payment_id} reactivated QR {qr.id} until {qr.expires_at}")
    return WebhookOutcome.PROCESSED
