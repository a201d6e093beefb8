# =============================================================================
# 💳 routes/billing_razorpay.py
# -----------------------------------------------------------------------------
# Upgrade eines dynamischen QR-Codes über Razorpay
# Funktionen:
#   - Order für einen eigenen QR-Code erstellen
#   - Webhook: Signatur prüfen, Zahlung verbuchen, QR-Code reaktivieren
# =============================================================================

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth_utils import get_current_user
from database import get_db
from models.user import User
from utils.config import payment_webhook_secret
from utils.errors import Unauthorized
from utils.payments import create_gateway_order, handle_payment_event, verify_signature

logger = logging.getLogger("qr_payments")

router = APIRouter(tags=["Razorpay Billing"])

ACK = {"status": "ok"}


class PaymentOrderIn(BaseModel):
    qr_code_id: str


# =============================================================================
# 🧾 1. Order erstellen (nur Besitzer des Codes)
# =============================================================================
@router.post("/create-payment-order")
def create_payment_order(
    payload: PaymentOrderIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Liefert nur order_id, Betrag und Währung an den Client;
    die Razorpay-Keys bleiben auf dem Server.
    """
    return create_gateway_order(db, user, payload.qr_code_id)


# =============================================================================
# 🪝 2. Webhook – verarbeitet Zahlungsereignisse
# =============================================================================
@router.post("/payment-webhook")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Nach erfolgreicher Signaturprüfung wird immer 200 geantwortet,
    auch wenn die Verarbeitung fehlschlägt: das Gateway würde sonst
    endlos erneut zustellen. Fehler landen im Log zur manuellen Prüfung.
    """
    secret = payment_webhook_secret()
    if not secret:
        logger.error("❌ RAZORPAY_WEBHOOK_SECRET is not configured")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    payload = await request.body()
    signature = request.headers.get("x-razorpay-signature") or request.headers.get("x-signature")
    try:
        verify_signature(payload, signature, secret)
    except Unauthorized:
        logger.warning("🚫 Webhook rejected: missing or invalid signature")
        raise

    try:
        event = json.loads(payload)
        outcome = handle_payment_event(db, event)
        logger.info(f"🪝 Webhook processed: {outcome}")
    except Exception:
        db.rollback()
        logger.exception("❌ Webhook processing failed after verification, needs manual reconciliation")

    return ACK
