# =============================================================================
# 🔄 Dynamischer QR-Code-Resolver
# -----------------------------------------------------------------------------
#       GET  /{short_code}   → 302 / 404 (Text) / 410 (HTML)
#       POST /report         → Code zur Moderation melden
#
# Der Redirect-Router muss als letzter eingebunden werden, weil
# /{short_code} sonst jede andere GET-Route mit einem Segment verdeckt.
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db, get_session_factory
from models.qrcode import QRCode
from utils.analytics import AnalyticsRecorder, ScanEvent
from utils.device import classify_device, extract_geo
from utils.errors import NotFound, ValidationError
from utils.qr_lifecycle import apply_report

router = APIRouter(tags=["QR-Resolver"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

logger = logging.getLogger("qr_redirect")
report_logger = logging.getLogger("qr_report")

REPORT_ACK = "QR code reported successfully. Thank you for helping keep our platform safe."

ResponseType = Union[RedirectResponse, PlainTextResponse, HTMLResponse]


class ReportIn(BaseModel):
    shortCode: Optional[str] = None
    reason: Optional[str] = None


def get_analytics_recorder(session_factory=Depends(get_session_factory)) -> AnalyticsRecorder:
    return AnalyticsRecorder(session_factory)


# =============================================================================
# 🚩 Report Intake (öffentlich, ohne Login)
# =============================================================================
@router.post("/report")
def report_qr(payload: ReportIn, db: Session = Depends(get_db)):
    short_code = (payload.shortCode or "").strip()
    if not short_code:
        raise ValidationError("shortCode is required")

    qr = db.query(QRCode).filter(QRCode.short_url == short_code).first()
    if not qr:
        report_logger.warning(f"🚩 Report for unknown short code: {short_code}")
        raise NotFound()

    if apply_report(qr, payload.reason):
        db.commit()
        report_logger.info(f"🚩 QR {qr.id} ({short_code}) reported: {qr.report_reason}")
    else:
        report_logger.info(f"🚩 Report for blocked QR {qr.id} ({short_code}) acknowledged, status kept")

    return {"success": True, "message": REPORT_ACK}


# =============================================================================
# 🔁 Redirect
# =============================================================================
@router.get("/{short_code}", response_model=None)
def resolve_short_code(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
) -> ResponseType:
    logger.info(f"🔎 Redirect requested for short code: {short_code}")

    qr = db.query(QRCode).filter(QRCode.short_url == short_code).first()
    if not qr:
        logger.info(f"❓ QR code not found: {short_code}")
        return PlainTextResponse("QR code not found", status_code=404)

    if not qr.is_redirectable:
        logger.info(f"⛔ QR {qr.id} is inactive (status={qr.status})")
        return templates.TemplateResponse(
            request,
            "qr_expired.html",
            {
                "status": qr.status,
                "short_code": short_code,
                "report_url": str(request.url_for("report_qr")),
            },
            status_code=410,
        )

    country, city = extract_geo(request.headers)
    recorder.submit(
        background_tasks,
        ScanEvent(
            qr_code_id=qr.id,
            country=country,
            city=city,
            device_type=classify_device(request.headers.get("user-agent")),
        ),
    )

    logger.info(f"➡️ Redirecting {short_code} to: {qr.destination_url}")
    return RedirectResponse(qr.destination_url, status_code=302)
