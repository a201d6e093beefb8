from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth_utils import require_operator
from database import get_db
from models.qrcode import QRCode, QRStatus, as_utc
from models.user import User
from utils.errors import NotFound
from utils.qr_lifecycle import apply_moderation

logger = logging.getLogger("qr_moderation")

router = APIRouter(prefix="/moderation", tags=["Moderation"])


class ResolveIn(BaseModel):
    action: Literal["activate", "block"]


def _serialize_reported(qr: QRCode) -> dict[str, Any]:
    return {
        "id": qr.id,
        "name": qr.name,
        "short_url": qr.short_url,
        "destination_url": qr.destination_url,
        "user_id": qr.user_id,
        "report_reason": qr.report_reason,
        "updated_at": as_utc(qr.updated_at).isoformat() if qr.updated_at else None,
    }


@router.get("/reported")
def list_reported(db: Session = Depends(get_db), operator: User = Depends(require_operator)):
    rows = (
        db.query(QRCode)
        .filter(QRCode.status == QRStatus.REPORTED)
        .order_by(QRCode.updated_at.desc())
        .all()
    )
    return {"items": [_serialize_reported(r) for r in rows], "count": len(rows)}


@router.post("/{qr_id}/resolve")
def resolve_report(
    qr_id: str,
    payload: ResolveIn,
    db: Session = Depends(get_db),
    operator: User = Depends(require_operator),
):
    """Two-valued decision on a reported code: back to active, or blocked for good."""
    qr = db.query(QRCode).filter(QRCode.id == qr_id).first()
    if not qr:
        raise NotFound()

    status = apply_moderation(qr, payload.action)
    db.commit()
    logger.info(f"⚖️ Operator {operator.id} resolved QR {qr.id}: {payload.action} → {status}")
    return {"success": True, "status": status}
