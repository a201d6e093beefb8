from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth_utils import get_current_user
from database import get_db
from models.qrcode import QRCode, QRStatus, as_utc
from models.user import User
from utils.analytics import analytics_summary
from utils.config import app_domain
from utils.errors import ValidationError
from utils.qr_lifecycle import days_remaining, grace_deadline
from utils.qr_save import create_qr, delete_qr, duplicate_qr, get_owned_qr, update_qr

router = APIRouter(prefix="/api/v1", tags=["Public API"])


class DesignIn(BaseModel):
    frame_text: Optional[str] = Field(default=None, max_length=120)
    logo_url: Optional[str] = None
    dot_color: Optional[str] = Field(default=None, max_length=10)
    background_color: Optional[str] = Field(default=None, max_length=10)
    corner_color: Optional[str] = Field(default=None, max_length=10)


class CreateQRIn(BaseModel):
    name: str = Field(default="Untitled QR", max_length=255)
    type: str = Field(..., description="static or dynamic")
    destination_url: str
    design: Optional[DesignIn] = None


class UpdateQRIn(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    destination_url: Optional[str] = None
    design: Optional[DesignIn] = None


def _design_dict(design: Optional[DesignIn]) -> Optional[dict[str, Any]]:
    return design.model_dump(exclude_none=True) if design is not None else None


def _build_short_link(request: Request, short_code: str) -> str:
    base_url = str(request.base_url).rstrip("/")
    return f"{(app_domain() or base_url)}/{short_code}"


def _iso(value) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


def _serialize_qr(qr: QRCode, request: Request) -> dict[str, Any]:
    grace = grace_deadline(qr.expires_at) if qr.status == QRStatus.TRIAL_EXPIRED else None
    return {
        "id": qr.id,
        "name": qr.name,
        "type": qr.type,
        "status": qr.status,
        "short_url": qr.short_url,
        "redirect_url": _build_short_link(request, qr.short_url) if qr.short_url else None,
        "destination_url": qr.destination_url,
        "expires_at": _iso(qr.expires_at),
        "grace_ends_at": _iso(grace),
        "days_remaining": days_remaining(qr),
        "design": qr.design.to_dict() if qr.design else None,
        "created_at": _iso(qr.created_at),
        "updated_at": _iso(qr.updated_at),
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
    }


@router.get("/qrs")
def list_qrs(
    request: Request,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    limit = max(1, min(limit, 200))
    rows = (
        db.query(QRCode)
        .filter(QRCode.user_id == user.id)
        .order_by(QRCode.created_at.desc())
        .limit(limit)
        .all()
    )
    return {"items": [_serialize_qr(r, request) for r in rows], "count": len(rows)}


@router.post("/qrs", status_code=201)
def create_qr_route(
    payload: CreateQRIn,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    qr = create_qr(
        db,
        user,
        qr_type=payload.type,
        destination_url=payload.destination_url,
        name=payload.name,
        design=_design_dict(payload.design),
    )
    return _serialize_qr(qr, request)


@router.get("/qrs/{qr_id}")
def get_qr(
    qr_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _serialize_qr(get_owned_qr(db, user, qr_id), request)


@router.patch("/qrs/{qr_id}")
def update_qr_route(
    qr_id: str,
    payload: UpdateQRIn,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    qr = get_owned_qr(db, user, qr_id)
    qr = update_qr(
        db,
        qr,
        name=payload.name,
        destination_url=payload.destination_url,
        design=_design_dict(payload.design),
    )
    return _serialize_qr(qr, request)


@router.delete("/qrs/{qr_id}")
def delete_qr_route(
    qr_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    delete_qr(db, get_owned_qr(db, user, qr_id))
    return {"ok": True, "id": qr_id}


@router.post("/qrs/{qr_id}/duplicate", status_code=201)
def duplicate_qr_route(
    qr_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    copy = duplicate_qr(db, user, get_owned_qr(db, user, qr_id))
    return _serialize_qr(copy, request)


@router.get("/qrs/{qr_id}/analytics")
def qr_analytics(
    qr_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    qr = get_owned_qr(db, user, qr_id)
    if not qr.is_dynamic:
        raise ValidationError("Analytics are only available for dynamic QR codes")
    return analytics_summary(db, qr)
