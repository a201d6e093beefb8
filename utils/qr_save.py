# utils/qr_save.py
# =============================================================================
# ✅ Einheitliche Speicherlogik für QR-Codes
# - Plan-Limits (Free: 20 statische, 1 unbezahlter dynamischer Code)
# - Kurzlink-Vergabe für dynamische Codes
# - Duplizieren, Bearbeiten, Löschen
# Status und Ablauf werden hier nur beim Anlegen gesetzt; alle späteren
# Statuswechsel laufen über utils.qr_lifecycle.
# =============================================================================

import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from models.qr_design import DESIGN_FIELDS, QRDesign
from models.qrcode import QRCode, QRStatus, QRType
from models.user import User
from utils.config import FREE_DYNAMIC_LIMIT, FREE_STATIC_LIMIT
from utils.errors import NotFound, PlanLimitReached, ValidationError
from utils.qr_lifecycle import trial_expiry
from utils.short_code import ShortCodeGenerator, generate_short_code, insert_with_unique_short_code

logger = logging.getLogger("qr_save")


# =============================================================================
# 🌐 URL-Normalisierung
# =============================================================================
def normalize_url(url: Optional[str]) -> str:
    """Sorgt dafür, dass eine URL mit http(s):// beginnt."""
    url = (url or "").strip()
    if not url:
        raise ValidationError("destination_url is required")
    if not re.match(r"^https?://", url, re.IGNORECASE):
        url = "https://" + url
    return url


# =============================================================================
# 📏 Plan-Limits
# =============================================================================
def count_static(db: Session, user_id: int) -> int:
    return (
        db.query(QRCode)
        .filter(QRCode.user_id == user_id, QRCode.type == QRType.STATIC)
        .count()
    )


def count_unpaid_dynamic(db: Session, user_id: int) -> int:
    return (
        db.query(QRCode)
        .filter(
            QRCode.user_id == user_id,
            QRCode.type == QRType.DYNAMIC,
            ~QRCode.payments.any(),
        )
        .count()
    )


def check_plan_limits(db: Session, user_id: int, qr_type: str) -> None:
    if qr_type == QRType.STATIC and count_static(db, user_id) >= FREE_STATIC_LIMIT:
        raise PlanLimitReached(
            f"You've reached the limit of {FREE_STATIC_LIMIT} free static QR codes"
        )
    if qr_type == QRType.DYNAMIC and count_unpaid_dynamic(db, user_id) >= FREE_DYNAMIC_LIMIT:
        raise PlanLimitReached(
            "Your free dynamic QR code trial is already in use. Upgrade an existing code first."
        )


# =============================================================================
# 🎨 Design
# =============================================================================
def _apply_design(qr: QRCode, design: Optional[Dict[str, Any]]) -> None:
    if design is None:
        return
    if qr.design is None:
        qr.design = QRDesign()
    for field in DESIGN_FIELDS:
        if field in design and design[field] is not None:
            setattr(qr.design, field, design[field])


# =============================================================================
# ✅ SPEICHERN
# =============================================================================
def create_qr(
    db: Session,
    user: User,
    qr_type: str,
    destination_url: str,
    name: Optional[str] = None,
    design: Optional[Dict[str, Any]] = None,
    generator: ShortCodeGenerator = generate_short_code,
) -> QRCode:
    qr_type = (qr_type or "").strip().lower()
    if qr_type not in QRType.ALL:
        raise ValidationError(f"Unsupported QR type: {qr_type}")

    check_plan_limits(db, user.id, qr_type)

    qr = QRCode(
        user_id=user.id,
        name=(name or "").strip()[:255] or "Untitled QR",
        type=qr_type,
        destination_url=normalize_url(destination_url),
    )
    _apply_design(qr, design)

    logger.info(f"📦 Speichere QR: type={qr_type}, user={user.id}, name={qr.name}")

    if qr_type == QRType.DYNAMIC:
        qr.status = QRStatus.TRIAL
        qr.expires_at = trial_expiry()
        insert_with_unique_short_code(db, qr, generator=generator)
    else:
        qr.status = QRStatus.ACTIVE
        qr.short_url = None
        qr.expires_at = None
        db.add(qr)
        db.commit()

    db.refresh(qr)
    logger.info(f"✅ QR-Code gespeichert (ID {qr.id}, short_url={qr.short_url})")
    return qr


# =============================================================================
# ✅ UPDATE
# =============================================================================
def update_qr(
    db: Session,
    qr: QRCode,
    name: Optional[str] = None,
    destination_url: Optional[str] = None,
    design: Optional[Dict[str, Any]] = None,
) -> QRCode:
    if name is not None:
        qr.name = name.strip()[:255] or qr.name
    if destination_url is not None:
        qr.destination_url = normalize_url(destination_url)
    _apply_design(qr, design)

    db.commit()
    db.refresh(qr)
    logger.info(f"✏️ QR-Code aktualisiert (ID {qr.id})")
    return qr


# =============================================================================
# 📑 DUPLIZIEREN
# =============================================================================
def duplicate_qr(
    db: Session,
    user: User,
    source: QRCode,
    generator: ShortCodeGenerator = generate_short_code,
) -> QRCode:
    """Copies name, destination and design; a dynamic copy starts its own trial."""
    design = source.design.to_dict() if source.design else None
    copy = create_qr(
        db,
        user,
        qr_type=source.type,
        destination_url=source.destination_url,
        name=f"{source.name} (Copy)",
        design=design,
        generator=generator,
    )
    logger.info(f"📑 QR-Code {source.id} dupliziert → {copy.id}")
    return copy


# =============================================================================
# 🗑️ LÖSCHEN / LADEN
# =============================================================================
def get_owned_qr(db: Session, user: User, qr_id: str) -> QRCode:
    qr = db.query(QRCode).filter(QRCode.id == qr_id, QRCode.user_id == user.id).first()
    if not qr:
        raise NotFound()
    return qr


def delete_qr(db: Session, qr: QRCode) -> None:
    """Design and analytics go with the code; payment rows keep their data with qr_code_id cleared."""
    qr_id = qr.id
    db.delete(qr)
    db.commit()
    logger.info(f"🗑️ QR-Code gelöscht (ID {qr_id})")
