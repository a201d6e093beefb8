# =============================================================================
# ⏰ utils/expiry.py
# -----------------------------------------------------------------------------
# Ablauf-Job für dynamische QR-Codes:
#   trial / active  → trial_expired  (expires_at < jetzt)
#   trial_expired   → paid_expired   (expires_at < jetzt - Grace-Periode)
# Beide Schritte sind Batch-Updates; erneutes Ausführen ändert nichts mehr.
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.qrcode import QRCode, QRType, utc_now
from utils.qr_lifecycle import Transition, grace_cutoff, sources, target

logger = logging.getLogger("qr_expiry")


def _batch_transition(db: Session, transition: str, cutoff: datetime, now: datetime) -> int:
    stmt = (
        update(QRCode)
        .where(
            QRCode.type == QRType.DYNAMIC,
            QRCode.status.in_(sorted(sources(transition))),
            QRCode.expires_at.is_not(None),
            QRCode.expires_at < cutoff,
        )
        .values(status=target(transition), updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount or 0


def expire_trials(db: Session, now: datetime) -> int:
    return _batch_transition(db, Transition.EXPIRE, now, now)


def deactivate_after_grace(db: Session, now: datetime) -> int:
    return _batch_transition(db, Transition.DEACTIVATE, grace_cutoff(now), now)


def run_expiry_check(db: Session, now: Optional[datetime] = None) -> dict[str, Any]:
    """
    Runs both transitions in one transaction and returns the run summary.

    Expiry runs first, so a code whose expires_at lies more than the grace
    period in the past moves through both states in a single run.
    """
    now = now or utc_now()
    try:
        expired = expire_trials(db, now)
        deactivated = deactivate_after_grace(db, now)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("❌ Expiry check failed")
        raise

    logger.info(f"⏰ Expiry check: {expired} expired, {deactivated} deactivated")
    return {
        "message": "QR expiry check completed",
        "expiredCount": expired,
        "deactivatedCount": deactivated,
        "timestamp": now.isoformat(),
    }
