from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.qr_analytics import QRAnalyticsEvent
from models.qrcode import QRCode, as_utc

logger = logging.getLogger("qr_analytics")


@dataclass(frozen=True)
class ScanEvent:
    qr_code_id: str
    country: str
    city: str
    device_type: str


class AnalyticsRecorder:
    """
    Fire-and-forget writer for scan events.

    Events are queued on the response's BackgroundTasks and written with a
    fresh session after the response has been sent. Failures end up in the
    log and nowhere else.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def submit(self, background_tasks: BackgroundTasks, event: ScanEvent) -> None:
        background_tasks.add_task(self.record, event)

    def record(self, event: ScanEvent) -> None:
        try:
            with self._session_factory() as db:
                db.add(
                    QRAnalyticsEvent(
                        qr_code_id=event.qr_code_id,
                        country=event.country,
                        city=event.city,
                        device_type=event.device_type,
                    )
                )
                db.commit()
        except Exception:
            logger.exception(f"❌ Analytics insert failed for QR {event.qr_code_id}")


def _counts(db: Session, qr: QRCode, column: Any) -> list[dict[str, Any]]:
    rows = (
        db.query(column, func.count(QRAnalyticsEvent.id))
        .filter(QRAnalyticsEvent.qr_code_id == qr.id)
        .group_by(column)
        .order_by(func.count(QRAnalyticsEvent.id).desc())
        .all()
    )
    return [{"value": value or "Unknown", "count": count} for value, count in rows]


def analytics_summary(db: Session, qr: QRCode, recent_limit: int = 20) -> dict[str, Any]:
    total = (
        db.query(func.count(QRAnalyticsEvent.id))
        .filter(QRAnalyticsEvent.qr_code_id == qr.id)
        .scalar()
    ) or 0

    day = func.date(QRAnalyticsEvent.scanned_at)
    per_day = (
        db.query(day, func.count(QRAnalyticsEvent.id))
        .filter(QRAnalyticsEvent.qr_code_id == qr.id)
        .group_by(day)
        .order_by(day)
        .all()
    )

    recent = (
        db.query(QRAnalyticsEvent)
        .filter(QRAnalyticsEvent.qr_code_id == qr.id)
        .order_by(QRAnalyticsEvent.scanned_at.desc(), QRAnalyticsEvent.id.desc())
        .limit(recent_limit)
        .all()
    )

    return {
        "qr_code_id": qr.id,
        "total_scans": total,
        "by_country": [
            {"country": row["value"], "count": row["count"]}
            for row in _counts(db, qr, QRAnalyticsEvent.country)
        ],
        "by_city": [
            {"city": row["value"], "count": row["count"]}
            for row in _counts(db, qr, QRAnalyticsEvent.city)
        ],
        "by_device": [
            {"device_type": row["value"], "count": row["count"]}
            for row in _counts(db, qr, QRAnalyticsEvent.device_type)
        ],
        "per_day": [{"date": str(d), "count": c} for d, c in per_day],
        "recent": [
            {
                "scanned_at": as_utc(e.scanned_at).isoformat() if e.scanned_at else None,
                "country": e.country,
                "city": e.city,
                "device_type": e.device_type,
            }
            for e in recent
        ],
    }
