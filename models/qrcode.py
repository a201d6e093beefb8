# =============================================================================
# 📦 QRCode Model – statische und dynamische QR-Codes (SQLAlchemy 2.0)
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint, DateTime, ForeignKey, String, Text, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from database import Base

if TYPE_CHECKING:
    from models.payment import PaymentRecord
    from models.qr_analytics import QRAnalyticsEvent
    from models.qr_design import QRDesign
    from models.user import User


class QRType:
    STATIC = "static"
    DYNAMIC = "dynamic"

    ALL = (STATIC, DYNAMIC)


class QRStatus:
    ACTIVE = "active"
    TRIAL = "trial"
    TRIAL_EXPIRED = "trial_expired"
    PAID_EXPIRED = "paid_expired"
    REPORTED = "reported"
    BLOCKED = "blocked"

    ALL = (ACTIVE, TRIAL, TRIAL_EXPIRED, PAID_EXPIRED, REPORTED, BLOCKED)

    # Grace-Periode (trial_expired) leitet noch weiter
    REDIRECTABLE = (TRIAL, ACTIVE, TRIAL_EXPIRED)


def utc_now() -> datetime:
    """Gibt aktuelle UTC-Zeit (timezone-aware) zurück."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite liefert naive Datumswerte zurück – immer als UTC interpretieren."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# 🧩 QRCode-Datenmodell
# =============================================================================
class QRCode(Base):
    """
    Ein QR-Code eines Benutzers.

    Dynamische Codes kodieren einen stabilen Kurzlink (short_url); Ziel, Status
    und Ablaufdatum ändern sich, ohne dass der gedruckte Code neu erstellt wird.
    Statische Codes kodieren das Ziel direkt und haben keinen Kurzlink.
    """
    __tablename__ = "qr_codes"
    __table_args__ = (
        UniqueConstraint("short_url", name="uq_qr_codes_short_url"),
        CheckConstraint(
            "(type = 'dynamic' AND short_url IS NOT NULL) "
            "OR (type = 'static' AND short_url IS NULL)",
            name="ck_qr_codes_short_url_iff_dynamic",
        ),
    )

    # ---------------------------------------------------------------------
    # 🧾 Basisattribute
    # ---------------------------------------------------------------------
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255), default="Untitled QR")
    type: Mapped[str] = mapped_column(String(10), nullable=False)

    short_url: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    destination_url: Mapped[str] = mapped_column(Text, nullable=False)

    # ---------------------------------------------------------------------
    # 🔄 Lebenszyklus
    # ---------------------------------------------------------------------
    status: Mapped[str] = mapped_column(String(20), default=QRStatus.ACTIVE, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    report_reason: Mapped[Optional[str]] = mapped_column(String(255))

    # ---------------------------------------------------------------------
    # 🕒 Zeitstempel
    # ---------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # ---------------------------------------------------------------------
    # 🔗 Beziehungen
    # ---------------------------------------------------------------------
    user: Mapped["User"] = relationship("User", back_populates="qrcodes")

    design: Mapped[Optional["QRDesign"]] = relationship(
        "QRDesign",
        back_populates="qr_code",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    analytics: Mapped[List["QRAnalyticsEvent"]] = relationship(
        "QRAnalyticsEvent",
        back_populates="qr_code",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Zahlungen bleiben im Ledger, auch wenn der Code gelöscht wird
    payments: Mapped[List["PaymentRecord"]] = relationship(
        "PaymentRecord",
        back_populates="qr_code",
    )

    @validates("type")
    def _type_is_immutable(self, key: str, value: Any) -> Any:
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise ValueError("The type of a QR code cannot change after creation")
        if value not in QRType.ALL:
            raise ValueError(f"Unknown QR type: {value!r}")
        return value

    @property
    def is_dynamic(self) -> bool:
        return self.type == QRType.DYNAMIC

    @property
    def is_redirectable(self) -> bool:
        return self.status in QRStatus.REDIRECTABLE

    def __repr__(self) -> str:
        return (
            f"<QRCode(id={self.id}, type='{self.type}', short_url='{self.short_url}', "
            f"status='{self.status}')>"
        )
