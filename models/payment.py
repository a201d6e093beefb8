# =============================================================================
# 💳 models/payment.py
# -----------------------------------------------------------------------------
# Zahlungs-Ledger: ein Eintrag pro verifizierter, erfolgreicher Zahlung.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.qrcode import utc_now

if TYPE_CHECKING:
    from models.qrcode import QRCode


class PaymentStatus:
    SUCCESS = "success"


class PaymentRecord(Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("gateway", "payment_id", name="uq_payments_gateway_payment_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # SET NULL: der Ledger überlebt das Löschen des QR-Codes
    qr_code_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("qr_codes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(8))
    gateway: Mapped[str] = mapped_column(String(32))
    payment_id: Mapped[str] = mapped_column(String(64))
    order_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.SUCCESS)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    qr_code: Mapped[Optional["QRCode"]] = relationship("QRCode", back_populates="payments")

    def __repr__(self) -> str:
        return (
            f"<PaymentRecord(id={self.id}, qr_code_id={self.qr_code_id}, "
            f"amount={self.amount} {self.currency}, payment_id='{self.payment_id}')>"
        )
