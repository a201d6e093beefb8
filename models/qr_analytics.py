# =============================================================================
# 📊 models/qr_analytics.py
# -----------------------------------------------------------------------------
# Ein Datensatz pro erfolgreicher Weiterleitung eines dynamischen QR-Codes.
# Wird nur eingefügt, nie geändert oder gelöscht (außer mit dem QR-Code selbst).
# =============================================================================

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from database import Base
from models.qrcode import utc_now


class DeviceType:
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class QRAnalyticsEvent(Base):
    __tablename__ = "qr_analytics"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci"
    }

    # ---------------------------------------------------------------------
    # 🔹 Primär- & Fremdschlüssel
    # ---------------------------------------------------------------------
    id = Column(Integer, primary_key=True, autoincrement=True)
    qr_code_id = Column(
        String(36), ForeignKey("qr_codes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # ---------------------------------------------------------------------
    # 🔹 Scan-Informationen
    # ---------------------------------------------------------------------
    country = Column(String(100), nullable=False, default="Unknown")
    city = Column(String(100), nullable=False, default="Unknown")
    device_type = Column(String(20), nullable=False, default=DeviceType.DESKTOP)

    # ---------------------------------------------------------------------
    # 🔹 Zeitstempel (UTC-aware)
    # ---------------------------------------------------------------------
    scanned_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    qr_code = relationship("QRCode", back_populates="analytics")

    def __repr__(self):
        return (
            f"<QRAnalyticsEvent(id={self.id}, qr_code_id={self.qr_code_id}, "
            f"device_type='{self.device_type}', country='{self.country}', "
            f"scanned_at={self.scanned_at})>"
        )
