# =============================================================================
# 📦 models/__init__.py
# -----------------------------------------------------------------------------
# Minimal & korrekt für Alembic
# =============================================================================

from .user import User
from .api_key import APIKey
from .qrcode import QRCode
from .qr_design import QRDesign
from .qr_analytics import QRAnalyticsEvent
from .payment import PaymentRecord

__all__ = [
    "User",
    "APIKey",
    "QRCode",
    "QRDesign",
    "QRAnalyticsEvent",
    "PaymentRecord",
]
