from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.qrcode import QRCode


DESIGN_FIELDS = ("frame_text", "logo_url", "dot_color", "background_color", "corner_color")


class QRDesign(Base):
    """Visual settings of a QR code; carried through edit and duplicate flows as-is."""

    __tablename__ = "qr_design"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    qr_code_id: Mapped[str] = mapped_column(
        ForeignKey("qr_codes.id", ondelete="CASCADE"), unique=True, index=True
    )

    frame_text: Mapped[Optional[str]] = mapped_column(String(120))
    logo_url: Mapped[Optional[str]] = mapped_column(Text)
    dot_color: Mapped[str] = mapped_column(String(10), default="#000000")
    background_color: Mapped[str] = mapped_column(String(10), default="#ffffff")
    corner_color: Mapped[Optional[str]] = mapped_column(String(10))

    qr_code: Mapped["QRCode"] = relationship("QRCode", back_populates="design")

    def to_dict(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in DESIGN_FIELDS}
