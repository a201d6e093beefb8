# =============================================================================
# 👤 models/user.py
# Benutzer-Modell (SQLAlchemy 2.0)
# =============================================================================

from __future__ import annotations
from typing import List, TYPE_CHECKING
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.api_key import APIKey
    from models.qrcode import QRCode


class UserRole:
    USER = "user"
    OPERATOR = "operator"

    ALL = (USER, OPERATOR)


class User(Base):
    __tablename__ = "users"

    # =========================================================================
    # 🧩 Basisinformationen
    # =========================================================================
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100), default="")

    # Moderation ist nur für Operatoren erlaubt
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER)

    # =========================================================================
    # 🕒 Zeitstempel
    # =========================================================================
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    # =========================================================================
    # 🔗 Beziehungen
    # =========================================================================
    qrcodes: Mapped[List["QRCode"]] = relationship(
        "QRCode",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    api_keys: Mapped[List["APIKey"]] = relationship(
        "APIKey",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_operator(self) -> bool:
        return self.role == UserRole.OPERATOR

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
