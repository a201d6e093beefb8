import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# ⚙️ Vor dem App-Import setzen: keine MySQL-Verbindung, feste Test-Secrets
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("CRON_SECRET", "cron_test_secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")

from database import Base, get_db, get_session_factory  # noqa: E402
from main import app  # noqa: E402
import models  # noqa: E402,F401
from models.qrcode import QRCode, QRStatus, QRType  # noqa: E402
from models.user import User, UserRole  # noqa: E402
from utils.api_keys import issue_api_key  # noqa: E402


@pytest.fixture
def session_local():
    """In-Memory-SQLite pro Test, eine Verbindung für alle Sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield testing_session_local
    engine.dispose()


@pytest.fixture
def client(session_local):
    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_local

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_session_factory, None)


@pytest_asyncio.fixture
async def async_client(session_local):
    """Erstellt einen funktionierenden async Testclient."""
    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_local

    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_session_factory, None)


# -------------------------------------------------------------------------
# 🧪 Seed-Helfer
# -------------------------------------------------------------------------
def make_user(session_local, email: str = "owner@example.com", role: str = UserRole.USER):
    """Returns (user_id, plaintext api key)."""
    with session_local() as db:
        user = User(email=email, display_name=email.split("@")[0], role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        _, plaintext = issue_api_key(db, user)
        return user.id, plaintext


def make_qr(
    session_local,
    user_id: int,
    *,
    qr_type: str = QRType.DYNAMIC,
    short_url: Optional[str] = "Abc123",
    status: str = QRStatus.ACTIVE,
    expires_at: Optional[datetime] = None,
    destination_url: str = "https://example.com/landing",
    name: str = "Seeded QR",
) -> str:
    with session_local() as db:
        qr = QRCode(
            user_id=user_id,
            name=name,
            type=qr_type,
            short_url=short_url if qr_type == QRType.DYNAMIC else None,
            destination_url=destination_url,
            status=status,
            expires_at=expires_at,
        )
        db.add(qr)
        db.commit()
        return qr.id


def auth(api_key: str) -> dict:
    return {"Authorization": f"Bearer {api_key}"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days(n: float) -> timedelta:
    return timedelta(days=n)
