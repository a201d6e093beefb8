from __future__ import annotations

import logging
import secrets
import string
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.qrcode import QRCode
from utils.config import SHORT_CODE_LENGTH, SHORT_CODE_MAX_ATTEMPTS
from utils.errors import ShortCodeExhausted

logger = logging.getLogger("qr_short_code")

ALPHABET = string.ascii_letters + string.digits

ShortCodeGenerator = Callable[[], str]


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Uniformly random code over [A-Za-z0-9] (62**6 ≈ 5.7e10 for the default length)."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid_short_code(code: str | None) -> bool:
    return bool(code) and len(code) == SHORT_CODE_LENGTH and all(c in ALPHABET for c in code)


def is_short_code_available(db: Session, code: str) -> bool:
    return db.query(QRCode.id).filter(QRCode.short_url == code).first() is None


def generate_unique_short_code(
    db: Session,
    generator: ShortCodeGenerator = generate_short_code,
    max_attempts: int = SHORT_CODE_MAX_ATTEMPTS,
) -> str:
    for attempt in range(1, max_attempts + 1):
        code = generator()
        if is_short_code_available(db, code):
            return code
        logger.info(f"🔁 Short code collision on attempt {attempt}: {code}")
    raise ShortCodeExhausted(
        f"Failed to generate unique short code after {max_attempts} attempts"
    )


# SQLite meldet die Spalte, MySQL/PostgreSQL den Constraint-Namen
SHORT_CODE_UNIQUE_MARKERS = ("uq_qr_codes_short_url", "qr_codes.short_url")


def _is_short_code_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in SHORT_CODE_UNIQUE_MARKERS)


def insert_with_unique_short_code(
    db: Session,
    qr: QRCode,
    generator: ShortCodeGenerator = generate_short_code,
    max_attempts: int = SHORT_CODE_MAX_ATTEMPTS,
) -> QRCode:
    """
    Assigns a short code to a new dynamic QR code and commits the insert.

    The availability check only avoids pointless round trips; the unique
    constraint on qr_codes.short_url is what decides. A violation on insert
    means another writer took the code in between, so a new code is drawn.
    """
    for attempt in range(1, max_attempts + 1):
        code = generator()
        if not is_short_code_available(db, code):
            logger.info(f"🔁 Short code collision on attempt {attempt}: {code}")
            continue

        qr.short_url = code
        db.add(qr)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_short_code_violation(exc):
                raise
            logger.warning(f"⚠️ Short code {code} taken concurrently, retrying ({attempt}/{max_attempts})")
            continue
        return qr

    raise ShortCodeExhausted(
        f"Failed to generate unique short code after {max_attempts} attempts"
    )
