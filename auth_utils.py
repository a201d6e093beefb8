# auth_utils.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database import get_db
from models.api_key import APIKey
from models.user import User
from utils.api_keys import hash_api_key, mask_presented_key
from utils.errors import Forbidden, Unauthorized

logger = logging.getLogger("qr_auth")


# ---------------------------------------------------------------------
# 🔑 Bearer-Token aus dem Authorization-Header lesen
# ---------------------------------------------------------------------
def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# ---------------------------------------------------------------------
# 👤 Aktueller Benutzer (aus API-Key)
# ---------------------------------------------------------------------
def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> User:
    """
    Liefert den Benutzer zum übergebenen API-Key.
    Widerrufene oder unbekannte Keys → Unauthorized.
    """
    token = _bearer_token(authorization)
    if not token:
        raise Unauthorized("Missing bearer token")

    api_key_row = (
        db.query(APIKey)
        .filter(APIKey.key_hash == hash_api_key(token), APIKey.revoked_at.is_(None))
        .first()
    )
    if not api_key_row or not api_key_row.user:
        logger.warning(f"🚫 Invalid API key presented: {mask_presented_key(token)}")
        raise Unauthorized("Invalid API key")

    api_key_row.last_used_at = datetime.now(timezone.utc)
    db.commit()
    return api_key_row.user


# ---------------------------------------------------------------------
# 🛡️ Nur für Operatoren (Moderation)
# ---------------------------------------------------------------------
def require_operator(user: User = Depends(get_current_user)) -> User:
    if not user.is_operator:
        raise Forbidden()
    return user
