from __future__ import annotations

import hashlib
import secrets
from typing import Tuple

from sqlalchemy.orm import Session

from models.api_key import APIKey
from models.user import User

KEY_PREFIX = "qqr_live_"


def generate_api_key() -> str:
    return f"{KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def key_prefix(api_key: str) -> str:
    return api_key[:12]


def key_last4(api_key: str) -> str:
    return api_key[-4:]


def mask_presented_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    return f"{key_prefix(api_key)}...{key_last4(api_key)}"


def issue_api_key(db: Session, user: User, label: str = "Default") -> Tuple[APIKey, str]:
    """
    Creates a key for the user and returns (row, plaintext).

    The plaintext is only available here; the row keeps the hash, the display
    prefix and the last four characters.
    """
    plaintext = generate_api_key()
    row = APIKey(
        user_id=user.id,
        label=label[:120],
        key_prefix=key_prefix(plaintext),
        key_hash=hash_api_key(plaintext),
        last4=key_last4(plaintext),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row, plaintext

