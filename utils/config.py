from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")


# Lifecycle constants
TRIAL_DAYS = 30
GRACE_PERIOD_DAYS = 3
PAID_PERIOD_DAYS = 365

SHORT_CODE_LENGTH = 6
SHORT_CODE_MAX_ATTEMPTS = 10

FREE_STATIC_LIMIT = 20
FREE_DYNAMIC_LIMIT = 1

PAYMENT_GATEWAY = "razorpay"


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def app_domain() -> str:
    return os.getenv("APP_DOMAIN", "").strip().rstrip("/")


def payment_webhook_secret() -> Optional[str]:
    return _optional("RAZORPAY_WEBHOOK_SECRET")


def razorpay_key_id() -> Optional[str]:
    return _optional("RAZORPAY_KEY_ID")


def razorpay_key_secret() -> Optional[str]:
    return _optional("RAZORPAY_KEY_SECRET")


def upgrade_price_cents() -> int:
    return int(os.getenv("UPGRADE_PRICE_CENTS", "1000"))


def upgrade_currency() -> str:
    return os.getenv("UPGRADE_CURRENCY", "USD").strip().upper()


def cron_secret() -> Optional[str]:
    return _optional("CRON_SECRET")


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
