"""
Status transitions of a QR code.

All status writes go through this module. The scheduler, the payment
webhook, report intake and moderation each own one transition; the table
below lists the source states each of them accepts.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional

from models.qrcode import QRCode, QRStatus, as_utc, utc_now
from utils.config import GRACE_PERIOD_DAYS, PAID_PERIOD_DAYS, TRIAL_DAYS
from utils.errors import Conflict


class Transition:
    EXPIRE = "expire"
    DEACTIVATE = "deactivate"
    REPORT = "report"
    ACTIVATE = "activate"
    BLOCK = "block"
    PAYMENT = "payment"


# transition -> (allowed sources, target)
TRANSITIONS: Dict[str, tuple[FrozenSet[str], str]] = {
    Transition.EXPIRE: (frozenset({QRStatus.TRIAL, QRStatus.ACTIVE}), QRStatus.TRIAL_EXPIRED),
    Transition.DEACTIVATE: (frozenset({QRStatus.TRIAL_EXPIRED}), QRStatus.PAID_EXPIRED),
    Transition.REPORT: (
        frozenset(set(QRStatus.ALL) - {QRStatus.BLOCKED}),
        QRStatus.REPORTED,
    ),
    Transition.ACTIVATE: (frozenset({QRStatus.REPORTED}), QRStatus.ACTIVE),
    Transition.BLOCK: (frozenset({QRStatus.REPORTED}), QRStatus.BLOCKED),
    Transition.PAYMENT: (
        frozenset(set(QRStatus.ALL) - {QRStatus.BLOCKED}),
        QRStatus.ACTIVE,
    ),
}

MODERATION_ACTIONS = (Transition.ACTIVATE, Transition.BLOCK)


def sources(transition: str) -> FrozenSet[str]:
    return TRANSITIONS[transition][0]


def target(transition: str) -> str:
    return TRANSITIONS[transition][1]


def can_apply(transition: str, status: str) -> bool:
    return status in sources(transition)


# ---------------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------------
def trial_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or utc_now()) + timedelta(days=TRIAL_DAYS)


def paid_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or utc_now()) + timedelta(days=PAID_PERIOD_DAYS)


def grace_deadline(expires_at: Optional[datetime]) -> Optional[datetime]:
    """Last moment a trial_expired code still redirects."""
    if expires_at is None:
        return None
    return as_utc(expires_at) + timedelta(days=GRACE_PERIOD_DAYS)


def grace_cutoff(now: Optional[datetime] = None) -> datetime:
    """Codes that expired before this instant are past their grace window."""
    return (now or utc_now()) - timedelta(days=GRACE_PERIOD_DAYS)


def days_remaining(qr: QRCode, now: Optional[datetime] = None) -> Optional[int]:
    if qr.expires_at is None:
        return None
    now = now or utc_now()
    deadline = grace_deadline(qr.expires_at) if qr.status == QRStatus.TRIAL_EXPIRED else as_utc(qr.expires_at)
    return max(0, (deadline - now).days)


# ---------------------------------------------------------------------------
# Single-row transitions (the scheduler batches live in utils.expiry)
# ---------------------------------------------------------------------------
def apply_report(qr: QRCode, reason: Optional[str] = None) -> bool:
    """
    Moves the code into the moderation queue. Re-reporting overwrites.

    Returns False for blocked codes, which stay blocked.
    """
    if not can_apply(Transition.REPORT, qr.status):
        return False
    if reason and reason.strip():
        qr.report_reason = reason.strip()[:255]
    qr.status = target(Transition.REPORT)
    qr.updated_at = utc_now()
    return True


def apply_moderation(qr: QRCode, action: str) -> str:
    if action not in MODERATION_ACTIONS:
        raise Conflict(f"Unknown moderation action: {action}")
    if not can_apply(action, qr.status):
        raise Conflict(f"Cannot {action} a QR code with status '{qr.status}'")
    qr.status = target(action)
    qr.updated_at = utc_now()
    return qr.status


def apply_payment(qr: QRCode, now: Optional[datetime] = None) -> bool:
    """
    Extends the code by one paid period.

    Returns True when the code was (re)activated. Blocked codes are
    terminal and stay untouched.
    """
    if not can_apply(Transition.PAYMENT, qr.status):
        return False
    now = now or utc_now()
    qr.expires_at = paid_expiry(now)
    qr.updated_at = now
    qr.status = target(Transition.PAYMENT)
    return True
