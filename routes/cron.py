from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from utils.config import cron_secret
from utils.errors import Unauthorized
from utils.expiry import run_expiry_check

logger = logging.getLogger("qr_expiry")

router = APIRouter(tags=["Scheduler"])


@router.post("/qr-expiry-cron")
def qr_expiry_cron(
    db: Session = Depends(get_db),
    x_cron_secret: Optional[str] = Header(default=None),
):
    """Trigger for an external scheduler (hourly)."""
    expected = cron_secret()
    if not expected:
        logger.error("❌ CRON_SECRET is not configured")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    if not x_cron_secret or not hmac.compare_digest(expected, x_cron_secret):
        raise Unauthorized("Invalid cron secret")

    return run_expiry_check(db)
