#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script: qr_expiry_cron.py
Description:
    Führt den Ablauf-Job für dynamische QR-Codes einmal aus
    (trial → trial_expired → paid_expired). Gedacht für cron oder
    einen Container-Scheduler, z. B. stündlich:

        0 * * * *  cd /srv/quickqr && python scripts/qr_expiry_cron.py
"""

import json
import logging
import os
import sys

# ─────────────────────────────────────────────
# 🧩 Projektpfad einbinden
# ─────────────────────────────────────────────
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(BASE_DIR)

# ─────────────────────────────────────────────
# 📦 Interne Importe
# ─────────────────────────────────────────────
from database import SessionLocal
from utils.config import log_level
from utils.expiry import run_expiry_check


def main() -> int:
    logging.basicConfig(
        level=log_level(),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
    db = SessionLocal()
    try:
        summary = run_expiry_check(db)
    finally:
        db.close()
    print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
