#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script: create_user.py
Description:
    Legt einen Benutzer an (oder findet ihn) und gibt einen neuen API-Key aus.

        python scripts/create_user.py alice@example.com --name "Alice"
        python scripts/create_user.py ops@example.com --operator
"""

import argparse
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
from models.user import User, UserRole
from utils.api_keys import issue_api_key


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a QuickQR user and print an API key")
    parser.add_argument("email")
    parser.add_argument("--name", default="")
    parser.add_argument("--operator", action="store_true", help="grant moderation rights")
    parser.add_argument("--label", default="Default", help="label of the new API key")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email).first()
        if not user:
            user = User(
                email=args.email,
                display_name=args.name,
                role=UserRole.OPERATOR if args.operator else UserRole.USER,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            print(f"🆕 Benutzer erstellt: {user.email} (Rolle: {user.role})")
        else:
            print(f"✔️ Benutzer existiert bereits: {user.email} (Rolle: {user.role})")

        _, plaintext = issue_api_key(db, user, label=args.label)
        print(f"🔑 API-Key (nur jetzt sichtbar): {plaintext}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
