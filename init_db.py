# =============================================================================
# 🧩 init_db.py
# -----------------------------------------------------------------------------
# Initialisiert die Datenbank für QuickQR:
#   - Erstellt alle Tabellen (users, api_keys, qr_codes, qr_design,
#     qr_analytics, payments)
#   - Optional: Legt einen Operator mit API-Key an
#       python init_db.py --operator admin@example.com
# =============================================================================

import argparse

from database import Base, SessionLocal, engine
import models  # noqa: F401  (registriert alle Tabellen an Base.metadata)
from models.user import User, UserRole
from utils.api_keys import issue_api_key


def create_tables() -> None:
    print("🛠️ Erstelle Tabellen in der Datenbank...")
    Base.metadata.create_all(bind=engine)
    print("✅ Tabellen wurden erfolgreich erstellt.\n")


def ensure_operator(email: str) -> None:
    db = SessionLocal()
    try:
        print("👤 Prüfe auf Operator-Benutzer...")
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"  ✔️ Benutzer {email} existiert bereits (Rolle: {existing.role}).")
            return

        operator = User(email=email, display_name="Operator", role=UserRole.OPERATOR)
        db.add(operator)
        db.commit()
        db.refresh(operator)

        _, plaintext = issue_api_key(db, operator, label="Bootstrap")
        print(f"  🆕 Operator erstellt: {email}")
        print(f"  🔑 API-Key (nur jetzt sichtbar): {plaintext}")
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the QuickQR schema")
    parser.add_argument("--operator", help="email of an operator account to create")
    args = parser.parse_args()

    create_tables()
    if args.operator:
        ensure_operator(args.operator)
    print("\n🎉 Datenbankinitialisierung abgeschlossen!")


if __name__ == "__main__":
    main()
