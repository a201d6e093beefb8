"""Initial QuickQR schema

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision: str = "3f2a9c1d7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# ─────────────────────────────────────────────
# ✅ UPGRADE
# ─────────────────────────────────────────────
def upgrade() -> None:
    """Upgrade schema."""
    print("🚀 Upgrade: Erstelle QuickQR-Tabellen...")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("label", sa.String(length=120), nullable=False),
        sa.Column("key_prefix", sa.String(length=24), nullable=False),
        sa.Column("key_hash", sa.String(length=128), nullable=False),
        sa.Column("last4", sa.String(length=4), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"])
    op.create_index("ix_api_keys_key_prefix", "api_keys", ["key_prefix"])
    op.create_index("ix_api_keys_key_hash", "api_keys", ["key_hash"], unique=True)

    op.create_table(
        "qr_codes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("short_url", sa.String(length=16), nullable=True),
        sa.Column("destination_url", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("report_reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("short_url", name="uq_qr_codes_short_url"),
        sa.CheckConstraint(
            "(type = 'dynamic' AND short_url IS NOT NULL) "
            "OR (type = 'static' AND short_url IS NULL)",
            name="ck_qr_codes_short_url_iff_dynamic",
        ),
    )
    op.create_index("ix_qr_codes_user_id", "qr_codes", ["user_id"])
    op.create_index("ix_qr_codes_status", "qr_codes", ["status"])
    op.create_index("ix_qr_codes_expires_at", "qr_codes", ["expires_at"])

    op.create_table(
        "qr_design",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("qr_code_id", sa.String(length=36), nullable=False),
        sa.Column("frame_text", sa.String(length=120), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("dot_color", sa.String(length=10), nullable=False),
        sa.Column("background_color", sa.String(length=10), nullable=False),
        sa.Column("corner_color", sa.String(length=10), nullable=True),
        sa.ForeignKeyConstraint(["qr_code_id"], ["qr_codes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_qr_design_qr_code_id", "qr_design", ["qr_code_id"], unique=True)

    op.create_table(
        "qr_analytics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("qr_code_id", sa.String(length=36), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("device_type", sa.String(length=20), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["qr_code_id"], ["qr_codes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
        mysql_collate="utf8mb4_unicode_ci",
    )
    op.create_index("ix_qr_analytics_qr_code_id", "qr_analytics", ["qr_code_id"])
    op.create_index("ix_qr_analytics_scanned_at", "qr_analytics", ["scanned_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("qr_code_id", sa.String(length=36), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("gateway", sa.String(length=32), nullable=False),
        sa.Column("payment_id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["qr_code_id"], ["qr_codes.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("gateway", "payment_id", name="uq_payments_gateway_payment_id"),
    )
    op.create_index("ix_payments_qr_code_id", "payments", ["qr_code_id"])
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_order_id", "payments", ["order_id"])

    print("✅ Upgrade abgeschlossen.")


# ─────────────────────────────────────────────
# 🔄 DOWNGRADE
# ─────────────────────────────────────────────
def downgrade() -> None:
    """Downgrade schema."""
    print("↩️ Downgrade: Entferne QuickQR-Tabellen...")
    op.drop_table("payments")
    op.drop_table("qr_analytics")
    op.drop_table("qr_design")
    op.drop_table("qr_codes")
    op.drop_table("api_keys")
    op.drop_table("users")
    print("✅ Downgrade abgeschlossen.")
