"""create inventory logs, ledger and settings

Revision ID: 202610191100
Revises: 202610191000
Create Date: 2026-10-19 11:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610191100"
down_revision = "202610191000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "inventory_logs",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("product_id", sa.String(length=50), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("change_amount", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_logs_product_id", "inventory_logs", ["product_id"])
    op.create_index("ix_inventory_logs_created_at", "inventory_logs", ["created_at"])

    op.create_table(
        "financial_transactions",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("counterparty", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_financial_transactions_type", "financial_transactions", ["type"])
    op.create_index("ix_financial_transactions_status", "financial_transactions", ["status"])

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("restaurant_name", sa.String(length=255), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("dark_mode", sa.Boolean(), nullable=False),
        sa.Column("printer_enabled", sa.Boolean(), nullable=False),
        sa.Column("sound_alert_enabled", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_index("ix_financial_transactions_status", table_name="financial_transactions")
    op.drop_index("ix_financial_transactions_type", table_name="financial_transactions")
    op.drop_table("financial_transactions")
    op.drop_index("ix_inventory_logs_created_at", table_name="inventory_logs")
    op.drop_index("ix_inventory_logs_product_id", table_name="inventory_logs")
    op.drop_table("inventory_logs")
