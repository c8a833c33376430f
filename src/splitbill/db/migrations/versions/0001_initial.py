"""bill events

Revision ID: 0001
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "bill_events",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
    )

    op.create_index("idx_bill_events_created_at", "bill_events", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_bill_events_created_at", table_name="bill_events")
    op.drop_table("bill_events")
