"""Create access_tokens table

Revision ID: create_access_tokens
Revises:
Create Date: 2026-01-05

This migration adds:
1. access_tokens table, one row per paid order
2. unique index on order_id so duplicate webhook deliveries cannot mint twice
3. email index for polling lookups
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "create_access_tokens"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "access_tokens",
        sa.Column("token", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_lifetime", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("order_id", sa.String(255), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False, server_default="Cliente"),
    )
    op.create_index("ix_access_tokens_email", "access_tokens", ["email"])
    op.create_index("ix_access_tokens_order_id", "access_tokens", ["order_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_access_tokens_order_id", table_name="access_tokens")
    op.drop_index("ix_access_tokens_email", table_name="access_tokens")
    op.drop_table("access_tokens")
