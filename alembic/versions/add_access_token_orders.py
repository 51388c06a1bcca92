"""Add access_token_orders table

Revision ID: add_access_token_orders
Revises: backfill_access_token_expiry
Create Date: 2026-10-19

This migration adds:
1. access_token_orders, one row per order id ever applied to a token.
   Upgrades and renewals overwrite access_tokens.order_id, so replays of
   an earlier order are matched through this table.
2. Backfill from the order_id currently stored on each token.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "add_access_token_orders"
down_revision: str | None = "backfill_access_token_expiry"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "access_token_orders",
        sa.Column("order_id", sa.String(255), primary_key=True),
        sa.Column(
            "token",
            sa.String(36),
            sa.ForeignKey("access_tokens.token", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )

    op.execute(
        sa.text(
            "INSERT INTO access_token_orders (order_id, token, created_at) "
            "SELECT order_id, token, created_at FROM access_tokens "
            "WHERE order_id IS NOT NULL"
        )
    )


def downgrade() -> None:
    op.drop_table("access_token_orders")
