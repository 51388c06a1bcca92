"""Backfill expires_at for temporary tokens created without one

Revision ID: backfill_access_token_expiry
Revises: create_access_tokens
Create Date: 2026-02-10

Rows minted before expires_at was written on insert relied on
created_at + 24h. Storing that value makes expiry a single column read.
Lifetime rows keep expires_at NULL.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "backfill_access_token_expiry"
down_revision: str | None = "create_access_tokens"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        sa.text(
            "UPDATE access_tokens "
            "SET expires_at = created_at + INTERVAL '24 hours' "
            "WHERE is_lifetime = false AND expires_at IS NULL"
        )
    )


def downgrade() -> None:
    # Backfilled values are indistinguishable from ones written on insert
    pass
