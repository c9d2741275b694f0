"""Add ai_data and is_saved to thoughts.

Revision ID: 002
Revises: 001_initial
Create Date: 2026-10-17

Changes:
- Add ai_data JSONB (nullable) holding the raw AI classification
- Add is_saved boolean (default false) mirrored from saved_thoughts
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("thoughts", sa.Column("ai_data", postgresql.JSONB(), nullable=True))
    op.add_column(
        "thoughts",
        sa.Column("is_saved", sa.Boolean(), nullable=False, server_default="false"),
    )

    # Backfill the flag from existing join rows
    op.execute("""
        UPDATE thoughts SET is_saved = true
        WHERE id IN (SELECT thought_id FROM saved_thoughts)
    """)


def downgrade() -> None:
    op.drop_column("thoughts", "is_saved")
    op.drop_column("thoughts", "ai_data")
