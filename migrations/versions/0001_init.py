"""Initial schema: users and weeklies

Revision ID: 0001_init
Revises: 
Create Date: 2024-01-08
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
    )
    op.create_table(
        "weeklies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        # Monday 00:00 UTC, seconds since the epoch
        sa.Column("week_start", sa.Integer(), nullable=False),
        sa.Column("update_time", sa.Integer(), nullable=False),
        sa.Column("format", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lang", sa.String(length=35), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.UniqueConstraint("user_id", "week_start", name="uq_weeklies_user_week"),
    )
    op.create_index("ix_weeklies_user_id", "weeklies", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_weeklies_user_id", table_name="weeklies")
    op.drop_table("weeklies")
    op.drop_table("users")
