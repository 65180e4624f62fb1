"""Create analytics_events table.

Revision ID: 004
Revises: 003
Create Date: 2026-09-30

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the raw click event table and its query indexes."""
    op.create_table(
        "analytics_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column(
            "linktree_id",
            sa.UUID(),
            nullable=False,
            comment="Canonical linktree id (slugs are resolved before storage)",
        ),
        sa.Column(
            "link_id",
            sa.UUID(),
            nullable=False,
            comment="Clicked link; may no longer exist in the linktree",
        ),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Server-assigned ingestion time",
        ),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("country", sa.String(64), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_analytics_events")),
    )
    op.create_index(
        "ix_analytics_events_linktree_id_timestamp",
        "analytics_events",
        ["linktree_id", sa.text("timestamp DESC")],
    )
    op.create_index(
        "ix_analytics_events_link_id_timestamp",
        "analytics_events",
        ["link_id", sa.text("timestamp DESC")],
    )


def downgrade() -> None:
    """Drop the analytics_events table."""
    op.drop_index("ix_analytics_events_link_id_timestamp", table_name="analytics_events")
    op.drop_index("ix_analytics_events_linktree_id_timestamp", table_name="analytics_events")
    op.drop_table("analytics_events")
