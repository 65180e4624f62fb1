"""Create linktrees and links tables.

Revision ID: 002
Revises: 001
Create Date: 2026-09-28

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the linktrees table and the links it owns."""
    op.create_table(
        "linktrees",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "slug",
            sa.String(100),
            nullable=False,
            comment="Public URL segment, lowercase letters, digits and hyphens",
        ),
        sa.Column("theme", sa.String(50), nullable=False, server_default="light"),
        sa.Column(
            "is_default",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
            comment="At most one default linktree per user",
        ),
        sa.Column(
            "is_public",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column("footer", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_linktrees")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_linktrees_user_id_users"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_linktrees_slug"), "linktrees", ["slug"], unique=True)
    op.create_index(op.f("ix_linktrees_user_id"), "linktrees", ["user_id"])

    op.create_table(
        "links",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("linktree_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.Column(
            "enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "order",
            sa.Integer(),
            nullable=False,
            comment="Display order; not unique, not contiguous",
        ),
        sa.Column(
            "position",
            sa.Integer(),
            nullable=False,
            comment="Insertion index within the linktree; breaks order ties",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.ForeignKeyConstraint(
            ["linktree_id"],
            ["linktrees.id"],
            name=op.f("fk_links_linktree_id_linktrees"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_links_linktree_id"), "links", ["linktree_id"])


def downgrade() -> None:
    """Drop the links and linktrees tables."""
    op.drop_index(op.f("ix_links_linktree_id"), table_name="links")
    op.drop_table("links")
    op.drop_index(op.f("ix_linktrees_user_id"), table_name="linktrees")
    op.drop_index(op.f("ix_linktrees_slug"), table_name="linktrees")
    op.drop_table("linktrees")
