"""Create ab_tests and ab_test_variants tables.

Revision ID: 003
Revises: 002
Create Date: 2026-09-29

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the A/B test tables.

    linktree_id and link_id carry no foreign key: a test outlives the link
    it was run on.
    """
    op.create_table(
        "ab_tests",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("linktree_id", sa.UUID(), nullable=False),
        sa.Column("link_id", sa.UUID(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ab_tests")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_ab_tests_user_id_users"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_ab_tests_user_id"), "ab_tests", ["user_id"])
    op.create_index(op.f("ix_ab_tests_linktree_id"), "ab_tests", ["linktree_id"])
    op.create_index("ix_ab_tests_link_id_status", "ab_tests", ["link_id", "status"])

    op.create_table(
        "ab_test_variants",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("ab_test_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("impressions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("clicks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ab_test_variants")),
        sa.ForeignKeyConstraint(
            ["ab_test_id"],
            ["ab_tests.id"],
            name=op.f("fk_ab_test_variants_ab_test_id_ab_tests"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        op.f("ix_ab_test_variants_ab_test_id"),
        "ab_test_variants",
        ["ab_test_id"],
    )


def downgrade() -> None:
    """Drop the A/B test tables."""
    op.drop_index(op.f("ix_ab_test_variants_ab_test_id"), table_name="ab_test_variants")
    op.drop_table("ab_test_variants")
    op.drop_index("ix_ab_tests_link_id_status", table_name="ab_tests")
    op.drop_index(op.f("ix_ab_tests_linktree_id"), table_name="ab_tests")
    op.drop_index(op.f("ix_ab_tests_user_id"), table_name="ab_tests")
    op.drop_table("ab_tests")
