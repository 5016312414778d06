"""Create infographics and infographic_likes tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "infographics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("design_state", sa.Text(), nullable=False),
        sa.Column("thumbnail", sa.String(length=256), nullable=False, server_default="default-infographic.jpg"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False, server_default="other"),
        sa.Column("template", sa.String(length=64), nullable=False, server_default="default"),
        sa.Column("style", sa.JSON(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("export_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_infographics_user_id"), "infographics", ["user_id"], unique=False)
    op.create_index(op.f("ix_infographics_is_public"), "infographics", ["is_public"], unique=False)
    op.create_index(op.f("ix_infographics_created_at"), "infographics", ["created_at"], unique=False)

    op.create_table(
        "infographic_likes",
        sa.Column("infographic_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["infographic_id"], ["infographics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("infographic_id", "user_id"),
    )


def downgrade() -> None:
    op.drop_table("infographic_likes")
    op.drop_index(op.f("ix_infographics_created_at"), table_name="infographics")
    op.drop_index(op.f("ix_infographics_is_public"), table_name="infographics")
    op.drop_index(op.f("ix_infographics_user_id"), table_name="infographics")
    op.drop_table("infographics")
