"""Create posts and migration_state tables."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "posts",
        sa.Column("post_id", sa.Integer(), primary_key=True),
        sa.Column("post_type", sa.String(), nullable=False, server_default="post"),
        sa.Column("post_status", sa.String(), nullable=False, server_default="publish"),
        sa.Column(
            "catalog_classic",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
    )
    op.create_index("ix_posts_type_status", "posts", ["post_type", "post_status"])

    op.create_table(
        "migration_state",
        sa.Column("state_key", sa.String(), primary_key=True),
        sa.Column("running", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_id", sa.String(), nullable=False),
        sa.Column("post_ids_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("cursor", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.String(), nullable=False, server_default=""),
        sa.Column("options_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("migration_state")
    op.drop_index("ix_posts_type_status", table_name="posts")
    op.drop_table("posts")
