"""initial_schema

Create the comments table and the change-feed trigger:
- Comments (flat rows; threads are rebuilt from parent_id)
- Statement-level trigger publishing to the comments_changed channel

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-18 10:12:04.118230

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ========================================================================
    # COMMENTS table
    # ========================================================================
    op.create_table(
        "comments",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "username",
            sa.String(length=255),
            server_default=sa.text("'Anonymous'"),
            nullable=False,
        ),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column(
            "is_reported",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["comments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_comments_created_at",
        "comments",
        [sa.text("created_at DESC")],
        unique=False,
    )
    op.create_index("idx_comments_parent_id", "comments", ["parent_id"], unique=False)

    # ========================================================================
    # Change feed: one NOTIFY per statement, payload {"kind": "<op>"}
    # ========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION notify_comments_changed() RETURNS trigger AS $$
        BEGIN
            PERFORM pg_notify(
                'comments_changed',
                json_build_object('kind', lower(TG_OP))::text
            );
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER comments_changed_notify
        AFTER INSERT OR UPDATE OR DELETE ON comments
        FOR EACH STATEMENT
        EXECUTE FUNCTION notify_comments_changed();
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TRIGGER IF EXISTS comments_changed_notify ON comments")
    op.execute("DROP FUNCTION IF EXISTS notify_comments_changed()")
    op.drop_index("idx_comments_parent_id", table_name="comments")
    op.drop_index("idx_comments_created_at", table_name="comments")
    op.drop_table("comments")
