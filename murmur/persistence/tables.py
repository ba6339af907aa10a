"""SQLAlchemy table definitions.

They match the schema defined in Alembic migrations.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, MetaData, String, Table, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# COMMENTS TABLE (flat; threads are rebuilt from parent_id)
# ============================================================================
comments_table = Table(
    "comments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default="uuid_generate_v4()",
    ),
    Column("text", Text, nullable=False),
    Column("username", String(255), nullable=False, server_default="Anonymous"),
    Column(
        "parent_id",
        UUID(as_uuid=False),
        ForeignKey("comments.id"),  # NO ACTION: cascades are resolved by the app
        nullable=True,
    ),
    Column("is_reported", Boolean, nullable=False, server_default="false"),
    Column("image_url", Text, nullable=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

Index("idx_comments_created_at", comments_table.c.created_at.desc())
Index("idx_comments_parent_id", comments_table.c.parent_id)
