"""Mappers for converting between database rows and domain models.

Domain models are immutable Pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM.
"""

from typing import Any, Dict

from murmur.domain.model import CommentRecord
from murmur.domain.value import CommentId


def row_to_comment(row: Dict[str, Any]) -> CommentRecord:
    """Convert database row to CommentRecord domain model.

    Args:
        row: Database row as dict

    Returns:
        CommentRecord domain model
    """
    return CommentRecord(
        id=CommentId(str(row["id"])),
        text=row["text"],
        username=row["username"],
        parent_id=CommentId(str(row["parent_id"])) if row.get("parent_id") else None,
        is_reported=bool(row.get("is_reported", False)),
        image_url=row.get("image_url"),
        created_at=row["created_at"],
    )


def comment_to_dict(comment: CommentRecord) -> Dict[str, Any]:
    """Convert CommentRecord domain model to database dict.

    Args:
        comment: CommentRecord domain model

    Returns:
        Dict suitable for database insertion
    """
    return comment.model_dump()
