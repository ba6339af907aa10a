"""Comment entities.

Storage is flat: every row carries an optional ``parent_id`` and nothing
else about its position in a thread. The nested view is rebuilt from a
full snapshot of rows (see ``murmur.domain.service.tree``).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from murmur.domain.model.common import DomainModel
from murmur.domain.value import CommentId


class CommentRecord(DomainModel):
    """Comment row as persisted by the record source.

    A missing ``parent_id`` marks a top-level comment.
    """

    id: CommentId
    text: str = Field(min_length=1)
    username: str = "Anonymous"
    parent_id: Optional[CommentId] = None
    is_reported: bool = False
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Comment:
    """Node in the comment forest.

    Built fresh from a snapshot of CommentRecord rows on every rebuild.
    ``replies`` belongs to this node only and keeps snapshot order.
    """

    id: CommentId
    text: str
    username: str
    timestamp: datetime
    parent_id: CommentId | None = None
    is_reported: bool = False
    image_url: str | None = None
    replies: list["Comment"] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: CommentRecord) -> "Comment":
        """Create a detached node (no replies) from a persisted row."""
        return cls(
            id=record.id,
            text=record.text,
            username=record.username,
            timestamp=record.created_at,
            parent_id=record.parent_id,
            is_reported=record.is_reported,
            image_url=record.image_url,
        )
