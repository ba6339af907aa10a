"""Domain model entities for the comment board."""

from murmur.domain.model.comment import Comment, CommentRecord

__all__ = [
    "Comment",
    "CommentRecord",
]
