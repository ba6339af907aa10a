"""Domain value objects for the comment board."""

from murmur.domain.value.identifiers import CommentId
from murmur.domain.value.types import ChangeEvent, ChangeKind, ImageUpload, Username

__all__ = [
    # Identifiers
    "CommentId",
    # Types
    "ChangeEvent",
    "ChangeKind",
    "ImageUpload",
    "Username",
]
