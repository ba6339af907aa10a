"""Domain value objects for the comment board."""

from enum import Enum

from pydantic import field_validator

from murmur.domain.value.common import RootValueObject, ValueObject
from murmur.domain.value.identifiers import CommentId


class ChangeKind(str, Enum):
    """Kind of write reported by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(ValueObject):
    """Notification that the comment collection changed.

    Carries no row state; listeners are expected to re-fetch.
    ``kind`` is None when the feed payload could not be understood.
    """

    kind: ChangeKind | None = None
    comment_id: CommentId | None = None


class Username(RootValueObject[str]):
    """Display name shown next to a comment."""

    @field_validator("root")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Strip whitespace and enforce length limits."""
        v = v.strip()
        if len(v) < 1 or len(v) > 255:
            raise ValueError("Username must be 1-255 characters")
        return v


class ImageUpload(ValueObject):
    """Raw image attached to a new comment."""

    data: bytes
    mime_type: str

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only image content types are accepted."""
        if not v.startswith("image/"):
            raise ValueError("Attachment must be an image")
        return v
