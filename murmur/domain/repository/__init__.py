"""Repository interfaces for the comment domain.

Interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence and adapter layers.
"""

from murmur.domain.repository.comment import (
    ChangeCallback,
    CommentRepository,
    Subscription,
)
from murmur.domain.repository.image import ImageStore

__all__ = [
    "ChangeCallback",
    "CommentRepository",
    "ImageStore",
    "Subscription",
]
