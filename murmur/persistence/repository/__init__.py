"""PostgreSQL repository implementations."""

from murmur.persistence.repository.comment import PostgresCommentRepository

__all__ = [
    "PostgresCommentRepository",
]
