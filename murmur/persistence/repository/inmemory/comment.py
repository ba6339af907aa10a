"""In-memory comment repository for testing."""

from typing import Any, Iterable, Mapping

from murmur.domain.model import CommentRecord
from murmur.domain.repository import ChangeCallback, CommentRepository, Subscription
from murmur.domain.value import ChangeEvent, ChangeKind, CommentId


class InMemorySubscription(Subscription):
    """Subscription that detaches a callback from the repository."""

    def __init__(self, callbacks: list[ChangeCallback], callback: ChangeCallback):
        self._callbacks = callbacks
        self._callback = callback

    async def unsubscribe(self) -> None:
        """Detach the callback."""
        if self._callback in self._callbacks:
            self._callbacks.remove(self._callback)


class InMemoryCommentRepository(CommentRepository):
    """In-memory implementation of CommentRepository for testing.

    Subscribers are notified synchronously after every successful write.
    """

    def __init__(self, seed: Iterable[CommentRecord] = ()) -> None:
        self._comments: dict[CommentId, CommentRecord] = {c.id: c for c in seed}
        self._callbacks: list[ChangeCallback] = []

    async def list_comments(self) -> list[CommentRecord]:
        """Return all comments, newest first."""
        return sorted(
            self._comments.values(), key=lambda c: c.created_at, reverse=True
        )

    async def insert_comment(self, record: CommentRecord) -> CommentRecord:
        """Store a comment."""
        self._comments[record.id] = record
        self._notify(ChangeEvent(kind=ChangeKind.INSERT, comment_id=record.id))
        return record

    async def update_comment(
        self, comment_id: CommentId, patch: Mapping[str, Any]
    ) -> bool:
        """Replace a comment with a patched copy."""
        comment = self._comments.get(comment_id)
        if comment is None:
            return False
        # Rows are immutable, so store an updated copy
        self._comments[comment_id] = comment.model_copy(update=dict(patch))
        self._notify(ChangeEvent(kind=ChangeKind.UPDATE, comment_id=comment_id))
        return True

    async def delete_comments(self, comment_ids: Iterable[CommentId]) -> None:
        """Remove comments; one notification per batch."""
        ids = list(comment_ids)
        for comment_id in ids:
            self._comments.pop(comment_id, None)
        if ids:
            self._notify(ChangeEvent(kind=ChangeKind.DELETE))

    async def subscribe_changes(self, callback: ChangeCallback) -> Subscription:
        """Register a change callback."""
        self._callbacks.append(callback)
        return InMemorySubscription(self._callbacks, callback)

    def _notify(self, event: ChangeEvent) -> None:
        for callback in list(self._callbacks):
            callback(event)
