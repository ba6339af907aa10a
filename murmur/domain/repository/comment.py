"""Comment repository interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Mapping

from murmur.domain.model.comment import CommentRecord
from murmur.domain.value import ChangeEvent, CommentId

ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(ABC):
    """Handle returned by CommentRepository.subscribe_changes()."""

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivering change notifications.

        Calling this more than once is a no-op.
        """
        pass


class CommentRepository(ABC):
    """Record source for flat comment rows.

    Defines the contract for comment persistence and the change feed.
    Implementations live in the infrastructure layer and raise
    RecordSourceError for any failed read or write.
    """

    @abstractmethod
    async def list_comments(self) -> List[CommentRecord]:
        """Fetch every comment row.

        Returns:
            All rows ordered by creation time, newest first
        """
        pass

    @abstractmethod
    async def insert_comment(self, record: CommentRecord) -> CommentRecord:
        """Insert a new comment row.

        Args:
            record: Row to insert (id already assigned)

        Returns:
            The row as stored
        """
        pass

    @abstractmethod
    async def update_comment(
        self, comment_id: CommentId, patch: Mapping[str, Any]
    ) -> bool:
        """Apply a partial update to one row.

        Args:
            comment_id: Row to update
            patch: Column values to set

        Returns:
            True if a row matched, False otherwise
        """
        pass

    @abstractmethod
    async def delete_comments(self, comment_ids: Iterable[CommentId]) -> None:
        """Delete a set of rows in one batch.

        The batch either succeeds as a whole or raises.

        Args:
            comment_ids: Ids to remove
        """
        pass

    @abstractmethod
    async def subscribe_changes(self, callback: ChangeCallback) -> Subscription:
        """Register for insert/update/delete notifications.

        The callback runs on the event loop and must not block.

        Args:
            callback: Invoked once per observed change

        Returns:
            Subscription handle used to stop delivery
        """
        pass
