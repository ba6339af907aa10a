"""Comment synchronization service.

Keeps an in-process view of the comment forest in step with the record
source. The record source is always the authority: every mutation is a
remote write followed by a full re-fetch, and every change-feed event
triggers the same re-fetch. The only local edit is the optimistic removal
performed by delete(), which the follow-up refresh overwrites.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

import logfire
from pydantic import ValidationError

from murmur.domain.error import RecordSourceError
from murmur.domain.model import Comment, CommentRecord
from murmur.domain.repository import CommentRepository, ImageStore, Subscription
from murmur.domain.value import ChangeEvent, CommentId, ImageUpload, Username

from .base import Service
from .cascade import resolve_cascade
from .tree import build_comment_tree, count_comments, prune_comments
from .username import generate_username

CommentListener = Callable[[list[Comment]], None]

MAX_USERNAME_LENGTH = 255


class CommentSyncService(Service):
    """Owns the current comment forest and keeps it in sync.

    Concurrency model: everything runs on one event loop and there is no
    lock around the view. Each refresh (and each optimistic delete) takes
    a ticket when it is issued. A refresh result is applied only if no
    later ticket has been applied already, so an overtaken fetch never
    replaces a newer view.
    """

    def __init__(
        self,
        comment_repository: CommentRepository,
        image_store: ImageStore,
        settle_delay_seconds: float = 0.5,
    ) -> None:
        """Initialize comment sync service.

        Args:
            comment_repository: Record source for flat comment rows
            image_store: Object store for attached images
            settle_delay_seconds: Delay before the refresh that follows a delete
        """
        self.comment_repository = comment_repository
        self.image_store = image_store
        self.settle_delay_seconds = settle_delay_seconds

        self._comments: list[Comment] = []
        self._records: list[CommentRecord] = []
        self._last_modified = 0
        self._issued = 0
        self._applied = 0
        self._listeners: list[CommentListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._subscription: Subscription | None = None

    @property
    def comments(self) -> list[Comment]:
        """Current forest, newest root first."""
        return list(self._comments)

    @property
    def records(self) -> list[CommentRecord]:
        """Flat snapshot the last applied refresh was built from."""
        return list(self._records)

    @property
    def last_modified(self) -> int:
        """Logical clock, advanced only when the view observably changes."""
        return self._last_modified

    def add_listener(self, listener: CommentListener) -> Callable[[], None]:
        """Register a callback invoked with the new forest after each change.

        Args:
            listener: Callback receiving the updated forest

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self) -> None:
        """Subscribe to the change feed and load the initial snapshot.

        Never raises for record source failures: without a snapshot the
        service starts with an empty view and catches up on the next
        successful refresh.
        """
        with logfire.span("comment_sync_service.start"):
            if self._subscription is None:
                try:
                    subscribe = self.comment_repository.subscribe_changes
                    self._subscription = await subscribe(self._handle_change)
                except RecordSourceError as e:
                    logfire.error("Change feed subscription failed", error=str(e))

            if not await self.refresh():
                logfire.warn(
                    "Initial comment snapshot unavailable, starting with empty view"
                )

    async def stop(self) -> None:
        """Unsubscribe from the change feed and wait for pending refreshes."""
        with logfire.span("comment_sync_service.stop", pending=len(self._tasks)):
            if self._subscription is not None:
                await self._subscription.unsubscribe()
                self._subscription = None
            await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every scheduled background refresh has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def refresh(self) -> bool:
        """Re-fetch all rows and rebuild the view.

        Safe to call concurrently with itself.

        Returns:
            True if the fetch succeeded, False if the record source failed
        """
        ticket = self._next_ticket()
        with logfire.span("comment_sync_service.refresh", ticket=ticket):
            try:
                records = await self.comment_repository.list_comments()
            except RecordSourceError as e:
                logfire.warn("Comment refresh failed", ticket=ticket, error=str(e))
                return False

            if ticket < self._applied:
                logfire.info(
                    "Discarding overtaken refresh",
                    ticket=ticket,
                    applied=self._applied,
                )
                return True

            self._applied = ticket
            self._records = records
            self._publish(build_comment_tree(records))
            return True

    async def add_comment(
        self,
        text: str,
        username: str | None = None,
        image: ImageUpload | None = None,
    ) -> CommentRecord | None:
        """Create a top-level comment.

        The view is not touched; the new comment appears with the next
        refresh.

        Args:
            text: Comment text
            username: Display name (pseudonym generated when blank)
            image: Optional image, uploaded best-effort

        Returns:
            Stored row, or None if the row was rejected or the write failed
        """
        return await self._create(text, username, None, image)

    async def add_reply(
        self,
        parent_id: CommentId,
        text: str,
        username: str | None = None,
        image: ImageUpload | None = None,
    ) -> CommentRecord | None:
        """Create a reply to an existing comment.

        Args:
            parent_id: Comment being replied to
            text: Reply text
            username: Display name (pseudonym generated when blank)
            image: Optional image, uploaded best-effort

        Returns:
            Stored row, or None if the row was rejected or the write failed
        """
        return await self._create(text, username, parent_id, image)

    async def report(self, comment_id: CommentId) -> bool:
        """Flag a comment as reported.

        Idempotent: reporting an already reported comment succeeds.

        Args:
            comment_id: Comment to flag

        Returns:
            True if the comment exists and the write succeeded
        """
        with logfire.span("comment_sync_service.report", comment_id=comment_id):
            try:
                matched = await self.comment_repository.update_comment(
                    comment_id, {"is_reported": True}
                )
            except RecordSourceError as e:
                logfire.error("Report failed", comment_id=comment_id, error=str(e))
                return False

            if matched:
                logfire.info("Comment reported", comment_id=comment_id)
            else:
                logfire.warn("Comment not found for report", comment_id=comment_id)
            return matched

    async def delete(self, comment_id: CommentId) -> bool:
        """Delete a comment together with all of its replies.

        Steps:
        1. Fetch the current snapshot and resolve the cascade set
        2. Remove those ids from the cached view right away
        3. Issue one batched delete
        4. Schedule a reconciling refresh, whatever the outcome

        Args:
            comment_id: Comment to delete

        Returns:
            True if the batch delete succeeded
        """
        with logfire.span("comment_sync_service.delete", comment_id=comment_id):
            try:
                records = await self.comment_repository.list_comments()
            except RecordSourceError as e:
                logfire.error(
                    "Snapshot for cascade delete failed",
                    comment_id=comment_id,
                    error=str(e),
                )
                return False

            doomed = resolve_cascade(comment_id, records)

            ticket = self._next_ticket()
            self._applied = ticket
            self._publish(prune_comments(self._comments, doomed))

            try:
                await self.comment_repository.delete_comments(doomed)
                deleted = True
                logfire.info(
                    "Comments deleted", comment_id=comment_id, count=len(doomed)
                )
            except RecordSourceError as e:
                deleted = False
                logfire.error(
                    "Cascade delete failed",
                    comment_id=comment_id,
                    count=len(doomed),
                    error=str(e),
                )

            self._schedule_refresh(self.settle_delay_seconds)
            return deleted

    async def _create(
        self,
        text: str,
        username: str | None,
        parent_id: CommentId | None,
        image: ImageUpload | None,
    ) -> CommentRecord | None:
        with logfire.span(
            "comment_sync_service.create_comment",
            parent_id=parent_id,
            has_image=image is not None,
        ):
            # Row is validated before any image is uploaded
            try:
                record = CommentRecord(
                    id=CommentId(str(uuid4())),
                    text=text,
                    username=self._resolve_username(username),
                    parent_id=parent_id,
                    is_reported=False,
                    created_at=datetime.now(timezone.utc),
                )
            except ValidationError as e:
                logfire.warn(
                    "Comment rejected",
                    parent_id=parent_id,
                    errors=e.error_count(),
                )
                return None

            if image is not None:
                image_url = await self.image_store.upload_image(
                    image.data, image.mime_type
                )
                if image_url is None:
                    logfire.warn("Image upload failed, posting without image")
                else:
                    record = record.model_copy(update={"image_url": image_url})

            try:
                saved = await self.comment_repository.insert_comment(record)
            except RecordSourceError as e:
                logfire.error(
                    "Comment write failed",
                    parent_id=parent_id,
                    error=str(e),
                )
                return None

            logfire.info(
                "Comment created",
                comment_id=saved.id,
                parent_id=parent_id,
                username=saved.username,
            )
            return saved

    @staticmethod
    def _resolve_username(username: str | None) -> str:
        if username is None or not username.strip():
            return generate_username()
        return Username(username.strip()[:MAX_USERNAME_LENGTH]).root

    def _next_ticket(self) -> int:
        self._issued += 1
        return self._issued

    def _publish(self, comments: list[Comment]) -> None:
        if comments == self._comments:
            return
        self._comments = comments
        self._last_modified += 1
        logfire.info(
            "Comment view updated",
            last_modified=self._last_modified,
            roots=len(comments),
            total=count_comments(comments),
        )
        # Listener errors are logged, never raised to the publisher
        for listener in list(self._listeners):
            try:
                listener(self.comments)
            except Exception:
                logfire.exception("Comment listener failed")

    def _handle_change(self, event: ChangeEvent) -> None:
        kind = event.kind.value if event.kind else None
        logfire.info("Comment change observed", kind=kind, comment_id=event.comment_id)
        self._schedule_refresh()

    def _schedule_refresh(self, delay: float = 0.0) -> None:
        task = asyncio.get_running_loop().create_task(self._delayed_refresh(delay))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    async def _delayed_refresh(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        await self.refresh()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logfire.error(
                "Background refresh crashed",
                error=str(task.exception()),
                error_type=type(task.exception()).__name__,
            )
