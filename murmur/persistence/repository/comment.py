"""PostgreSQL implementation of Comment repository."""

from typing import Any, Iterable, List, Mapping

import asyncpg
import logfire
from pydantic import ValidationError
from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from murmur.domain.error import RecordSourceError
from murmur.domain.model import CommentRecord
from murmur.domain.repository import ChangeCallback, CommentRepository, Subscription
from murmur.domain.value import ChangeEvent, CommentId
from murmur.persistence.mappers import comment_to_dict, row_to_comment
from murmur.persistence.tables import comments_table

# Columns a patch may touch; id, parent_id and created_at are immutable
UPDATABLE_COLUMNS = frozenset({"is_reported", "image_url"})


class PostgresSubscription(Subscription):
    """LISTEN registration held on a dedicated connection."""

    def __init__(
        self,
        connection: AsyncConnection,
        driver_connection: Any,
        channel: str,
        listener: Any,
    ) -> None:
        self._connection = connection
        self._driver_connection = driver_connection
        self._channel = channel
        self._listener = listener
        self._closed = False

    async def unsubscribe(self) -> None:
        """Stop listening and release the connection."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._driver_connection.remove_listener(
                self._channel, self._listener
            )
        finally:
            await self._connection.close()
        logfire.info("Change feed unsubscribed", channel=self._channel)


class PostgresCommentRepository(CommentRepository):
    """PostgreSQL implementation of CommentRepository.

    Every call runs in its own short session. The change feed uses
    LISTEN on the channel fed by the comments NOTIFY trigger.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        channel: str = "comments_changed",
    ) -> None:
        """Initialize repository.

        Args:
            engine: Engine used for the dedicated LISTEN connection
            session_factory: Factory for per-call sessions
            channel: NOTIFY channel name
        """
        self.engine = engine
        self.session_factory = session_factory
        self.channel = channel

    async def list_comments(self) -> List[CommentRecord]:
        """Fetch all comments, newest first."""
        stmt = select(comments_table).order_by(desc(comments_table.c.created_at))
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.fetchall()
        except SQLAlchemyError as e:
            raise RecordSourceError("list", str(e)) from e
        return [row_to_comment(row._asdict()) for row in rows]

    async def insert_comment(self, record: CommentRecord) -> CommentRecord:
        """Insert a comment and return the stored row."""
        stmt = (
            comments_table.insert()
            .values(**comment_to_dict(record))
            .returning(comments_table)
        )
        try:
            async with self.session_factory.begin() as session:
                result = await session.execute(stmt)
                row = result.fetchone()
        except SQLAlchemyError as e:
            raise RecordSourceError("insert", str(e)) from e
        return row_to_comment(row._asdict()) if row else record

    async def update_comment(
        self, comment_id: CommentId, patch: Mapping[str, Any]
    ) -> bool:
        """Apply a partial update to one comment."""
        unknown = set(patch) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update comment columns: {sorted(unknown)}")

        stmt = (
            update(comments_table)
            .where(comments_table.c.id == comment_id)
            .values(**patch)
        )
        try:
            async with self.session_factory.begin() as session:
                result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise RecordSourceError("update", str(e)) from e
        return result.rowcount > 0

    async def delete_comments(self, comment_ids: Iterable[CommentId]) -> None:
        """Delete comments in a single statement."""
        ids = list(comment_ids)
        if not ids:
            return

        stmt = comments_table.delete().where(comments_table.c.id.in_(ids))
        try:
            async with self.session_factory.begin() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise RecordSourceError("delete", str(e)) from e

    async def subscribe_changes(self, callback: ChangeCallback) -> Subscription:
        """LISTEN on the change channel using a dedicated connection."""

        def listener(connection: Any, pid: int, channel: str, payload: str) -> None:
            callback(_parse_change(payload))

        try:
            connection = await self.engine.connect()
        except SQLAlchemyError as e:
            raise RecordSourceError("subscribe", str(e)) from e

        try:
            raw = await connection.get_raw_connection()
            driver_connection = raw.driver_connection
            await driver_connection.add_listener(self.channel, listener)
        except (SQLAlchemyError, asyncpg.PostgresError, OSError) as e:
            await connection.close()
            raise RecordSourceError("subscribe", str(e)) from e

        logfire.info("Change feed subscribed", channel=self.channel)
        return PostgresSubscription(
            connection, driver_connection, self.channel, listener
        )


def _parse_change(payload: str) -> ChangeEvent:
    """Parse a NOTIFY payload, tolerating unexpected content."""
    try:
        return ChangeEvent.model_validate_json(payload)
    except ValidationError:
        logfire.warn("Unrecognized change payload", payload=payload)
        return ChangeEvent()
