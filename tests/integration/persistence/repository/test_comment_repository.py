"""Integration tests for PostgresCommentRepository.

Requires a migrated PostgreSQL reachable via DATABASE__URL
(``alembic upgrade head``); skipped otherwise.
"""

import asyncio
import os
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from murmur.domain.repository import CommentRepository
from murmur.domain.service import CommentSyncService
from murmur.domain.value import ChangeEvent, ChangeKind
from tests.conftest import make_record
from tests.harness import create_env_fixture

pytestmark = pytest.mark.skipif(
    "DATABASE__URL" not in os.environ, reason="DATABASE__URL not configured"
)

# Integration test fixture - real PostgreSQL, mocked image store
integration_env = create_env_fixture(unmock={"persistence"})


@pytest_asyncio.fixture(autouse=True)
async def clean_database(integration_env):
    """Clean the comments table before each test."""
    session_factory = await integration_env.get(async_sessionmaker[AsyncSession])
    async with session_factory.begin() as session:
        await session.execute(text("DELETE FROM comments"))
    yield


def new_id() -> str:
    return str(uuid4())


class TestPostgresCommentRepository:
    """Integration tests for the PostgreSQL record source."""

    @pytest.mark.asyncio
    async def test_insert_and_list_newest_first(self, integration_env):
        repo = await integration_env.get(CommentRepository)
        older, newer = new_id(), new_id()

        await repo.insert_comment(make_record(older, ts=1))
        await repo.insert_comment(make_record(newer, older, ts=2))
        rows = await repo.list_comments()

        assert [r.id for r in rows] == [newer, older]
        assert rows[0].parent_id == older

    @pytest.mark.asyncio
    async def test_update_and_batch_delete(self, integration_env):
        """Parent and reply go in one statement despite the foreign key."""
        repo = await integration_env.get(CommentRepository)
        parent, child = new_id(), new_id()
        await repo.insert_comment(make_record(parent, ts=1))
        await repo.insert_comment(make_record(child, parent, ts=2))

        assert await repo.update_comment(child, {"is_reported": True}) is True
        assert await repo.update_comment(new_id(), {"is_reported": True}) is False

        await repo.delete_comments({parent, child})

        assert await repo.list_comments() == []

    @pytest.mark.asyncio
    async def test_change_feed_delivers_notifications(self, integration_env):
        repo = await integration_env.get(CommentRepository)
        received: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        subscription = await repo.subscribe_changes(received.put_nowait)

        try:
            await repo.insert_comment(make_record(new_id()))
            event = await asyncio.wait_for(received.get(), timeout=5)
        finally:
            await subscription.unsubscribe()

        assert event.kind == ChangeKind.INSERT

    @pytest.mark.asyncio
    async def test_sync_service_follows_remote_writes(self, integration_env):
        sync_service = await integration_env.get(CommentSyncService)
        repo = await integration_env.get(CommentRepository)
        comment_id = new_id()

        await repo.insert_comment(make_record(comment_id))
        for _ in range(50):
            await sync_service.wait_idle()
            if sync_service.comments:
                break
            await asyncio.sleep(0.1)

        assert [c.id for c in sync_service.comments] == [comment_id]
