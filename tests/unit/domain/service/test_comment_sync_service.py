"""Unit tests for CommentSyncService."""

import asyncio

import pytest

from murmur.adapter.storage import MockImageStore
from murmur.domain.model import Comment
from murmur.domain.service import CommentSyncService
from murmur.domain.value import ImageUpload
from murmur.persistence.repository.inmemory import InMemoryCommentRepository
from tests.conftest import make_record
from tests.doubles import FlakyCommentRepository, GatedCommentRepository


def ids(comments: list[Comment]) -> list[str]:
    """Flatten a forest into ids, depth-first."""
    result: list[str] = []
    for comment in comments:
        result.append(comment.id)
        result.extend(ids(comment.replies))
    return result


def make_service(repo, image_store=None) -> CommentSyncService:
    return CommentSyncService(
        comment_repository=repo,
        image_store=image_store or MockImageStore(),
        settle_delay_seconds=0,
    )


THREAD = [
    make_record("1", None, ts=100),
    make_record("2", "1", ts=110),
    make_record("3", "2", ts=120),
    make_record("4", None, ts=130),
]


class TestRefresh:
    """Tests for refresh()."""

    @pytest.mark.asyncio
    async def test_builds_view_from_record_source(self):
        """Refresh should replace the view with the rebuilt forest."""
        # Arrange
        service = make_service(InMemoryCommentRepository(THREAD))

        # Act
        result = await service.refresh()

        # Assert
        assert result is True
        assert [c.id for c in service.comments] == ["4", "1"]
        assert ids(service.comments) == ["4", "1", "2", "3"]
        assert {r.id for r in service.records} == {"1", "2", "3", "4"}

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_view(self):
        """A failed fetch should report False and leave the view alone."""
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        before = service.comments

        repo.fail_list = True
        result = await service.refresh()

        assert result is False
        assert service.comments == before

    @pytest.mark.asyncio
    async def test_clock_advances_only_on_change(self):
        """Refreshing an unchanged snapshot should not bump last_modified."""
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)
        notified: list[list[Comment]] = []
        service.add_listener(notified.append)

        await service.refresh()
        first_clock = service.last_modified
        await service.refresh()

        assert first_clock == 1
        assert service.last_modified == first_clock
        assert len(notified) == 1

        await repo.insert_comment(make_record("5", "4", ts=140))
        await service.refresh()

        assert service.last_modified == first_clock + 1
        assert len(notified) == 2
        assert ids(notified[-1]) == ["4", "5", "1", "2", "3"]

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self):
        service = make_service(InMemoryCommentRepository(THREAD))
        notified: list[list[Comment]] = []
        remove = service.add_listener(notified.append)

        remove()
        await service.refresh()

        assert notified == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_refresh(self):
        """Later listeners still run and refresh still reports success."""
        service = make_service(InMemoryCommentRepository(THREAD))
        notified: list[list[Comment]] = []

        def broken(comments: list[Comment]) -> None:
            raise RuntimeError("listener bug")

        service.add_listener(broken)
        service.add_listener(notified.append)

        result = await service.refresh()

        assert result is True
        assert len(notified) == 1
        assert ids(service.comments) == ["4", "1", "2", "3"]

    @pytest.mark.asyncio
    async def test_overlapping_refreshes_keep_latest_issued(self):
        """A slow earlier refresh finishing last must not clobber a newer one."""
        # Arrange
        repo = GatedCommentRepository()
        snapshot_a = [make_record("a", ts=1)]
        snapshot_b = [make_record("a", ts=1), make_record("b", ts=2)]
        gate_a = repo.script(snapshot_a)
        gate_b = repo.script(snapshot_b)
        service = make_service(repo)

        # Act
        first = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)

        gate_b.set()
        await second
        gate_a.set()
        await first

        # Assert
        assert [c.id for c in service.comments] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_overlapping_refreshes_in_order(self):
        """When the earlier refresh finishes first, the later one still wins."""
        repo = GatedCommentRepository()
        gate_a = repo.script([make_record("a", ts=1)])
        gate_b = repo.script([make_record("b", ts=2)])
        service = make_service(repo)

        first = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)

        gate_a.set()
        await first
        assert [c.id for c in service.comments] == ["a"]

        gate_b.set()
        await second
        assert [c.id for c in service.comments] == ["b"]


class TestAddComment:
    """Tests for add_comment() and add_reply()."""

    @pytest.mark.asyncio
    async def test_writes_root_row_without_touching_view(self):
        """New comments appear only after the next refresh."""
        repo = InMemoryCommentRepository()
        service = make_service(repo)

        record = await service.add_comment("hello", "QuietReader")

        assert record is not None
        assert record.parent_id is None
        assert record.username == "QuietReader"
        assert service.comments == []

        await service.refresh()
        assert [c.id for c in service.comments] == [record.id]

    @pytest.mark.asyncio
    async def test_blank_username_gets_pseudonym(self):
        service = make_service(InMemoryCommentRepository())

        record = await service.add_comment("hello", "   ")

        assert record is not None
        assert record.username.strip() != ""
        assert record.username[-1].isdigit()

    @pytest.mark.asyncio
    async def test_username_is_trimmed(self):
        service = make_service(InMemoryCommentRepository())

        record = await service.add_comment("hello", "  Ghost  ")

        assert record is not None
        assert record.username == "Ghost"

    @pytest.mark.asyncio
    async def test_attaches_uploaded_image(self):
        image_store = MockImageStore()
        service = make_service(InMemoryCommentRepository(), image_store)

        record = await service.add_comment(
            "look", "Ghost", ImageUpload(data=b"\x89PNG", mime_type="image/png")
        )

        assert record is not None
        assert record.image_url is not None
        assert record.image_url.endswith(".png")
        assert len(image_store.objects) == 1

    @pytest.mark.asyncio
    async def test_failed_upload_does_not_block_comment(self):
        """Image upload is best-effort."""
        service = make_service(InMemoryCommentRepository(), MockImageStore(fail=True))

        record = await service.add_comment(
            "look", "Ghost", ImageUpload(data=b"\x89PNG", mime_type="image/png")
        )

        assert record is not None
        assert record.image_url is None

    @pytest.mark.asyncio
    async def test_write_failure_returns_none(self):
        repo = FlakyCommentRepository()
        repo.fail_insert = True
        service = make_service(repo)

        assert await service.add_comment("hello", "Ghost") is None
        assert await repo.list_comments() == []

    @pytest.mark.asyncio
    async def test_long_username_is_truncated(self):
        """Oversized names are cut to the column limit instead of failing."""
        service = make_service(InMemoryCommentRepository())

        record = await service.add_comment("hello", "  " + "x" * 300)

        assert record is not None
        assert record.username == "x" * 255

    @pytest.mark.asyncio
    async def test_rejected_comment_uploads_nothing(self):
        """An invalid row returns None before the image reaches storage."""
        # Arrange
        repo = InMemoryCommentRepository()
        image_store = MockImageStore()
        service = make_service(repo, image_store)

        # Act
        record = await service.add_reply(
            "1", "", "Ghost", ImageUpload(data=b"\x89PNG", mime_type="image/png")
        )

        # Assert
        assert record is None
        assert image_store.objects == {}
        assert await repo.list_comments() == []

    @pytest.mark.asyncio
    async def test_reply_references_parent(self):
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)

        record = await service.add_reply("4", "agreed", "Echo")
        await service.refresh()

        assert record is not None
        assert record.parent_id == "4"
        assert [c.id for c in service.comments[0].replies] == [record.id]

    @pytest.mark.asyncio
    async def test_reply_failure_leaves_view_unchanged(self):
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        before = service.comments

        repo.fail_insert = True
        record = await service.add_reply("4", "agreed", "Echo")

        assert record is None
        assert service.comments == before
        assert len(await repo.list_comments()) == len(THREAD)


class TestReport:
    """Tests for report()."""

    @pytest.mark.asyncio
    async def test_flags_exactly_one_row(self):
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)

        assert await service.report("2") is True

        rows = {r.id: r for r in await repo.list_comments()}
        assert rows["2"].is_reported is True
        assert [r.id for r in rows.values() if r.is_reported] == ["2"]

    @pytest.mark.asyncio
    async def test_is_idempotent(self):
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)

        assert await service.report("2") is True
        assert await service.report("2") is True

        await service.refresh()
        assert service.comments[1].replies[0].is_reported is True

    @pytest.mark.asyncio
    async def test_unknown_comment_returns_false(self):
        service = make_service(InMemoryCommentRepository(THREAD))

        assert await service.report("nope") is False

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self):
        repo = FlakyCommentRepository(THREAD)
        repo.fail_update = True
        service = make_service(repo)

        assert await service.report("2") is False


class TestDelete:
    """Tests for delete()."""

    @pytest.mark.asyncio
    async def test_removes_thread_in_one_batch(self):
        """The cascade set should be deleted with a single call."""
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()

        result = await service.delete("1")

        assert result is True
        assert repo.delete_batches == [{"1", "2", "3"}]
        assert [r.id for r in await repo.list_comments()] == ["4"]

    @pytest.mark.asyncio
    async def test_prunes_view_before_refresh(self):
        """The cached view should drop the thread as soon as delete returns."""
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        clock = service.last_modified

        await service.delete("2")

        assert ids(service.comments) == ["4", "1"]
        assert service.last_modified == clock + 1

        await service.wait_idle()
        assert ids(service.comments) == ["4", "1"]

    @pytest.mark.asyncio
    async def test_failed_delete_is_reconciled_by_refresh(self):
        """If the batch fails, the scheduled refresh restores the thread."""
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        repo.fail_delete = True

        result = await service.delete("1")

        assert result is False
        assert ids(service.comments) == ["4"]

        await service.wait_idle()
        assert ids(service.comments) == ["4", "1", "2", "3"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_delete(self):
        """The batch is sent and the reconciling refresh still runs."""
        # Arrange
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()

        def broken(comments: list[Comment]) -> None:
            raise RuntimeError("listener bug")

        service.add_listener(broken)

        # Act
        result = await service.delete("1")
        await service.wait_idle()

        # Assert
        assert result is True
        assert repo.delete_batches == [{"1", "2", "3"}]
        assert ids(service.comments) == ["4"]
        assert service.records == [r for r in THREAD if r.id == "4"]

    @pytest.mark.asyncio
    async def test_snapshot_failure_returns_false(self):
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        repo.fail_list = True

        assert await service.delete("1") is False
        assert ids(service.comments) == ["4", "1", "2", "3"]
        assert repo.delete_batches == []

    @pytest.mark.asyncio
    async def test_uses_fresh_snapshot_for_cascade(self):
        """Replies written since the last refresh are deleted too."""
        repo = FlakyCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        await repo.insert_comment(make_record("late", "3", ts=200))

        await service.delete("1")

        assert repo.delete_batches == [{"1", "2", "3", "late"}]

    @pytest.mark.asyncio
    async def test_stale_refresh_cannot_resurrect_deleted_thread(self):
        """A refresh issued before the delete is discarded when it lands."""
        repo = GatedCommentRepository(THREAD)
        service = make_service(repo)
        await service.refresh()
        gate = repo.script(THREAD)

        stale = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        await service.delete("1")
        gate.set()
        await stale

        assert ids(service.comments) == ["4"]

        await service.wait_idle()
        assert ids(service.comments) == ["4"]


class TestChangeFeed:
    """Tests for start(), stop() and change-feed reactions."""

    @pytest.mark.asyncio
    async def test_start_loads_initial_snapshot(self):
        service = make_service(InMemoryCommentRepository(THREAD))

        await service.start()

        assert ids(service.comments) == ["4", "1", "2", "3"]
        await service.stop()

    @pytest.mark.asyncio
    async def test_start_falls_back_to_empty_view(self):
        """An unavailable snapshot on startup should not raise."""
        repo = FlakyCommentRepository(THREAD)
        repo.fail_list = True
        service = make_service(repo)

        await service.start()

        assert service.comments == []

        repo.fail_list = False
        await repo.insert_comment(make_record("5", ts=300))
        await service.wait_idle()
        assert [c.id for c in service.comments] == ["5", "4", "1"]
        await service.stop()

    @pytest.mark.asyncio
    async def test_remote_insert_triggers_refresh(self):
        """A write by another client should reach the view via the feed."""
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)
        await service.start()

        await repo.insert_comment(make_record("remote", "4", ts=300))
        await service.wait_idle()

        assert [c.id for c in service.comments[0].replies] == ["remote"]
        await service.stop()

    @pytest.mark.asyncio
    async def test_remote_update_triggers_refresh(self):
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)
        await service.start()

        await repo.update_comment("4", {"is_reported": True})
        await service.wait_idle()

        assert service.comments[0].is_reported is True
        await service.stop()

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self):
        repo = InMemoryCommentRepository(THREAD)
        service = make_service(repo)
        await service.start()

        await service.stop()
        await repo.insert_comment(make_record("after", ts=300))
        await service.wait_idle()

        assert "after" not in ids(service.comments)
