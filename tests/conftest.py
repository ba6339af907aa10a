"""Test configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone

import logfire

from murmur.domain.model import CommentRecord
from murmur.domain.value import CommentId

# Settings are read from the environment; keep DI-built services fast
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SYNC__SETTLE_DELAY_SECONDS", "0")

logfire.configure(send_to_logfire=False, console=False)

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_record(
    comment_id: str,
    parent_id: str | None = None,
    ts: int = 0,
    text: str | None = None,
    **kwargs,
) -> CommentRecord:
    """Helper function to build comment rows for tests.

    Args:
        comment_id: Row id
        parent_id: Parent row id (None for top-level)
        ts: Creation time as seconds after BASE_TIME
        text: Comment text (defaults to "comment <id>")

    Returns:
        CommentRecord
    """
    return CommentRecord(
        id=CommentId(comment_id),
        text=text or f"comment {comment_id}",
        username=kwargs.pop("username", "Tester"),
        parent_id=CommentId(parent_id) if parent_id is not None else None,
        created_at=BASE_TIME + timedelta(seconds=ts),
        **kwargs,
    )
