"""Domain services."""

from .base import Service
from .cascade import resolve_cascade
from .comment_sync_service import CommentListener, CommentSyncService
from .tree import build_comment_tree, count_comments, prune_comments
from .username import generate_username

__all__ = [
    "CommentListener",
    "CommentSyncService",
    "Service",
    "build_comment_tree",
    "count_comments",
    "generate_username",
    "prune_comments",
    "resolve_cascade",
]
