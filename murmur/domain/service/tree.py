"""Comment tree construction.

Turns a flat snapshot of comment rows into the ordered forest shown to
readers, and filters ids out of an existing forest.
"""

from collections.abc import Collection, Iterable

from murmur.domain.model import Comment, CommentRecord
from murmur.domain.value import CommentId


def build_comment_tree(records: Iterable[CommentRecord]) -> list[Comment]:
    """Build the comment forest from flat rows.

    Algorithm:
    1. Create a detached node for every row, keyed by id
    2. Attach each row to its parent when the parent is in the same
       snapshot and the link does not close a cycle; otherwise the row
       becomes a root
    3. Sort roots newest first (stable, so ties keep input order)

    Rows whose parent is missing from the snapshot are promoted to roots
    rather than dropped. Reply lists keep input order.

    Args:
        records: Flat comment rows, any order

    Returns:
        Root comments with replies nested beneath them
    """
    unique: list[CommentRecord] = []
    nodes: dict[CommentId, Comment] = {}
    for record in records:
        if record.id in nodes:
            # Duplicate id in the snapshot; first row wins
            continue
        unique.append(record)
        nodes[record.id] = Comment.from_record(record)

    parents: dict[CommentId, CommentId] = {
        record.id: record.parent_id
        for record in unique
        if record.parent_id is not None and record.parent_id in nodes
    }
    cyclic = _find_cyclic(parents)

    roots: list[Comment] = []
    for record in unique:
        node = nodes[record.id]
        parent_id = parents.get(record.id)
        if parent_id is None or record.id in cyclic:
            roots.append(node)
        else:
            nodes[parent_id].replies.append(node)

    roots.sort(key=lambda comment: comment.timestamp, reverse=True)
    return roots


def _find_cyclic(parents: dict[CommentId, CommentId]) -> set[CommentId]:
    """Return ids whose parent chain loops back onto itself."""
    cyclic: set[CommentId] = set()
    settled: set[CommentId] = set()

    for start in parents:
        if start in settled:
            continue
        chain: list[CommentId] = []
        on_chain: set[CommentId] = set()
        current: CommentId | None = start
        while current is not None and current not in settled:
            if current in on_chain:
                # Everything from the first visit of current onward is the loop
                cyclic.update(chain[chain.index(current) :])
                break
            chain.append(current)
            on_chain.add(current)
            current = parents.get(current)
        settled.update(chain)

    return cyclic


def prune_comments(
    comments: list[Comment], removed: Collection[CommentId]
) -> list[Comment]:
    """Return a copy of the forest without the given ids.

    Removing a node removes its whole subtree. The input forest is left
    untouched.

    Args:
        comments: Forest to filter
        removed: Ids to drop

    Returns:
        New forest with the same ordering
    """
    pruned: list[Comment] = []
    for comment in comments:
        if comment.id in removed:
            continue
        pruned.append(
            Comment(
                id=comment.id,
                text=comment.text,
                username=comment.username,
                timestamp=comment.timestamp,
                parent_id=comment.parent_id,
                is_reported=comment.is_reported,
                image_url=comment.image_url,
                replies=prune_comments(comment.replies, removed),
            )
        )
    return pruned


def count_comments(comments: Iterable[Comment]) -> int:
    """Count every node in a forest, replies included."""
    total = 0
    stack = list(comments)
    while stack:
        comment = stack.pop()
        total += 1
        stack.extend(comment.replies)
    return total
