"""Cascade resolution for comment deletion."""

from collections import defaultdict
from collections.abc import Iterable

from murmur.domain.model import CommentRecord
from murmur.domain.value import CommentId


def resolve_cascade(
    target_id: CommentId, records: Iterable[CommentRecord]
) -> set[CommentId]:
    """Collect a comment and every reply beneath it.

    Walks the snapshot depth-first from ``target_id`` through parent
    references. Ids already visited are not descended again, so a
    malformed snapshot containing a cycle still terminates.

    Deleting the returned set leaves no row pointing at a removed parent.

    Args:
        target_id: Comment being deleted
        records: Full flat snapshot

    Returns:
        Target id plus all transitive reply ids
    """
    children: dict[CommentId, list[CommentId]] = defaultdict(list)
    for record in records:
        if record.parent_id is not None:
            children[record.parent_id].append(record.id)

    visited: set[CommentId] = set()
    stack = [target_id]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        stack.extend(
            child for child in children.get(current, []) if child not in visited
        )

    return visited
