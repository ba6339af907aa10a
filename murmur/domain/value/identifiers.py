"""Strongly typed identifiers for comment entities.

Comment ids are opaque strings assigned by whoever creates the row
(a UUID for new comments, arbitrary text for seeded data).
"""

from typing import NewType

CommentId = NewType("CommentId", str)
