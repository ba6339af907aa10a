"""Get comments use case."""

from datetime import datetime

from pydantic import BaseModel

from murmur.application.usecase.base import BaseUseCase
from murmur.domain.model import Comment
from murmur.domain.service import CommentSyncService, count_comments


class CommentItem(BaseModel):
    """Comment node in response.

    Recursive structure mirroring the domain forest.
    """

    comment_id: str
    text: str
    username: str
    parent_id: str | None
    is_reported: bool
    image_url: str | None
    created_at: datetime
    replies: list["CommentItem"]

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentItem":
        """Convert a domain Comment (and its replies) to a response model.

        Args:
            comment: Domain comment node

        Returns:
            Response model with replies recursively converted
        """
        return cls(
            comment_id=str(comment.id),
            text=comment.text,
            username=comment.username,
            parent_id=str(comment.parent_id) if comment.parent_id else None,
            is_reported=comment.is_reported,
            image_url=comment.image_url,
            created_at=comment.timestamp,
            replies=[cls.from_domain(reply) for reply in comment.replies],
        )


class GetCommentsRequest(BaseModel):
    """Get comments request."""

    refresh: bool = False  # Re-fetch from the record source before reading


class GetCommentsResponse(BaseModel):
    """Get comments response."""

    comments: list[CommentItem]
    total: int
    last_modified: int


class GetCommentsUseCase(BaseUseCase):
    """Use case for reading the current comment forest."""

    def __init__(self, sync_service: CommentSyncService) -> None:
        """Initialize get comments use case.

        Args:
            sync_service: Comment sync service owning the view
        """
        self.sync_service = sync_service

    async def execute(self, request: GetCommentsRequest) -> GetCommentsResponse:
        """Execute get comments flow.

        Args:
            request: Get comments request

        Returns:
            Forest with newest root first, plus the total node count
        """
        if request.refresh:
            await self.sync_service.refresh()

        comments = self.sync_service.comments
        return GetCommentsResponse(
            comments=[CommentItem.from_domain(comment) for comment in comments],
            total=count_comments(comments),
            last_modified=self.sync_service.last_modified,
        )
