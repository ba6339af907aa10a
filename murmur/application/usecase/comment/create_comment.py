"""Create comment use case."""

from pydantic import BaseModel, Field

from murmur.application.usecase.base import BaseUseCase
from murmur.domain.service import CommentSyncService
from murmur.domain.value import CommentId, ImageUpload


class CreateCommentRequest(BaseModel):
    """Create comment request."""

    text: str = Field(min_length=1)
    username: str | None = None  # Pseudonym generated when missing
    parent_id: str | None = None  # Parent comment ID for replies
    image: ImageUpload | None = None

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None


class CreateCommentResponse(BaseModel):
    """Create comment response."""

    success: bool
    comment_id: str | None = None
    parent_id: str | None = None
    username: str | None = None
    image_url: str | None = None


class CreateCommentUseCase(BaseUseCase):
    """Use case for posting a comment or a reply."""

    def __init__(self, sync_service: CommentSyncService) -> None:
        """Initialize create comment use case.

        Args:
            sync_service: Comment sync service
        """
        self.sync_service = sync_service

    async def execute(self, request: CreateCommentRequest) -> CreateCommentResponse:
        """Execute create comment flow.

        Steps:
        1. Write the comment (or reply) through the sync service
        2. Refresh the view so the caller sees its own comment

        Args:
            request: Create comment request

        Returns:
            Response with ``success=False`` if the write failed
        """
        if request.is_reply:
            record = await self.sync_service.add_reply(
                parent_id=CommentId(request.parent_id),
                text=request.text,
                username=request.username,
                image=request.image,
            )
        else:
            record = await self.sync_service.add_comment(
                text=request.text,
                username=request.username,
                image=request.image,
            )

        if record is None:
            return CreateCommentResponse(success=False, parent_id=request.parent_id)

        await self.sync_service.refresh()

        return CreateCommentResponse(
            success=True,
            comment_id=str(record.id),
            parent_id=str(record.parent_id) if record.parent_id else None,
            username=record.username,
            image_url=record.image_url,
        )
