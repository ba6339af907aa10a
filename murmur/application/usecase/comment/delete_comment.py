"""Delete comment use case."""

from pydantic import BaseModel

from murmur.application.usecase.base import BaseUseCase
from murmur.domain.service import CommentSyncService
from murmur.domain.value import CommentId


class DeleteCommentRequest(BaseModel):
    """Delete comment request."""

    comment_id: str


class DeleteCommentResponse(BaseModel):
    """Delete comment response."""

    comment_id: str
    success: bool


class DeleteCommentUseCase(BaseUseCase):
    """Use case for deleting a comment and all of its replies.

    The sync service removes the thread from the view immediately and
    schedules its own reconciling refresh, so no refresh happens here.
    """

    def __init__(self, sync_service: CommentSyncService) -> None:
        self.sync_service = sync_service

    async def execute(self, request: DeleteCommentRequest) -> DeleteCommentResponse:
        success = await self.sync_service.delete(CommentId(request.comment_id))
        return DeleteCommentResponse(comment_id=request.comment_id, success=success)
