"""Report comment use case."""

from pydantic import BaseModel

from murmur.application.usecase.base import BaseUseCase
from murmur.domain.service import CommentSyncService
from murmur.domain.value import CommentId


class ReportCommentRequest(BaseModel):
    """Report comment request."""

    comment_id: str


class ReportCommentResponse(BaseModel):
    """Report comment response."""

    comment_id: str
    success: bool


class ReportCommentUseCase(BaseUseCase):
    """Use case for flagging a comment for moderation."""

    def __init__(self, sync_service: CommentSyncService) -> None:
        self.sync_service = sync_service

    async def execute(self, request: ReportCommentRequest) -> ReportCommentResponse:
        """Flag the comment, then refresh the view on success."""
        success = await self.sync_service.report(CommentId(request.comment_id))
        if success:
            await self.sync_service.refresh()
        return ReportCommentResponse(comment_id=request.comment_id, success=success)
