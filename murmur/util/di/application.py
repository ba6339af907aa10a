"""Application layer DI providers."""

from dishka import Scope, provide

from murmur.application.usecase.comment import (
    CreateCommentUseCase,
    DeleteCommentUseCase,
    GetCommentsUseCase,
    ReportCommentUseCase,
)
from murmur.domain.service import CommentSyncService
from murmur.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_get_comments_use_case(
        self, sync_service: CommentSyncService
    ) -> GetCommentsUseCase:
        """Provide get comments use case."""
        return GetCommentsUseCase(sync_service=sync_service)

    @provide(scope=Scope.REQUEST)
    def get_create_comment_use_case(
        self, sync_service: CommentSyncService
    ) -> CreateCommentUseCase:
        """Provide create comment use case."""
        return CreateCommentUseCase(sync_service=sync_service)

    @provide(scope=Scope.REQUEST)
    def get_report_comment_use_case(
        self, sync_service: CommentSyncService
    ) -> ReportCommentUseCase:
        """Provide report comment use case."""
        return ReportCommentUseCase(sync_service=sync_service)

    @provide(scope=Scope.REQUEST)
    def get_delete_comment_use_case(
        self, sync_service: CommentSyncService
    ) -> DeleteCommentUseCase:
        """Provide delete comment use case."""
        return DeleteCommentUseCase(sync_service=sync_service)
