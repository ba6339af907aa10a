"""Comment use cases."""

from .create_comment import (
    CreateCommentRequest,
    CreateCommentResponse,
    CreateCommentUseCase,
)
from .delete_comment import (
    DeleteCommentRequest,
    DeleteCommentResponse,
    DeleteCommentUseCase,
)
from .get_comments import (
    CommentItem,
    GetCommentsRequest,
    GetCommentsResponse,
    GetCommentsUseCase,
)
from .report_comment import (
    ReportCommentRequest,
    ReportCommentResponse,
    ReportCommentUseCase,
)

__all__ = [
    "CommentItem",
    "CreateCommentRequest",
    "CreateCommentResponse",
    "CreateCommentUseCase",
    "DeleteCommentRequest",
    "DeleteCommentResponse",
    "DeleteCommentUseCase",
    "GetCommentsRequest",
    "GetCommentsResponse",
    "GetCommentsUseCase",
    "ReportCommentRequest",
    "ReportCommentResponse",
    "ReportCommentUseCase",
]
