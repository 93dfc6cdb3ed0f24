"""Comment use cases."""

from crux.application.usecase.comment.create_comment import (
    CreateCommentRequest,
    CreateCommentResponse,
    CreateCommentUseCase,
)
from crux.application.usecase.comment.delete_comment import (
    DeleteCommentRequest,
    DeleteCommentUseCase,
)
from crux.application.usecase.comment.update_comment import (
    UpdateCommentRequest,
    UpdateCommentUseCase,
)

__all__ = [
    "CreateCommentRequest",
    "CreateCommentResponse",
    "CreateCommentUseCase",
    "DeleteCommentRequest",
    "DeleteCommentUseCase",
    "UpdateCommentRequest",
    "UpdateCommentUseCase",
]
