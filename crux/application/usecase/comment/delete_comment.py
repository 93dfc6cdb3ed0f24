"""Delete comment use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, CommentService
from crux.domain.value import CommentId, PostId


class DeleteCommentRequest(BaseModel):
    """Delete comment request."""

    post_id: str
    comment_id: str


class DeleteCommentUseCase(BaseUseCase):
    """Use case for deleting one's own comment (replies stay visible)."""

    def __init__(self, comment_service: CommentService, auth_service: AuthService) -> None:
        self.comment_service = comment_service
        self.auth_service = auth_service

    async def execute(self, request: DeleteCommentRequest) -> None:
        editor = require_identity(self.auth_service, "delete", "comment")
        await self.comment_service.delete_comment(
            editor=editor,
            post_id=PostId(request.post_id),
            comment_id=CommentId(request.comment_id),
        )
