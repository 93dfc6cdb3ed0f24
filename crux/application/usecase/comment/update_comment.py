"""Update comment use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, CommentService
from crux.domain.value import CommentId, PostId


class UpdateCommentRequest(BaseModel):
    """Update comment request."""

    post_id: str
    comment_id: str
    content: str


class UpdateCommentUseCase(BaseUseCase):
    """Use case for editing one's own comment."""

    def __init__(self, comment_service: CommentService, auth_service: AuthService) -> None:
        self.comment_service = comment_service
        self.auth_service = auth_service

    async def execute(self, request: UpdateCommentRequest) -> None:
        editor = require_identity(self.auth_service, "edit", "comment")
        await self.comment_service.update_comment(
            editor=editor,
            post_id=PostId(request.post_id),
            comment_id=CommentId(request.comment_id),
            content=request.content,
        )
