"""Create comment use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, CommentService
from crux.domain.value import CommentId, PostId


class CreateCommentRequest(BaseModel):
    """Create comment request."""

    post_id: str
    content: str
    parent_id: str | None = None  # Parent comment ID for replies


class CreateCommentResponse(BaseModel):
    """Create comment response."""

    comment_id: str
    post_id: str
    parent_id: str | None


class CreateCommentUseCase(BaseUseCase):
    """Use case for commenting on a post or replying to another comment."""

    def __init__(self, comment_service: CommentService, auth_service: AuthService) -> None:
        """Initialize create comment use case.

        Args:
            comment_service: Comment domain service
            auth_service: Source of the signed-in identity
        """
        self.comment_service = comment_service
        self.auth_service = auth_service

    async def execute(self, request: CreateCommentRequest) -> CreateCommentResponse:
        """Execute create comment flow.

        Raises:
            NotAuthorizedError: If nobody is signed in
            ValidationError: If content is invalid
            NotFoundError: If the post or parent comment is missing
            SyncError: If the write fails
        """
        author = require_identity(self.auth_service, "comment on", "post")
        parent_id = CommentId(request.parent_id) if request.parent_id else None
        comment_id = await self.comment_service.create_comment(
            post_id=PostId(request.post_id),
            author=author,
            content=request.content,
            parent_id=parent_id,
        )
        return CreateCommentResponse(
            comment_id=comment_id,
            post_id=request.post_id,
            parent_id=parent_id,
        )
