"""Update post use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, PostService
from crux.domain.value import PostId


class UpdatePostRequest(BaseModel):
    """Update post request."""

    post_id: str
    title: str = ""
    content: str
    tags_text: str = ""


class UpdatePostUseCase(BaseUseCase):
    """Use case for editing one's own post."""

    def __init__(self, post_service: PostService, auth_service: AuthService) -> None:
        self.post_service = post_service
        self.auth_service = auth_service

    async def execute(self, request: UpdatePostRequest) -> None:
        editor = require_identity(self.auth_service, "edit", "post")
        await self.post_service.update_post(
            editor=editor,
            post_id=PostId(request.post_id),
            title=request.title,
            content=request.content,
            tags_text=request.tags_text,
        )
