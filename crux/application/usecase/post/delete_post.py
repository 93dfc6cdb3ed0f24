"""Delete post use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, PostService
from crux.domain.value import PostId


class DeletePostRequest(BaseModel):
    """Delete post request."""

    post_id: str


class DeletePostUseCase(BaseUseCase):
    """Use case for deleting one's own post."""

    def __init__(self, post_service: PostService, auth_service: AuthService) -> None:
        self.post_service = post_service
        self.auth_service = auth_service

    async def execute(self, request: DeletePostRequest) -> None:
        editor = require_identity(self.auth_service, "delete", "post")
        await self.post_service.delete_post(editor, PostId(request.post_id))
