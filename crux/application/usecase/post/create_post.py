"""Create post use case."""

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AuthService, DraftReconciler, PostService
from crux.domain.value import DraftId


class CreatePostRequest(BaseModel):
    """Create post request."""

    title: str = ""
    content: str
    tags_text: str = ""
    draft_id: str | None = None  # Draft bound to the compose form, if any


class CreatePostResponse(BaseModel):
    """Create post response."""

    post_id: str
    draft_deleted: bool = False


class CreatePostUseCase(BaseUseCase):
    """Use case for publishing a post from the compose form."""

    def __init__(
        self,
        post_service: PostService,
        auth_service: AuthService,
        draft_reconciler: DraftReconciler,
    ) -> None:
        """Initialize create post use case.

        Args:
            post_service: Post domain service
            auth_service: Source of the signed-in identity
            draft_reconciler: Drafts of the signed-in identity
        """
        self.post_service = post_service
        self.auth_service = auth_service
        self.draft_reconciler = draft_reconciler

    async def execute(self, request: CreatePostRequest) -> CreatePostResponse:
        """Execute create post flow.

        Steps:
        1. Require a signed-in identity
        2. Create the post through the posting gate
        3. Delete the draft the post was written from and clear the form

        Raises:
            NotAuthorizedError: If nobody is signed in
            ValidationError: If fields are invalid or the cooldown is active
            SyncError: If the post write fails
        """
        author = require_identity(self.auth_service, "create", "post")
        post_id = await self.post_service.create_post(
            author=author,
            title=request.title,
            content=request.content,
            tags_text=request.tags_text,
        )

        draft_deleted = False
        if request.draft_id:
            outcome = await self.draft_reconciler.delete_draft(DraftId(request.draft_id))
            draft_deleted = not outcome.degraded
        self.draft_reconciler.clear_compose()

        return CreatePostResponse(post_id=post_id, draft_deleted=draft_deleted)
