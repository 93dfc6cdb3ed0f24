"""Unit tests for UpdatePostUseCase and DeletePostUseCase."""

from dishka import AsyncContainer
import pytest

from crux.application.usecase.post import (
    CreatePostRequest,
    CreatePostUseCase,
    DeletePostRequest,
    DeletePostUseCase,
    UpdatePostRequest,
    UpdatePostUseCase,
)
from crux.domain.error import NotAuthorizedError
from crux.domain.repository import DocumentStore
from crux.domain.service import AuthService, IdentityProvider, PostingGate
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


async def publish(env: AsyncContainer) -> str:
    """Publish a post as ada@example.com and return its id."""
    provider = await env.get(IdentityProvider)
    provider.add_account("ada@example.com", "secret1")
    provider.add_account("eve@example.com", "secret1")
    auth_service = await env.get(AuthService)
    identity = await auth_service.sign_in_with_password("ada@example.com", "secret1")
    await (await env.get(PostingGate)).load(identity.id)
    response = await (await env.get(CreatePostUseCase)).execute(
        CreatePostRequest(content="Original")
    )
    return response.post_id


class TestUpdatePostUseCase:
    @pytest.mark.asyncio
    async def test_author_edits(self, unit_env: AsyncContainer):
        # Arrange
        post_id = await publish(unit_env)
        use_case = await unit_env.get(UpdatePostUseCase)

        # Act
        await use_case.execute(UpdatePostRequest(post_id=post_id, content="Revised"))

        # Assert
        store = await unit_env.get(DocumentStore)
        assert store.document(f"posts/{post_id}")["content"] == "Revised"

    @pytest.mark.asyncio
    async def test_other_user_cannot_edit(self, unit_env: AsyncContainer):
        post_id = await publish(unit_env)
        auth_service = await unit_env.get(AuthService)
        await auth_service.sign_in_with_password("eve@example.com", "secret1")
        use_case = await unit_env.get(UpdatePostUseCase)

        with pytest.raises(NotAuthorizedError):
            await use_case.execute(UpdatePostRequest(post_id=post_id, content="Defaced"))


class TestDeletePostUseCase:
    @pytest.mark.asyncio
    async def test_author_deletes(self, unit_env: AsyncContainer):
        post_id = await publish(unit_env)
        use_case = await unit_env.get(DeletePostUseCase)

        await use_case.execute(DeletePostRequest(post_id=post_id))

        store = await unit_env.get(DocumentStore)
        assert store.document(f"posts/{post_id}") is None

    @pytest.mark.asyncio
    async def test_signed_out_cannot_delete(self, unit_env: AsyncContainer):
        post_id = await publish(unit_env)
        await (await unit_env.get(AuthService)).sign_out()
        use_case = await unit_env.get(DeletePostUseCase)

        with pytest.raises(NotAuthorizedError, match="Sign in to delete post"):
            await use_case.execute(DeletePostRequest(post_id=post_id))
