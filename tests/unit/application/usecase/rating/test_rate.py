"""Unit tests for RateUseCase."""

from dishka import AsyncContainer
import pytest

from crux.application.usecase.rating import RateRequest, RateUseCase
from crux.domain.error import NotAuthorizedError, ValidationError
from crux.domain.repository import DocumentStore
from crux.domain.service import AuthService, IdentityProvider
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


async def sign_in(env: AsyncContainer) -> str:
    provider = await env.get(IdentityProvider)
    provider.add_account("ada@example.com", "secret1", user_id="u1")
    identity = await (await env.get(AuthService)).sign_in_with_password(
        "ada@example.com", "secret1"
    )
    return identity.id


class TestRateUseCase:
    """Tests for RateUseCase."""

    @pytest.mark.asyncio
    async def test_rate_post(self, unit_env: AsyncContainer):
        # Arrange
        await sign_in(unit_env)
        use_case = await unit_env.get(RateUseCase)

        # Act
        response = await use_case.execute(RateRequest(post_id="p1", value=7))

        # Assert
        store = await unit_env.get(DocumentStore)
        assert response.subject_id == "p1"
        assert store.document("posts/p1/ratings/u1")["rating"] == 7

    @pytest.mark.asyncio
    async def test_rating_again_replaces(self, unit_env: AsyncContainer):
        await sign_in(unit_env)
        use_case = await unit_env.get(RateUseCase)

        await use_case.execute(RateRequest(post_id="p1", value=7))
        await use_case.execute(RateRequest(post_id="p1", value=2))

        store = await unit_env.get(DocumentStore)
        assert store.paths("posts/p1/ratings") == ["posts/p1/ratings/u1"]
        assert store.document("posts/p1/ratings/u1")["rating"] == 2

    @pytest.mark.asyncio
    async def test_rate_comment(self, unit_env: AsyncContainer):
        await sign_in(unit_env)
        use_case = await unit_env.get(RateUseCase)

        response = await use_case.execute(RateRequest(post_id="p1", comment_id="c1", value=0))

        store = await unit_env.get(DocumentStore)
        assert response.subject_id == "c1"
        assert store.document("posts/p1/comments/c1/ratings/u1")["rating"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [-1, 12, 7.5, "7", True, None])
    async def test_invalid_values_rejected(self, unit_env: AsyncContainer, value):
        await sign_in(unit_env)
        use_case = await unit_env.get(RateUseCase)

        with pytest.raises(ValidationError):
            await use_case.execute(RateRequest(post_id="p1", value=value))

        store = await unit_env.get(DocumentStore)
        assert store.paths("posts") == []

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(RateUseCase)

        with pytest.raises(NotAuthorizedError):
            await use_case.execute(RateRequest(post_id="p1", value=5))
