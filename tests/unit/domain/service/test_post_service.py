"""Unit tests for PostService."""

import pytest
import pytest_asyncio

from crux.config import ContentSettings, PostingSettings
from crux.domain.error import (
    CooldownActiveError,
    NotAuthorizedError,
    NotFoundError,
    SyncError,
    ValidationError,
)
from crux.domain.model import Identity
from crux.domain.service import PostingGate, PostService
from crux.domain.value import PostId, UserId
from crux.persistence.store import InMemoryDocumentStore

from tests.conftest import T0

AUTHOR = Identity(id=UserId("u1"), display_name="Ada")
OTHER = Identity(id=UserId("u2"), email="grace@example.com")


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest_asyncio.fixture
async def gate(store, clock):
    gate = PostingGate(store=store, posting_settings=PostingSettings(), clock=clock)
    await gate.load(AUTHOR.id)
    yield gate
    gate.close()


@pytest.fixture
def service(store, gate):
    return PostService(store=store, posting_gate=gate, content_settings=ContentSettings())


class TestCreatePost:
    """Tests for post creation."""

    @pytest.mark.asyncio
    async def test_writes_post_and_last_post_time(self, service, store):
        # Act
        post_id = await service.create_post(
            AUTHOR, title="  Big question ", content=" AI will help. ", tags_text="AI, ai, Ethics"
        )

        # Assert
        doc = store.document(f"posts/{post_id}")
        assert doc["title"] == "Big question"
        assert doc["content"] == "AI will help."
        assert doc["tags"] == ["AI", "Ethics"]
        assert doc["authorId"] == "u1"
        assert doc["author"] == "Ada"
        assert doc["createdAt"] == T0
        assert store.document("users/u1")["lastPostAt"] == T0

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, service, store):
        with pytest.raises(ValidationError, match="Write something"):
            await service.create_post(AUTHOR, title="Title only", content="   ")

        assert store.paths("posts") == []

    @pytest.mark.asyncio
    async def test_content_over_limit_rejected(self, service, store):
        # Act & Assert
        with pytest.raises(ValidationError, match="2048"):
            await service.create_post(AUTHOR, title="", content="x" * 2049)

        assert store.paths() == []

    @pytest.mark.asyncio
    async def test_content_at_limit_accepted(self, service, store):
        post_id = await service.create_post(AUTHOR, title="", content="x" * 2048)

        assert len(store.document(f"posts/{post_id}")["content"]) == 2048

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_does_not_count(self, service):
        post_id = await service.create_post(AUTHOR, title="", content="  " + "x" * 2048 + "\n")

        assert post_id

    @pytest.mark.asyncio
    async def test_title_over_limit_rejected(self, service):
        with pytest.raises(ValidationError, match="144"):
            await service.create_post(AUTHOR, title="t" * 145, content="Fine")

    @pytest.mark.asyncio
    async def test_second_post_within_cooldown_rejected(self, service, store, clock):
        # Arrange
        await service.create_post(AUTHOR, title="", content="First")
        clock.advance(hours=1)

        # Act & Assert
        with pytest.raises(CooldownActiveError) as exc_info:
            await service.create_post(AUTHOR, title="", content="Second")

        assert "23h 0m 0s" in str(exc_info.value)
        assert len(store.paths("posts")) == 1


class TestReadPost:
    """Tests for reading and watching posts."""

    @pytest.mark.asyncio
    async def test_get_existing_post(self, service):
        post_id = await service.create_post(AUTHOR, title="T", content="Body")

        post = await service.get_post(post_id)

        assert post.id == post_id
        assert post.author_name == "Ada"
        assert post.created_at == T0

    @pytest.mark.asyncio
    async def test_get_missing_post(self, service):
        assert await service.get_post(PostId("missing")) is None

    @pytest.mark.asyncio
    async def test_get_read_failure(self, service, store):
        store.fail_reads("posts")

        with pytest.raises(SyncError):
            await service.get_post(PostId("any"))

    @pytest.mark.asyncio
    async def test_watch_reports_deletion(self, service, store):
        # Arrange
        post_id = await service.create_post(AUTHOR, title="", content="Watched")
        seen = []
        unsubscribe = service.watch_post(post_id, seen.append)
        await store.flush()

        # Act
        await service.delete_post(AUTHOR, post_id)
        await store.flush()

        # Assert
        assert seen[0].content == "Watched"
        assert seen[-1] is None
        unsubscribe()


class TestUpdatePost:
    """Tests for editing posts."""

    @pytest.mark.asyncio
    async def test_author_can_edit(self, service, store, clock):
        post_id = await service.create_post(AUTHOR, title="Old", content="Old body")
        clock.advance(minutes=5)

        await service.update_post(AUTHOR, post_id, title="New", content="New body", tags_text="x")

        doc = store.document(f"posts/{post_id}")
        assert doc["content"] == "New body"
        assert doc["tags"] == ["x"]
        assert doc["updatedAt"] > doc["createdAt"]
        assert doc["authorId"] == "u1"

    @pytest.mark.asyncio
    async def test_non_author_cannot_edit(self, service):
        post_id = await service.create_post(AUTHOR, title="", content="Mine")

        with pytest.raises(NotAuthorizedError):
            await service.update_post(OTHER, post_id, title="", content="Yours now")

    @pytest.mark.asyncio
    async def test_edit_missing_post(self, service):
        with pytest.raises(NotFoundError):
            await service.update_post(AUTHOR, PostId("missing"), title="", content="Body")

    @pytest.mark.asyncio
    async def test_edit_validates_before_reading(self, service):
        with pytest.raises(ValidationError):
            await service.update_post(AUTHOR, PostId("missing"), title="", content="")


class TestDeletePost:
    """Tests for deleting posts."""

    @pytest.mark.asyncio
    async def test_author_can_delete(self, service, store):
        post_id = await service.create_post(AUTHOR, title="", content="Short-lived")

        await service.delete_post(AUTHOR, post_id)

        assert store.document(f"posts/{post_id}") is None

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(self, service, store):
        post_id = await service.create_post(AUTHOR, title="", content="Mine")

        with pytest.raises(NotAuthorizedError):
            await service.delete_post(OTHER, post_id)

        assert store.document(f"posts/{post_id}") is not None

    @pytest.mark.asyncio
    async def test_delete_failure(self, service, store):
        post_id = await service.create_post(AUTHOR, title="", content="Sticky")
        store.fail_writes("posts")

        with pytest.raises(SyncError):
            await service.delete_post(AUTHOR, post_id)
