"""Unit tests for PostDetailView."""

import pytest

from crux.adapter.identity import MockIdentityProvider
from crux.application.view import PostDetailView
from crux.config import ContentSettings, PostingSettings, RatingSettings
from crux.domain.service import (
    AggregationEngine,
    AuthService,
    LiveFeedSubscription,
    PostingGate,
    PostService,
)
from crux.domain.value import PostId, SortOrder
from crux.persistence.store import InMemoryDocumentStore

from tests.conftest import seed_comment, seed_post


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def open_view(store, clock):
    auth_service = AuthService(identity_provider=MockIdentityProvider())
    engine = AggregationEngine(store=store, auth_service=auth_service, rating_settings=RatingSettings())
    post_service = PostService(
        store=store,
        posting_gate=PostingGate(store=store, posting_settings=PostingSettings(), clock=clock),
        content_settings=ContentSettings(),
    )
    views = []

    def open_view(post_id: str) -> PostDetailView:
        view = PostDetailView(
            PostId(post_id),
            post_service,
            engine,
            LiveFeedSubscription(store=store, aggregation_engine=engine),
        ).start()
        views.append(view)
        return view

    yield open_view
    for view in views:
        view.close()


async def seed_thread(store) -> None:
    await seed_post(store, "p1", ratings={"u1": 7, "u2": 8})
    await seed_comment(store, "p1", "c1", minutes_ago=10, ratings={"u1": 3})
    await seed_comment(store, "p1", "c2", parent_id="c1", minutes_ago=5)
    await seed_comment(store, "p1", "c3", minutes_ago=1, ratings={"u1": 9})


class TestPostDetailView:
    """Tests for the post detail page."""

    @pytest.mark.asyncio
    async def test_post_and_threads(self, store, open_view):
        # Arrange
        await seed_thread(store)

        # Act
        view = open_view("p1")
        await store.flush()

        # Assert
        state = view.current
        assert state.post.content == "Statement p1"
        assert state.post.avg_rating == 7.5
        assert state.comment_count == 3
        assert [node.id for node in state.thread] == ["c3", "c1"]
        c1 = state.thread[1]
        assert [child.id for child in c1.children] == ["c2"]
        assert c1.reply_count == 1
        assert c1.avg_rating == 3.0

    @pytest.mark.asyncio
    async def test_deleted_parent_promotes_reply(self, store, open_view):
        await seed_thread(store)
        view = open_view("p1")
        await store.flush()

        await store.delete("posts/p1/comments/c1")
        await store.flush()

        state = view.current
        assert [node.id for node in state.thread] == ["c3", "c2"]
        assert state.comment_count == 2

    @pytest.mark.asyncio
    async def test_sort_by_recency(self, store, open_view):
        await seed_thread(store)
        view = open_view("p1")
        await store.flush()

        view.set_sort(SortOrder.RECENCY)

        assert [node.id for node in view.current.thread] == ["c3", "c1"]
        assert view.current.sort == SortOrder.RECENCY

    @pytest.mark.asyncio
    async def test_new_comment_rating_resorts(self, store, open_view):
        await seed_thread(store)
        view = open_view("p1")
        await store.flush()

        await store.set("posts/p1/comments/c1/ratings/u1", {"rating": 11})
        await store.flush()

        thread = view.current.thread
        assert [node.id for node in thread] == ["c1", "c3"]
        assert thread[0].rating_count == 1

    @pytest.mark.asyncio
    async def test_missing_post(self, store, open_view):
        view = open_view("nope")
        await store.flush()

        state = view.current
        assert state.missing
        assert state.post is None
        assert state.thread == []

    @pytest.mark.asyncio
    async def test_post_deleted_while_open(self, store, open_view):
        await seed_post(store, "p1")
        view = open_view("p1")
        await store.flush()

        await store.delete("posts/p1")
        await store.flush()

        assert view.current.missing
