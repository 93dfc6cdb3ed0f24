"""Unit tests for the feed and tag feed views."""

import pytest

from crux.adapter.identity import MockIdentityProvider
from crux.application.view import FeedView, TagFeedView
from crux.config import RatingSettings
from crux.domain.service import AggregationEngine, AuthService, LiveFeedSubscription
from crux.domain.value import PostId, SortOrder, SubjectRef, TagSelection, UserId
from crux.persistence.store import InMemoryDocumentStore

from tests.conftest import seed_post


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def engine(store):
    auth_service = AuthService(identity_provider=MockIdentityProvider())
    return AggregationEngine(store=store, auth_service=auth_service, rating_settings=RatingSettings())


@pytest.fixture
def live_feed(store, engine):
    return LiveFeedSubscription(store=store, aggregation_engine=engine)


def ids(posts) -> list[str]:
    return [post.id for post in posts]


class TestFeedView:
    """Tests for the main feed."""

    @pytest.mark.asyncio
    async def test_posts_arrive_with_ratings(self, store, live_feed, clock):
        # Arrange
        await seed_post(store, "p1", minutes_ago=2, ratings={"u1": 7})
        await seed_post(store, "p2", minutes_ago=1)

        # Act
        view = FeedView(live_feed, clock).start()
        await store.flush()

        # Assert
        state = view.current
        assert not state.loading
        assert ids(state.posts) == ["p2", "p1"]
        assert state.posts[1].avg_rating == 7.0
        assert state.posts[0].avg_rating is None
        view.close()

    @pytest.mark.asyncio
    async def test_sort_change_reorders(self, store, live_feed, clock):
        await seed_post(store, "p1", minutes_ago=2, ratings={"u1": 7})
        await seed_post(store, "p2", minutes_ago=1, ratings={"u1": 3, "u2": 4})
        view = FeedView(live_feed, clock).start()
        await store.flush()

        view.set_sort(SortOrder.TOP_RATED)
        assert ids(view.current.posts) == ["p1", "p2"]

        view.set_sort("most_rated")
        assert ids(view.current.posts) == ["p2", "p1"]
        view.close()

    @pytest.mark.asyncio
    async def test_live_rating_and_new_post(self, store, live_feed, engine, clock):
        # Arrange
        await seed_post(store, "p1", minutes_ago=2)
        view = FeedView(live_feed, clock, sort=SortOrder.TOP_RATED).start()
        await store.flush()

        # Act
        await engine.rate(SubjectRef.for_post(PostId("p1")), UserId("u9"), 9)
        await seed_post(store, "p2", minutes_ago=0)
        await store.flush()

        # Assert
        posts = view.current.posts
        assert ids(posts) == ["p1", "p2"]
        assert posts[0].avg_rating == 9.0
        assert posts[1].rating_count == 0
        view.close()

    @pytest.mark.asyncio
    async def test_unreadable_feed_shows_examples(self, store, live_feed, clock):
        store.fail_reads("posts")

        view = FeedView(live_feed, clock).start()
        await store.flush()

        state = view.current
        assert state.fallback
        assert state.error is not None
        assert len(state.posts) == 20
        assert state.posts[0].id == "example-0"

    @pytest.mark.asyncio
    async def test_fallback_disabled(self, store, live_feed, clock):
        store.fail_reads("posts")

        view = FeedView(live_feed, clock, fallback_enabled=False).start()
        await store.flush()

        assert view.current.posts == []
        assert not view.current.fallback

    @pytest.mark.asyncio
    async def test_closed_view_stops_updating(self, store, live_feed, clock):
        view = FeedView(live_feed, clock).start()
        await store.flush()
        view.close()

        await seed_post(store, "p1")
        await store.flush()

        assert view.current.posts == []


class TestTagFeedView:
    """Tests for the multi-tag feed."""

    @pytest.mark.asyncio
    async def test_requires_every_selected_tag(self, store, live_feed):
        # Arrange
        await seed_post(store, "p1", minutes_ago=3, tags=("ai", "Ethics"), ratings={"u1": 3})
        await seed_post(store, "p2", minutes_ago=2, tags=("AI",))
        await seed_post(store, "p3", minutes_ago=1, tags=("Ethics", "AI", "x"), ratings={"u1": 8})

        # Act
        view = TagFeedView(live_feed, TagSelection(tags=("AI", "ethics"))).start()
        await store.flush()

        # Assert
        assert ids(view.current.posts) == ["p3", "p1"]
        view.close()

    @pytest.mark.asyncio
    async def test_changing_selection_reopens_feed(self, store, live_feed):
        await seed_post(store, "p1", minutes_ago=2, tags=("AI", "Ethics"))
        await seed_post(store, "p2", minutes_ago=1, tags=("AI",))
        view = TagFeedView(live_feed, TagSelection.parse("AI+Ethics"), sort=SortOrder.RECENCY).start()
        await store.flush()

        view.remove_tag("ethics")
        await store.flush()
        assert ids(view.current.posts) == ["p2", "p1"]
        assert view.current.route == "AI"

        view.add_tag("Ethics")
        await store.flush()
        assert ids(view.current.posts) == ["p1"]
        view.close()

    @pytest.mark.asyncio
    async def test_empty_selection_shows_everything(self, store, live_feed):
        await seed_post(store, "p1", tags=("AI",))
        await seed_post(store, "p2")

        view = TagFeedView(live_feed, TagSelection()).start()
        await store.flush()

        assert sorted(ids(view.current.posts)) == ["p1", "p2"]
        view.close()

    def test_route_is_percent_encoded(self, live_feed):
        view = TagFeedView(live_feed, TagSelection(tags=("AI Safety", "Ethics")))

        assert view.current.route == "AI%20Safety+Ethics"
