"""Main feed and multi-tag feed views."""

from crux.application.view.base import View, ViewState
from crux.application.view.examples import example_posts
from crux.domain.error import SubscriptionError
from crux.domain.model import Post
from crux.domain.repository import Query, paths
from crux.domain.repository.mappers import doc_to_post
from crux.domain.service import LiveFeedSubscription, sort_entries
from crux.domain.value import SortOrder, SubjectRef, TagSelection
from crux.util.time import Clock


class FeedState(ViewState):
    posts: list[Post] = []
    sort: SortOrder = SortOrder.RECENCY
    loading: bool = True
    fallback: bool = False  # Showing example posts instead of live ones
    error: str | None = None


def posts_query() -> Query:
    return Query(paths.POSTS).order("createdAt", descending=True)


def post_subject(post: Post) -> SubjectRef:
    return SubjectRef.for_post(post.id)


class FeedView(View[FeedState]):
    """All posts with live rating aggregates, sorted client-side.

    When the feed cannot be read, example posts are shown instead of an
    empty list (if enabled).
    """

    def __init__(
        self,
        live_feed: LiveFeedSubscription,
        clock: Clock,
        sort: SortOrder = SortOrder.RECENCY,
        fallback_enabled: bool = True,
    ) -> None:
        super().__init__(FeedState(sort=sort))
        self.live_feed = live_feed
        self.clock = clock
        self.fallback_enabled = fallback_enabled
        self._posts: list[Post] = []
        self._failed = False

    def _open(self) -> None:
        self._failed = False
        self._track(
            self.live_feed.watch(
                posts_query(),
                parse=doc_to_post,
                secondary_for=post_subject,
                on_snapshot=self._on_posts,
                on_error=self._on_error,
                fallback=self._fallback if self.fallback_enabled else None,
                name="feed",
            )
        )

    def _fallback(self) -> list[Post]:
        return example_posts(self.clock())

    def _on_error(self, error: SubscriptionError) -> None:
        self._failed = True
        self.state.update(lambda s: s.model_copy(update={"error": str(error)}))

    def _on_posts(self, posts: list[Post]) -> None:
        self._posts = posts
        self.state.update(
            lambda s: s.model_copy(
                update={
                    "posts": sort_entries(posts, s.sort),
                    "loading": False,
                    "fallback": self._failed and self.fallback_enabled,
                    "error": s.error if self._failed else None,
                }
            )
        )

    def set_sort(self, order: SortOrder) -> None:
        order = SortOrder(order)
        self.state.update(
            lambda s: s.model_copy(
                update={"sort": order, "posts": sort_entries(self._posts, order)}
            )
        )


class TagFeedState(FeedState):
    selection: TagSelection = TagSelection()

    @property
    def route(self) -> str:
        """Route segment of the selection, e.g. ``Ethics+AI%20Safety``."""
        return self.selection.encode()


class TagFeedView(View[TagFeedState]):
    """Posts carrying every selected tag (case-insensitive).

    An empty selection shows every post, untagged ones included; with at
    least one tag selected untagged posts never match. Changing the selection
    reopens the feed with the new filter.
    """

    def __init__(
        self,
        live_feed: LiveFeedSubscription,
        selection: TagSelection,
        sort: SortOrder = SortOrder.TOP_RATED,
    ) -> None:
        super().__init__(TagFeedState(sort=sort, selection=selection))
        self.live_feed = live_feed
        self._posts: list[Post] = []

    @property
    def selection(self) -> TagSelection:
        return self.current.selection

    def _open(self) -> None:
        selection = self.selection
        self._track(
            self.live_feed.watch(
                posts_query(),
                parse=doc_to_post,
                secondary_for=post_subject,
                on_snapshot=self._on_posts,
                on_error=self._on_error,
                include=lambda post: selection.matches(post.tags),
                name="tag_feed",
            )
        )

    def _on_error(self, error: SubscriptionError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error)}))

    def _on_posts(self, posts: list[Post]) -> None:
        self._posts = posts
        self.state.update(
            lambda s: s.model_copy(
                update={"posts": sort_entries(posts, s.sort), "loading": False}
            )
        )

    def set_sort(self, order: SortOrder) -> None:
        order = SortOrder(order)
        self.state.update(
            lambda s: s.model_copy(
                update={"sort": order, "posts": sort_entries(self._posts, order)}
            )
        )

    def select(self, selection: TagSelection) -> None:
        if selection == self.selection:
            return
        self.state.update(
            lambda s: s.model_copy(
                update={"selection": selection, "loading": True, "error": None}
            )
        )
        self.restart()

    def add_tag(self, tag: str) -> None:
        self.select(self.selection.add(tag))

    def remove_tag(self, tag: str) -> None:
        self.select(self.selection.remove(tag))
