"""Tag index view."""

from crux.application.view.base import View, ViewState
from crux.application.view.feed import post_subject, posts_query
from crux.domain.error import SubscriptionError
from crux.domain.model import Post, TagStats
from crux.domain.repository.mappers import doc_to_post
from crux.domain.service import LiveFeedSubscription, TagIndexer, sort_tags
from crux.domain.value import TagSortOrder


class TagsState(ViewState):
    tags: list[TagStats] = []  # After search and sorting
    tag_count: int = 0
    tagged_posts: int = 0  # Sum of per-tag post counts
    sort: TagSortOrder = TagSortOrder.POPULARITY
    search: str = ""
    loading: bool = True
    error: str | None = None


class TagsView(View[TagsState]):
    """Statistics for every tag, recomputed whenever posts or ratings change."""

    def __init__(
        self,
        live_feed: LiveFeedSubscription,
        tag_indexer: TagIndexer,
        sort: TagSortOrder = TagSortOrder.POPULARITY,
    ) -> None:
        super().__init__(TagsState(sort=sort))
        self.live_feed = live_feed
        self.tag_indexer = tag_indexer
        self._stats: list[TagStats] = []

    def _open(self) -> None:
        self._track(
            self.live_feed.watch(
                posts_query(),
                parse=doc_to_post,
                secondary_for=post_subject,
                on_snapshot=self._on_posts,
                on_error=self._on_error,
                include=lambda post: bool(post.tags),
                name="tags",
            )
        )

    def _on_posts(self, posts: list[Post]) -> None:
        self._stats = self.tag_indexer.index(posts)
        self._publish(self.current.sort, self.current.search)

    def _on_error(self, error: SubscriptionError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error)}))

    def _publish(self, order: TagSortOrder, search: str) -> None:
        visible = sort_tags(self.tag_indexer.search(self._stats, search), order)
        self.state.update(
            lambda s: s.model_copy(
                update={
                    "tags": visible,
                    "tag_count": len(self._stats),
                    "tagged_posts": sum(stat.post_count for stat in self._stats),
                    "sort": order,
                    "search": search,
                    "loading": False,
                }
            )
        )

    def set_sort(self, order: TagSortOrder) -> None:
        self._publish(TagSortOrder(order), self.current.search)

    def set_search(self, text: str) -> None:
        self._publish(self.current.sort, text)
