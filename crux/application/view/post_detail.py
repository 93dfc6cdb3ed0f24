"""Post detail view: the post, its rating and its comment threads."""

from crux.application.view.base import View, ViewState
from crux.domain.error import SubscriptionError
from crux.domain.model import Comment, Post
from crux.domain.repository import Query, StoreError, paths
from crux.domain.repository.mappers import doc_to_comment
from crux.domain.service import (
    AggregationEngine,
    LiveFeedSubscription,
    PostService,
    ThreadBuilder,
    ThreadNode,
)
from crux.domain.value import EMPTY_AGGREGATE, PostId, RatingAggregate, SortOrder, SubjectRef


class PostDetailState(ViewState):
    post: Post | None = None
    missing: bool = False  # The post does not exist (or was deleted)
    thread: list[ThreadNode] = []
    comment_count: int = 0
    sort: SortOrder = SortOrder.TOP_RATED
    loading: bool = True
    error: str | None = None


class PostDetailView(View[PostDetailState]):
    """Live post with its rating and threaded comments.

    The comment forest is rebuilt on every comment or comment-rating change;
    unchanged nodes keep their identity between builds.
    """

    def __init__(
        self,
        post_id: PostId,
        post_service: PostService,
        aggregation_engine: AggregationEngine,
        live_feed: LiveFeedSubscription,
        sort: SortOrder = SortOrder.TOP_RATED,
    ) -> None:
        super().__init__(PostDetailState(sort=sort))
        self.post_id = post_id
        self.post_service = post_service
        self.aggregation_engine = aggregation_engine
        self.live_feed = live_feed
        self.thread_builder = ThreadBuilder()
        self._post: Post | None = None
        self._rating: RatingAggregate = EMPTY_AGGREGATE
        self._comments: list[Comment] = []

    def _open(self) -> None:
        self._track(
            self.post_service.watch_post(self.post_id, self._on_post, self._on_post_error)
        )
        self._track(
            self.aggregation_engine.subscribe(SubjectRef.for_post(self.post_id), self._on_rating)
        )
        post_id = self.post_id
        self._track(
            self.live_feed.watch(
                Query(paths.comments(post_id)).order("createdAt"),
                parse=lambda doc: doc_to_comment(doc, post_id),
                secondary_for=lambda comment: SubjectRef.for_comment(post_id, comment.id),
                on_snapshot=self._on_comments,
                on_error=self._on_comments_error,
                name="comments",
            )
        )

    def _publish_post(self) -> None:
        post = self._post.with_rating(self._rating) if self._post is not None else None
        self.state.update(
            lambda s: s.model_copy(
                update={"post": post, "missing": self._post is None, "loading": False}
            )
        )

    def _on_post(self, post: Post | None) -> None:
        self._post = post
        self._publish_post()

    def _on_post_error(self, error: StoreError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error), "loading": False}))

    def _on_rating(self, rating: RatingAggregate) -> None:
        self._rating = rating
        self._publish_post()

    def _on_comments(self, comments: list[Comment]) -> None:
        self._comments = comments
        self._rebuild(self.current.sort)

    def _on_comments_error(self, error: SubscriptionError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error)}))

    def _rebuild(self, order: SortOrder) -> None:
        thread = self.thread_builder.build(self._comments, order)
        self.state.update(
            lambda s: s.model_copy(
                update={
                    "thread": thread,
                    "comment_count": len(self._comments),
                    "sort": order,
                }
            )
        )

    def set_sort(self, order: SortOrder) -> None:
        self._rebuild(SortOrder(order))
