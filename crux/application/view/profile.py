"""User profile view."""

from crux.application.view.base import View, ViewState
from crux.application.view.feed import post_subject
from crux.domain.error import SubscriptionError
from crux.domain.model import Post, UserProfile
from crux.domain.repository import FilterOp, Query, StoreError, paths
from crux.domain.repository.mappers import doc_to_post
from crux.domain.service import LiveFeedSubscription, UserService, sort_entries
from crux.domain.value import SortOrder, UserId
from crux.util.time import member_since


class ProfileState(ViewState):
    profile: UserProfile | None = None
    posts: list[Post] = []
    sort: SortOrder = SortOrder.TOP_RATED
    loading: bool = True
    error: str | None = None

    @property
    def post_count(self) -> int:
        return len(self.posts)

    @property
    def member_since(self) -> str | None:
        return member_since(self.profile.created_at) if self.profile else None

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.display_name:
            return self.profile.display_name
        if self.posts:
            return self.posts[0].author_name
        return "Anonymous"


class ProfileView(View[ProfileState]):
    """A user's profile and posts."""

    def __init__(
        self,
        user_id: UserId,
        user_service: UserService,
        live_feed: LiveFeedSubscription,
        sort: SortOrder = SortOrder.TOP_RATED,
    ) -> None:
        super().__init__(ProfileState(sort=sort))
        self.user_id = user_id
        self.user_service = user_service
        self.live_feed = live_feed
        self._posts: list[Post] = []

    def _open(self) -> None:
        self._track(
            self.user_service.watch_profile(self.user_id, self._on_profile, self._on_profile_error)
        )
        query = (
            Query(paths.POSTS)
            .where("authorId", FilterOp.EQ, self.user_id)
            .order("createdAt", descending=True)
        )
        self._track(
            self.live_feed.watch(
                query,
                parse=doc_to_post,
                secondary_for=post_subject,
                on_snapshot=self._on_posts,
                on_error=self._on_posts_error,
                name="profile",
            )
        )

    def _on_profile(self, profile: UserProfile | None) -> None:
        self.state.update(lambda s: s.model_copy(update={"profile": profile}))

    def _on_profile_error(self, error: StoreError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error)}))

    def _on_posts(self, posts: list[Post]) -> None:
        self._posts = posts
        self.state.update(
            lambda s: s.model_copy(
                update={"posts": sort_entries(posts, s.sort), "loading": False}
            )
        )

    def _on_posts_error(self, error: SubscriptionError) -> None:
        self.state.update(lambda s: s.model_copy(update={"error": str(error), "loading": False}))

    def set_sort(self, order: SortOrder) -> None:
        order = SortOrder(order)
        self.state.update(
            lambda s: s.model_copy(
                update={"sort": order, "posts": sort_entries(self._posts, order)}
            )
        )
