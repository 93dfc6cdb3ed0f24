"""CRUX session: the surface exposed to the UI.

A session wires the domain services for one running client: it follows
identity changes (profile mirroring, posting gate, drafts), opens reactive
views, and exposes every user action as a coroutine returning an
``ActionResult``.
"""

import asyncio

import logfire

from crux.application.usecase.comment import (
    CreateCommentRequest,
    CreateCommentUseCase,
    DeleteCommentRequest,
    DeleteCommentUseCase,
    UpdateCommentRequest,
    UpdateCommentUseCase,
)
from crux.application.usecase.post import (
    CreatePostRequest,
    CreatePostUseCase,
    DeletePostRequest,
    DeletePostUseCase,
    UpdatePostRequest,
    UpdatePostUseCase,
)
from crux.application.usecase.rating import RateRequest, RateUseCase
from crux.application.view import (
    DraftsView,
    FeedView,
    PostDetailView,
    ProfileView,
    TagFeedView,
    TagsView,
    View,
)
from crux.config import Settings
from crux.domain.error import SyncError
from crux.domain.model import ComposeForm, Identity, PostingCooldown
from crux.domain.repository import LocalStorage, Unsubscribe
from crux.domain.service import (
    AggregationEngine,
    AuthService,
    DraftReconciler,
    LiveFeedSubscription,
    PostingGate,
    PostService,
    TagIndexer,
    UserService,
)
from crux.domain.value import (
    CommentId,
    DraftId,
    PostId,
    SortOrder,
    TagSelection,
    TagSortOrder,
    Theme,
    UserId,
)
from crux.interface.error import ActionResult, action
from crux.util.time import Clock


class UseCases:
    """Use cases invoked by session actions."""

    def __init__(
        self,
        create_post: CreatePostUseCase,
        update_post: UpdatePostUseCase,
        delete_post: DeletePostUseCase,
        create_comment: CreateCommentUseCase,
        update_comment: UpdateCommentUseCase,
        delete_comment: DeleteCommentUseCase,
        rate: RateUseCase,
    ) -> None:
        self.create_post = create_post
        self.update_post = update_post
        self.delete_post = delete_post
        self.create_comment = create_comment
        self.update_comment = update_comment
        self.delete_comment = delete_comment
        self.rate = rate


class ThreadActions:
    """Actions on the comments of one post.

    Handed once to the whole comment tree; nodes dispatch their intents
    (rate, reply, edit, delete) through it.
    """

    def __init__(self, session: "CruxSession", post_id: PostId) -> None:
        self.session = session
        self.post_id = post_id

    async def comment(self, content: str) -> ActionResult:
        return await self.session.comment(self.post_id, content)

    async def reply(self, parent_id: CommentId, content: str) -> ActionResult:
        return await self.session.reply(self.post_id, parent_id, content)

    async def rate(self, comment_id: CommentId, value: int) -> ActionResult:
        return await self.session.rate_comment(self.post_id, comment_id, value)

    async def edit(self, comment_id: CommentId, content: str) -> ActionResult:
        return await self.session.edit_comment(self.post_id, comment_id, content)

    async def delete(self, comment_id: CommentId) -> ActionResult:
        return await self.session.delete_comment(self.post_id, comment_id)


class CruxSession:
    """One client session."""

    def __init__(
        self,
        settings: Settings,
        clock: Clock,
        local_storage: LocalStorage,
        auth_service: AuthService,
        user_service: UserService,
        post_service: PostService,
        aggregation_engine: AggregationEngine,
        live_feed: LiveFeedSubscription,
        tag_indexer: TagIndexer,
        posting_gate: PostingGate,
        draft_reconciler: DraftReconciler,
        use_cases: UseCases,
    ) -> None:
        self.settings = settings
        self.clock = clock
        self.local_storage = local_storage
        self.auth_service = auth_service
        self.user_service = user_service
        self.post_service = post_service
        self.aggregation_engine = aggregation_engine
        self.live_feed = live_feed
        self.tag_indexer = tag_indexer
        self.posting_gate = posting_gate
        self.draft_reconciler = draft_reconciler
        self.use_cases = use_cases

        self._views: list[View] = []
        self._identity_watch: Unsubscribe | None = None
        self._identity_task: asyncio.Task | None = None
        self._started = False

    # Lifecycle

    async def start(self) -> "CruxSession":
        """Bind to the current identity and follow its changes."""
        if self._started:
            return self
        self._started = True
        self._identity_watch = self.auth_service.on_identity_changed(self._identity_changed)
        await self._apply_identity(self.auth_service.current_identity)
        logfire.info("Session started", user_id=str(self.auth_service.current_user_id))
        return self

    async def close(self) -> None:
        """Release every view and subscription."""
        if self._identity_watch is not None:
            self._identity_watch()
            self._identity_watch = None
        await self._settle_identity()
        for view in self._views:
            view.close()
        self._views.clear()
        self.posting_gate.close()
        self.draft_reconciler.close()
        self._started = False
        logfire.info("Session closed")

    def _identity_changed(self, identity: Identity | None) -> None:
        previous = self._identity_task

        async def apply() -> None:
            try:
                # Changes are applied in the order they happened
                if previous is not None:
                    await previous
                await self._apply_identity(identity)
            finally:
                self.posting_gate.unhold()

        # Posts wait until the new identity's cooldown record is read
        self.posting_gate.hold()
        self._identity_task = asyncio.get_running_loop().create_task(apply())

    async def _settle_identity(self) -> None:
        task = self._identity_task
        if task is not None:
            await task

    async def _apply_identity(self, identity: Identity | None) -> None:
        """Rebind drafts, posting gate and open views to ``identity``."""
        user_id = identity.id if identity else None
        with logfire.span("session.apply_identity", user_id=str(user_id)):
            self.draft_reconciler.switch_identity(user_id)
            if identity is not None:
                try:
                    await self.user_service.mirror_profile(identity)
                except SyncError as e:
                    logfire.warn("Profile not mirrored", user_id=str(user_id), error=str(e))
            await self.posting_gate.load(user_id)
            if self.auth_service.current_user_id != user_id:
                return
            # Own ratings depend on who is signed in
            for view in self._views:
                if not isinstance(view, DraftsView):
                    view.restart()

    @property
    def identity(self) -> Identity | None:
        return self.auth_service.current_identity

    # Views

    def _open(self, view: View) -> View:
        self._views.append(view.start())
        return view

    def close_view(self, view: View) -> None:
        view.close()
        if view in self._views:
            self._views.remove(view)

    def open_feed(self, sort: SortOrder | None = None) -> FeedView:
        feed = self.settings.feed
        return self._open(
            FeedView(
                self.live_feed,
                self.clock,
                sort=SortOrder(sort or feed.default_sort),
                fallback_enabled=feed.fallback_enabled,
            )
        )

    def open_tag_feed(self, route: str, sort: SortOrder | None = None) -> TagFeedView:
        """Open the multi-tag feed for a route segment such as ``Ethics+AI``."""
        return self._open(
            TagFeedView(
                self.live_feed,
                TagSelection.parse(route),
                sort=SortOrder(sort or self.settings.feed.tag_feed_sort),
            )
        )

    def open_post(self, post_id: PostId, sort: SortOrder | None = None) -> PostDetailView:
        return self._open(
            PostDetailView(
                post_id,
                self.post_service,
                self.aggregation_engine,
                self.live_feed,
                sort=SortOrder(sort or self.settings.feed.comment_sort),
            )
        )

    def open_tags(self, sort: TagSortOrder = TagSortOrder.POPULARITY) -> TagsView:
        return self._open(TagsView(self.live_feed, self.tag_indexer, sort=sort))

    def open_profile(self, user_id: UserId, sort: SortOrder | None = None) -> ProfileView:
        return self._open(
            ProfileView(
                user_id,
                self.user_service,
                self.live_feed,
                sort=SortOrder(sort or self.settings.feed.profile_sort),
            )
        )

    def open_drafts(self) -> DraftsView:
        return self._open(DraftsView(self.draft_reconciler))

    def thread_actions(self, post_id: PostId) -> ThreadActions:
        return ThreadActions(self, post_id)

    # Authentication

    @action("sign_in")
    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self.auth_service.sign_in_with_password(email, password)
        await self._settle_identity()
        return identity

    @action("sign_up")
    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await self.auth_service.register_with_password(email, password)
        await self._settle_identity()
        return identity

    @action("sign_in_federated")
    async def sign_in_with_federated_provider(
        self, provider_id: str = "google.com", id_token: str | None = None
    ) -> Identity:
        identity = await self.auth_service.sign_in_with_federated_provider(
            provider_id=provider_id, id_token=id_token
        )
        await self._settle_identity()
        return identity

    @action("sign_out")
    async def sign_out(self) -> None:
        # Unsaved edits are saved for the identity that wrote them
        await self.draft_reconciler.auto_save()
        await self.auth_service.sign_out()
        await self._settle_identity()

    # Posting

    @property
    def compose(self) -> ComposeForm:
        return self.draft_reconciler.compose

    def edit_compose(
        self,
        title: str | None = None,
        content: str | None = None,
        tags_text: str | None = None,
    ) -> ComposeForm:
        return self.draft_reconciler.edit(title=title, content=content, tags_text=tags_text)

    @property
    def posting_status(self) -> PostingCooldown:
        return self.posting_gate.status()

    @action("post")
    async def post(self) -> str:
        """Publish the compose form."""
        form = self.draft_reconciler.compose
        response = await self.use_cases.create_post.execute(
            CreatePostRequest(
                title=form.title,
                content=form.content,
                tags_text=form.tags_text,
                draft_id=form.current_draft_id,
            )
        )
        return response.post_id

    @action("edit_post")
    async def edit_post(
        self, post_id: PostId, title: str, content: str, tags_text: str = ""
    ) -> None:
        await self.use_cases.update_post.execute(
            UpdatePostRequest(post_id=post_id, title=title, content=content, tags_text=tags_text)
        )

    @action("delete_post")
    async def delete_post(self, post_id: PostId) -> None:
        await self.use_cases.delete_post.execute(DeletePostRequest(post_id=post_id))

    # Rating

    @action("rate_post")
    async def rate_post(self, post_id: PostId, value: int) -> int:
        response = await self.use_cases.rate.execute(RateRequest(post_id=post_id, value=value))
        return response.value

    @action("rate_comment")
    async def rate_comment(self, post_id: PostId, comment_id: CommentId, value: int) -> int:
        response = await self.use_cases.rate.execute(
            RateRequest(post_id=post_id, comment_id=comment_id, value=value)
        )
        return response.value

    # Comments

    @action("comment")
    async def comment(self, post_id: PostId, content: str) -> str:
        response = await self.use_cases.create_comment.execute(
            CreateCommentRequest(post_id=post_id, content=content)
        )
        return response.comment_id

    @action("reply")
    async def reply(self, post_id: PostId, parent_id: CommentId, content: str) -> str:
        response = await self.use_cases.create_comment.execute(
            CreateCommentRequest(post_id=post_id, content=content, parent_id=parent_id)
        )
        return response.comment_id

    @action("edit_comment")
    async def edit_comment(self, post_id: PostId, comment_id: CommentId, content: str) -> None:
        await self.use_cases.update_comment.execute(
            UpdateCommentRequest(post_id=post_id, comment_id=comment_id, content=content)
        )

    @action("delete_comment")
    async def delete_comment(self, post_id: PostId, comment_id: CommentId) -> None:
        await self.use_cases.delete_comment.execute(
            DeleteCommentRequest(post_id=post_id, comment_id=comment_id)
        )

    # Drafts

    @action("save_draft")
    async def save_draft(self) -> ActionResult:
        outcome = await self.draft_reconciler.save_draft()
        return ActionResult.success(outcome.draft_id, message=outcome.message)

    @action("load_draft")
    async def load_draft(self, draft_id: DraftId) -> ComposeForm:
        return self.draft_reconciler.load_draft(draft_id)

    @action("delete_draft")
    async def delete_draft(self, draft_id: DraftId) -> ActionResult:
        outcome = await self.draft_reconciler.delete_draft(draft_id)
        return ActionResult.success(outcome.draft_id, message=outcome.message)

    @action("navigate_away")
    async def navigate_away(self) -> ActionResult:
        """Leave the compose view, auto-saving unsaved edits first."""
        outcome = await self.draft_reconciler.auto_save()
        if outcome is None:
            return ActionResult.success()
        return ActionResult.success(outcome.draft_id, message=outcome.message)

    # Theme

    @property
    def theme(self) -> Theme:
        stored = self.local_storage.get(self.settings.storage.theme_key)
        try:
            return Theme(stored)
        except ValueError:
            return Theme(self.settings.storage.default_theme)

    @action("toggle_theme")
    async def toggle_theme(self) -> Theme:
        theme = self.theme.toggled()
        self.local_storage.set(self.settings.storage.theme_key, theme.value)
        return theme
