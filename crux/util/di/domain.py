"""Domain layer DI providers."""

from collections.abc import Iterator

from dishka import Scope, provide

from crux.config import ContentSettings, DraftSettings, PostingSettings, RatingSettings
from crux.domain.repository import DocumentStore, LocalStorage
from crux.domain.service import (
    AggregationEngine,
    AuthService,
    CommentService,
    DraftReconciler,
    IdentityProvider,
    LiveFeedSubscription,
    PostingGate,
    PostService,
    TagIndexer,
    UserService,
)
from crux.util.di.base import ProviderBase
from crux.util.time import Clock


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped: one request scope is one client
    session, so stateful services (posting gate, drafts) live and die with it.
    """

    scope = Scope.REQUEST

    @provide
    def get_auth_service(self, identity_provider: IdentityProvider) -> AuthService:
        """Provide authentication domain service."""
        return AuthService(identity_provider=identity_provider)

    @provide
    def get_user_service(self, store: DocumentStore) -> UserService:
        """Provide user domain service."""
        return UserService(store=store)

    @provide
    def get_aggregation_engine(
        self,
        store: DocumentStore,
        auth_service: AuthService,
        rating_settings: RatingSettings,
    ) -> AggregationEngine:
        """Provide rating aggregation engine."""
        return AggregationEngine(
            store=store, auth_service=auth_service, rating_settings=rating_settings
        )

    @provide
    def get_live_feed(
        self, store: DocumentStore, aggregation_engine: AggregationEngine
    ) -> LiveFeedSubscription:
        """Provide live feed subscription factory."""
        return LiveFeedSubscription(store=store, aggregation_engine=aggregation_engine)

    @provide
    def get_tag_indexer(self) -> TagIndexer:
        return TagIndexer()

    @provide
    def get_posting_gate(
        self, store: DocumentStore, posting_settings: PostingSettings, clock: Clock
    ) -> Iterator[PostingGate]:
        """Provide posting gate; its countdown stops with the session."""
        gate = PostingGate(store=store, posting_settings=posting_settings, clock=clock)
        yield gate
        gate.close()

    @provide
    def get_draft_reconciler(
        self,
        store: DocumentStore,
        local_storage: LocalStorage,
        draft_settings: DraftSettings,
        clock: Clock,
    ) -> Iterator[DraftReconciler]:
        """Provide draft reconciler; its remote watch stops with the session."""
        reconciler = DraftReconciler(
            store=store,
            local_storage=local_storage,
            draft_settings=draft_settings,
            clock=clock,
        )
        yield reconciler
        reconciler.close()

    @provide
    def get_post_service(
        self,
        store: DocumentStore,
        posting_gate: PostingGate,
        content_settings: ContentSettings,
    ) -> PostService:
        """Provide post domain service."""
        return PostService(
            store=store, posting_gate=posting_gate, content_settings=content_settings
        )

    @provide
    def get_comment_service(
        self, store: DocumentStore, content_settings: ContentSettings
    ) -> CommentService:
        """Provide comment domain service."""
        return CommentService(store=store, content_settings=content_settings)
