"""Interface layer DI providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide

from crux.application.usecase.comment import (
    CreateCommentUseCase,
    DeleteCommentUseCase,
    UpdateCommentUseCase,
)
from crux.application.usecase.post import (
    CreatePostUseCase,
    DeletePostUseCase,
    UpdatePostUseCase,
)
from crux.application.usecase.rating import RateUseCase
from crux.config import Settings
from crux.domain.repository import LocalStorage
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
from crux.interface.session import CruxSession, UseCases
from crux.util.di.base import ProviderBase
from crux.util.time import Clock


class ProdInterfaceProvider(ProviderBase):
    """Production session provider - concrete, no mocks needed."""

    scope = Scope.REQUEST

    @provide
    def get_use_cases(
        self,
        create_post: CreatePostUseCase,
        update_post: UpdatePostUseCase,
        delete_post: DeletePostUseCase,
        create_comment: CreateCommentUseCase,
        update_comment: UpdateCommentUseCase,
        delete_comment: DeleteCommentUseCase,
        rate: RateUseCase,
    ) -> UseCases:
        return UseCases(
            create_post=create_post,
            update_post=update_post,
            delete_post=delete_post,
            create_comment=create_comment,
            update_comment=update_comment,
            delete_comment=delete_comment,
            rate=rate,
        )

    @provide
    async def get_session(
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
    ) -> AsyncIterator[CruxSession]:
        """Provide a started session, closed when the request scope exits."""
        session = CruxSession(
            settings=settings,
            clock=clock,
            local_storage=local_storage,
            auth_service=auth_service,
            user_service=user_service,
            post_service=post_service,
            aggregation_engine=aggregation_engine,
            live_feed=live_feed,
            tag_indexer=tag_indexer,
            posting_gate=posting_gate,
            draft_reconciler=draft_reconciler,
            use_cases=use_cases,
        )
        await session.start()
        yield session
        await session.close()
