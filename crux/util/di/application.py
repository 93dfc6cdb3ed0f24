"""Application layer DI providers."""

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
from crux.domain.service import (
    AggregationEngine,
    AuthService,
    CommentService,
    DraftReconciler,
    PostService,
)
from crux.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Post use cases
    @provide(scope=Scope.REQUEST)
    def get_create_post_use_case(
        self,
        post_service: PostService,
        auth_service: AuthService,
        draft_reconciler: DraftReconciler,
    ) -> CreatePostUseCase:
        """Provide create post use case."""
        return CreatePostUseCase(
            post_service=post_service,
            auth_service=auth_service,
            draft_reconciler=draft_reconciler,
        )

    @provide(scope=Scope.REQUEST)
    def get_update_post_use_case(
        self, post_service: PostService, auth_service: AuthService
    ) -> UpdatePostUseCase:
        """Provide update post use case."""
        return UpdatePostUseCase(post_service=post_service, auth_service=auth_service)

    @provide(scope=Scope.REQUEST)
    def get_delete_post_use_case(
        self, post_service: PostService, auth_service: AuthService
    ) -> DeletePostUseCase:
        """Provide delete post use case."""
        return DeletePostUseCase(post_service=post_service, auth_service=auth_service)

    # Comment use cases
    @provide(scope=Scope.REQUEST)
    def get_create_comment_use_case(
        self, comment_service: CommentService, auth_service: AuthService
    ) -> CreateCommentUseCase:
        """Provide create comment use case."""
        return CreateCommentUseCase(comment_service=comment_service, auth_service=auth_service)

    @provide(scope=Scope.REQUEST)
    def get_update_comment_use_case(
        self, comment_service: CommentService, auth_service: AuthService
    ) -> UpdateCommentUseCase:
        """Provide update comment use case."""
        return UpdateCommentUseCase(comment_service=comment_service, auth_service=auth_service)

    @provide(scope=Scope.REQUEST)
    def get_delete_comment_use_case(
        self, comment_service: CommentService, auth_service: AuthService
    ) -> DeleteCommentUseCase:
        """Provide delete comment use case."""
        return DeleteCommentUseCase(comment_service=comment_service, auth_service=auth_service)

    # Rating use cases
    @provide(scope=Scope.REQUEST)
    def get_rate_use_case(
        self, aggregation_engine: AggregationEngine, auth_service: AuthService
    ) -> RateUseCase:
        """Provide rate use case."""
        return RateUseCase(aggregation_engine=aggregation_engine, auth_service=auth_service)
