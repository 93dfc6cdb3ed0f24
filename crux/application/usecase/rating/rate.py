"""Rate use case."""

from typing import Any

from pydantic import BaseModel

from crux.application.usecase.base import BaseUseCase, require_identity
from crux.domain.service import AggregationEngine, AuthService
from crux.domain.value import CommentId, PostId, SubjectRef


class RateRequest(BaseModel):
    """Rate request.

    ``value`` is passed through uncoerced and checked against the rating
    scale by the aggregation engine.
    """

    post_id: str
    comment_id: str | None = None  # Set to rate a comment instead of the post
    value: Any


class RateResponse(BaseModel):
    """Rate response."""

    subject_id: str
    value: int


class RateUseCase(BaseUseCase):
    """Use case for rating a post or a comment on the 0-11 scale."""

    def __init__(
        self, aggregation_engine: AggregationEngine, auth_service: AuthService
    ) -> None:
        self.aggregation_engine = aggregation_engine
        self.auth_service = auth_service

    async def execute(self, request: RateRequest) -> RateResponse:
        """Execute rate flow.

        Raises:
            NotAuthorizedError: If nobody is signed in
            ValidationError: If the value is outside the scale
            SyncError: If the write fails
        """
        rater = require_identity(self.auth_service, "rate", "crux")
        post_id = PostId(request.post_id)
        subject = (
            SubjectRef.for_comment(post_id, CommentId(request.comment_id))
            if request.comment_id
            else SubjectRef.for_post(post_id)
        )
        rating = await self.aggregation_engine.rate(subject, rater.id, request.value)
        return RateResponse(subject_id=subject.subject_id, value=rating.value)
