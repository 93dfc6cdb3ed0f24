"""Rating aggregation.

Each ratable subject (a post or a comment) has a ratings sub-collection
keyed by rater id. The engine keeps a live subscription per subject and
turns every snapshot of that collection into a ``RatingAggregate``.
"""

from typing import Callable, Mapping

import logfire

from crux.config import RatingSettings
from crux.domain.error import SubscriptionError, SyncError, ValidationError
from crux.domain.model import Rating
from crux.domain.repository import (
    DocumentStore,
    Query,
    QuerySnapshot,
    StoreError,
    Unsubscribe,
    paths,
)
from crux.domain.value import RatingAggregate, SubjectRef, UserId
from crux.domain.repository.mappers import doc_to_rating_value, rating_to_doc

from .auth_service import AuthService


def aggregate(values: Mapping[str, int], self_id: str | None = None) -> RatingAggregate:
    """Compute the aggregate of one subject's ratings.

    Args:
        values: Rating value per rater id (one rating per rater)
        self_id: Active identity, whose own rating is reported as ``self_value``

    Returns:
        Aggregate with ``average`` None when there are no ratings
    """
    count = len(values)
    total = sum(values.values())
    return RatingAggregate(
        average=total / count if count else None,
        count=count,
        total=total,
        self_value=values.get(self_id) if self_id is not None else None,
    )


class AggregationEngine:
    """Domain service for live rating aggregates and rating submission."""

    def __init__(
        self,
        store: DocumentStore,
        auth_service: AuthService,
        rating_settings: RatingSettings,
    ) -> None:
        """Initialize aggregation engine.

        Args:
            store: Document store
            auth_service: Source of the active identity for ``self_value``
            rating_settings: Rating scale bounds
        """
        self.store = store
        self.auth_service = auth_service
        self.rating_settings = rating_settings

    def subscribe(
        self,
        subject: SubjectRef,
        on_update: Callable[[RatingAggregate], None],
        on_error: Callable[[SubscriptionError], None] | None = None,
    ) -> Unsubscribe:
        """Attach to the live ratings of ``subject``.

        ``on_update`` receives a fresh aggregate on every change to the
        rating set. Subscriptions to different subjects are independent.

        Args:
            subject: Post or comment reference
            on_update: Called with every new aggregate
            on_error: Called if the live feed fails

        Returns:
            Idempotent disposer
        """
        collection = paths.ratings(subject)

        def handle_snapshot(snapshot: QuerySnapshot) -> None:
            values: dict[str, int] = {}
            for doc in snapshot:
                value = doc_to_rating_value(doc)
                if value is None:
                    logfire.warn("Ignoring malformed rating", path=doc.path)
                    continue
                values[doc.id] = value
            on_update(aggregate(values, self.auth_service.current_user_id))

        def handle_error(error: StoreError) -> None:
            logfire.warn(
                "Rating feed failed",
                subject_id=subject.subject_id,
                kind=subject.kind.value,
                error=str(error),
            )
            if on_error is not None:
                on_error(SubscriptionError(collection, str(error)))

        return self.store.watch(Query(collection), handle_snapshot, handle_error)

    def validate(self, value: object) -> int:
        """Check a rating value against the scale.

        Raises:
            ValidationError: If value is not an integer inside the scale
        """
        low, high = self.rating_settings.min_value, self.rating_settings.max_value
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Rating must be a whole number from {low} to {high}")
        if not low <= value <= high:
            raise ValidationError(f"Rating must be between {low} and {high}")
        return value

    async def rate(self, subject: SubjectRef, rater_id: UserId, value: int) -> Rating:
        """Submit (or replace) a rater's rating of a subject.

        The rater id is the document id, so rating again overwrites the
        previous value instead of adding a second rating.

        Args:
            subject: Post or comment reference
            rater_id: Rating identity
            value: Integer on the rating scale

        Returns:
            The rating as written

        Raises:
            ValidationError: If value is out of range or not an integer
            SyncError: If the write fails
        """
        with logfire.span(
            "aggregation_engine.rate",
            subject_id=subject.subject_id,
            kind=subject.kind.value,
            rater_id=str(rater_id),
        ):
            checked = self.validate(value)
            path = paths.rating(subject, rater_id)
            try:
                await self.store.set(path, rating_to_doc(rater_id, checked))
            except StoreError as e:
                logfire.error("Rating write failed", path=path, error=str(e))
                raise SyncError("save rating", path, str(e)) from e

            logfire.info(
                "Rating saved",
                subject_id=subject.subject_id,
                kind=subject.kind.value,
                value=checked,
            )
            return Rating(subject=subject, rater_id=rater_id, value=checked)
