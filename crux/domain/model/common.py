"""Base models for all domain entities."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from crux.domain.value import EMPTY_AGGREGATE, RatingAggregate


class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for immutability and custom types.
    """

    model_config = ConfigDict(
        frozen=True,  # All domain models are immutable
        arbitrary_types_allowed=True,  # Allow custom value objects
    )


class RatedModel(DomainModel):
    """Entity that carries a live rating aggregate.

    The aggregate is derived client-side from the ratings sub-collection and
    is never stored on the entity document itself. Live feeds attach it with
    ``with_rating`` as rating snapshots arrive.
    """

    created_at: datetime | None = None  # None until the server timestamp resolves
    updated_at: datetime | None = None
    rating: RatingAggregate = EMPTY_AGGREGATE

    @property
    def avg_rating(self) -> float | None:
        return self.rating.average

    @property
    def rating_count(self) -> int:
        return self.rating.count

    @property
    def own_rating(self) -> int | None:
        """Rating given by the active identity, if any."""
        return self.rating.self_value

    @property
    def time(self) -> datetime | None:
        """Timestamp used for recency ordering."""
        return self.created_at

    def with_rating(self, rating: RatingAggregate):
        """Return a copy carrying ``rating``."""
        if rating == self.rating:
            return self
        return self.model_copy(update={"rating": rating})
