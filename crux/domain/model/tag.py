"""Tag statistics."""

from crux.domain.model.common import DomainModel


class TagStats(DomainModel):
    """Usage and rating statistics for one tag.

    ``tag`` keeps the casing of the first occurrence seen while indexing.
    The rating fields cover the union of every rating on every post that
    carries the tag.
    """

    tag: str
    post_count: int = 0
    rating_count: int = 0
    rating_total: int = 0

    @property
    def average(self) -> float | None:
        if self.rating_count == 0:
            return None
        return self.rating_total / self.rating_count
