"""Sort policy.

Stable orderings shared by the feed, tag feed, profile and comment views,
plus the orderings of the tag index page.

All orderings rely on Python's stable sort: ``reverse=True`` keeps equal
elements in input order, which is the final tie-break.
"""

from datetime import datetime
from typing import Iterable, Protocol, Sequence, TypeVar

from crux.domain.model import TagStats
from crux.domain.value import SortOrder, TagSortOrder

# Below any real average (ratings start at 0)
UNRATED = -1.0


class Rated(Protocol):
    """Anything carrying a rating aggregate and a timestamp."""

    @property
    def avg_rating(self) -> float | None: ...

    @property
    def rating_count(self) -> int: ...

    @property
    def time(self) -> datetime | None: ...


R = TypeVar("R", bound=Rated)


def _time_key(entry: Rated) -> float:
    # A pending server timestamp means the entry was just written
    when = entry.time
    return when.timestamp() if when is not None else float("inf")


def _average_key(average: float | None) -> float:
    return average if average is not None else UNRATED


def sort_key(order: SortOrder):
    """Key function for ``order``; sort descending with ``reverse=True``."""
    if order == SortOrder.RECENCY:
        return _time_key
    if order == SortOrder.TOP_RATED:
        return lambda entry: (_average_key(entry.avg_rating), _time_key(entry))
    if order == SortOrder.MOST_RATED:
        return lambda entry: (entry.rating_count, _time_key(entry))
    raise ValueError(f"Unknown sort order: {order}")


def sort_entries(entries: Iterable[R], order: SortOrder) -> list[R]:
    """Return ``entries`` ordered by ``order``.

    Args:
        entries: Posts, comments or thread nodes
        order: recency, top_rated or most_rated

    Returns:
        New list, most relevant first
    """
    return sorted(entries, key=sort_key(SortOrder(order)), reverse=True)


def sort_tags(stats: Sequence[TagStats], order: TagSortOrder) -> list[TagStats]:
    """Order tag statistics for the tag index page."""
    order = TagSortOrder(order)
    if order == TagSortOrder.ALPHABETICAL:
        return sorted(stats, key=lambda s: s.tag.casefold())
    if order == TagSortOrder.AVERAGE_RATING:
        return sorted(
            stats,
            key=lambda s: (_average_key(s.average), s.post_count),
            reverse=True,
        )
    return sorted(stats, key=lambda s: s.post_count, reverse=True)
