"""Tag statistics and tag filtering."""

from typing import Iterable, Sequence

import logfire

from crux.domain.model import Post, TagStats
from crux.domain.value import TagSelection


class TagIndexer:
    """Derives tag statistics from the full post set."""

    def index(self, posts: Iterable[Post]) -> list[TagStats]:
        """Group posts by tag (case-insensitive).

        The display form of each tag is the casing of its first occurrence.
        The rating average of a tag is taken over the union of every rating
        on every post carrying it, not over per-post averages.

        Args:
            posts: Posts with their rating aggregates attached

        Returns:
            Tag statistics in first-seen order
        """
        with logfire.span("tag_indexer.index"):
            stats: dict[str, TagStats] = {}
            for post in posts:
                for tag in post.tags:
                    key = tag.casefold()
                    current = stats.get(key) or TagStats(tag=tag)
                    stats[key] = current.model_copy(
                        update={
                            "post_count": current.post_count + 1,
                            "rating_count": current.rating_count + post.rating.count,
                            "rating_total": current.rating_total + post.rating.total,
                        }
                    )
            logfire.debug("Tags indexed", tags=len(stats))
            return list(stats.values())

    @staticmethod
    def filter_by_tags(posts: Sequence[Post], selection: TagSelection) -> list[Post]:
        """Keep posts that carry every selected tag (case-insensitive).

        An empty selection keeps every post, untagged ones included.
        """
        return [post for post in posts if selection.matches(post.tags)]

    @staticmethod
    def search(stats: Sequence[TagStats], text: str) -> list[TagStats]:
        """Case-insensitive substring search over tag names."""
        needle = text.strip().casefold()
        if not needle:
            return list(stats)
        return [s for s in stats if needle in s.tag.casefold()]
