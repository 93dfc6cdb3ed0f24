"""Post entity.

A post (a "crux") is a short opinion statement that others rate on the
0-11 scale and discuss in threaded comments.
"""

from pydantic import Field

from crux.domain.model.common import RatedModel
from crux.domain.value import PostId, UserId


class Post(RatedModel):
    """Post entity.

    Stored at ``posts/{id}``. Ratings live in ``posts/{id}/ratings`` and
    comments in ``posts/{id}/comments``.
    """

    id: PostId
    title: str = ""
    content: str
    tags: tuple[str, ...] = Field(default_factory=tuple)
    author_id: UserId
    author_name: str = "Anonymous"

    def carries_tag(self, tag: str) -> bool:
        """Case-insensitive tag membership."""
        key = tag.strip().casefold()
        return any(t.casefold() == key for t in self.tags)
