"""Domain value objects for CRUX.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and small pieces of domain logic.
"""

from enum import Enum
from typing import Iterable, Sequence
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from crux.domain.value.identifiers import CommentId, PostId


class ValueObject(BaseModel):
    """Immutable value compared by its fields."""

    model_config = ConfigDict(frozen=True)


class SubjectKind(str, Enum):
    """Kind of entity that can be rated."""

    POST = "post"
    COMMENT = "comment"


class SortOrder(str, Enum):
    """Orderings shared by the feed, tag feed, profile and comment views."""

    RECENCY = "recency"  # Newest first
    TOP_RATED = "top_rated"  # Highest average first, unrated last
    MOST_RATED = "most_rated"  # Most ratings first


class TagSortOrder(str, Enum):
    """Orderings for the tag index page."""

    POPULARITY = "popularity"
    ALPHABETICAL = "alphabetical"
    AVERAGE_RATING = "average_rating"


class DraftStatus(str, Enum):
    """Synchronization status of a single draft."""

    LOCAL_ONLY = "local_only"
    SYNCING = "syncing"
    SYNCED = "synced"
    SYNC_FAILED = "sync_failed"


class GateState(str, Enum):
    """Posting gate state."""

    OPEN = "open"
    COOLDOWN = "cooldown"


class Theme(str, Enum):
    """Persisted theme preference."""

    CLEAN = "clean"
    STARRY = "starry"

    def toggled(self) -> "Theme":
        """Return the other theme."""
        return Theme.STARRY if self is Theme.CLEAN else Theme.CLEAN


class SubjectRef(ValueObject):
    """Reference to a ratable subject: a post, or a comment on a post."""

    kind: SubjectKind
    post_id: PostId
    comment_id: CommentId | None = None

    @model_validator(mode="after")
    def validate_comment_reference(self) -> "SubjectRef":
        """Comment subjects need a comment id, post subjects must not have one."""
        if self.kind == SubjectKind.COMMENT and not self.comment_id:
            raise ValueError("Comment subjects require a comment_id")
        if self.kind == SubjectKind.POST and self.comment_id is not None:
            raise ValueError("Post subjects cannot carry a comment_id")
        return self

    @classmethod
    def for_post(cls, post_id: PostId) -> "SubjectRef":
        return cls(kind=SubjectKind.POST, post_id=post_id)

    @classmethod
    def for_comment(cls, post_id: PostId, comment_id: CommentId) -> "SubjectRef":
        return cls(kind=SubjectKind.COMMENT, post_id=post_id, comment_id=comment_id)

    @property
    def subject_id(self) -> str:
        """Id of the rated entity itself."""
        return self.comment_id if self.comment_id is not None else self.post_id


class RatingAggregate(ValueObject):
    """Derived rating statistics for one subject.

    ``average`` is None when nobody has rated the subject yet (never 0).
    ``total`` is the plain sum of values so several aggregates can be
    combined into a mean over the union of their ratings.
    """

    average: float | None = None
    count: int = 0
    total: int = 0
    self_value: int | None = None


# Placeholder attached to entities until their rating feed reports in
EMPTY_AGGREGATE = RatingAggregate()


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Trim tags, drop empty ones and de-duplicate case-insensitively.

    The first occurrence wins, keeping its original casing and position.
    """
    seen: set[str] = set()
    result: list[str] = []
    for raw in tags:
        tag = raw.strip()
        if not tag:
            continue
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(tag)
    return tuple(result)


def parse_tags(text: str) -> tuple[str, ...]:
    """Parse the comma-separated tag input of the compose form."""
    return normalize_tags(text.split(","))


class TagSelection(ValueObject):
    """Set of tags selected for a multi-tag feed.

    Mirrors the ``/tag/<a>+<b>`` route: tags are joined with ``+`` and each
    tag is percent-encoded.
    """

    tags: tuple[str, ...] = ()

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Iterable[str]) -> tuple[str, ...]:
        """Keep the selection free of empty and duplicate tags."""
        return normalize_tags(v)

    @classmethod
    def parse(cls, segment: str) -> "TagSelection":
        """Parse a route segment such as ``Ethics+AI%20Safety``."""
        if not segment:
            return cls()
        return cls(tags=tuple(unquote(part) for part in segment.split("+")))

    def encode(self) -> str:
        """Encode the selection back into a route segment."""
        return "+".join(quote(tag, safe="") for tag in self.tags)

    def contains(self, tag: str) -> bool:
        key = tag.strip().casefold()
        return any(selected.casefold() == key for selected in self.tags)

    def add(self, tag: str) -> "TagSelection":
        """Return a selection with ``tag`` appended (no-op if already selected)."""
        if self.contains(tag):
            return self
        return TagSelection(tags=(*self.tags, tag))

    def remove(self, tag: str) -> "TagSelection":
        """Return a selection without ``tag`` (case-insensitive)."""
        key = tag.strip().casefold()
        return TagSelection(
            tags=tuple(t for t in self.tags if t.casefold() != key)
        )

    def matches(self, post_tags: Sequence[str]) -> bool:
        """Whether a post carrying ``post_tags`` has every selected tag.

        The empty selection matches every post, including untagged posts.
        """
        carried = {t.casefold() for t in post_tags}
        return all(tag.casefold() in carried for tag in self.tags)

    @property
    def is_empty(self) -> bool:
        return not self.tags
