"""Domain value objects for CRUX."""

from crux.domain.value.identifiers import (
    CommentId,
    DraftId,
    PostId,
    UserId,
)
from crux.domain.value.types import (
    EMPTY_AGGREGATE,
    DraftStatus,
    GateState,
    RatingAggregate,
    SortOrder,
    SubjectKind,
    SubjectRef,
    TagSelection,
    TagSortOrder,
    Theme,
    normalize_tags,
    parse_tags,
)

__all__ = [
    # Identifiers
    "UserId",
    "PostId",
    "CommentId",
    "DraftId",
    # Types
    "EMPTY_AGGREGATE",
    "DraftStatus",
    "GateState",
    "RatingAggregate",
    "SortOrder",
    "SubjectKind",
    "SubjectRef",
    "TagSelection",
    "TagSortOrder",
    "Theme",
    "normalize_tags",
    "parse_tags",
]
