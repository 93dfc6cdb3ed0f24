"""Domain model entities for CRUX."""

from crux.domain.model.comment import Comment
from crux.domain.model.common import DomainModel, RatedModel
from crux.domain.model.draft import ComposeForm, Draft
from crux.domain.model.post import Post
from crux.domain.model.posting import PostingCooldown
from crux.domain.model.rating import Rating
from crux.domain.model.tag import TagStats
from crux.domain.model.user import Identity, UserProfile

__all__ = [
    "DomainModel",
    "RatedModel",
    "Post",
    "Comment",
    "Rating",
    "Draft",
    "ComposeForm",
    "Identity",
    "UserProfile",
    "TagStats",
    "PostingCooldown",
]
