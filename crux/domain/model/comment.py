"""Comment entity.

Comments (sub-cruxes) form a forest per post through ``parent_id``.
"""

from crux.domain.model.common import RatedModel
from crux.domain.value import CommentId, PostId, UserId


class Comment(RatedModel):
    """Comment entity.

    Represents a comment on a post or a reply to another comment.

    Threading is managed through parent_id only: a comment whose parent is
    missing (deleted or never existed) is shown at the top level.
    """

    id: CommentId
    post_id: PostId
    parent_id: CommentId | None = None
    content: str
    author_id: UserId
    author_name: str = "Anonymous"
