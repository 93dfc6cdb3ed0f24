"""Document paths used by CRUX.

    posts/{postId}
    posts/{postId}/ratings/{raterId}
    posts/{postId}/comments/{commentId}
    posts/{postId}/comments/{commentId}/ratings/{raterId}
    users/{userId}
    users/{userId}/drafts/{draftId}
"""

from crux.domain.value import CommentId, DraftId, PostId, SubjectKind, SubjectRef, UserId

POSTS = "posts"
USERS = "users"


def post(post_id: PostId) -> str:
    return f"{POSTS}/{post_id}"


def comments(post_id: PostId) -> str:
    return f"{post(post_id)}/comments"


def comment(post_id: PostId, comment_id: CommentId) -> str:
    return f"{comments(post_id)}/{comment_id}"


def ratings(subject: SubjectRef) -> str:
    """Ratings collection of a post or comment."""
    if subject.kind == SubjectKind.COMMENT:
        return f"{comment(subject.post_id, subject.comment_id)}/ratings"
    return f"{post(subject.post_id)}/ratings"


def rating(subject: SubjectRef, rater_id: UserId) -> str:
    return f"{ratings(subject)}/{rater_id}"


def user(user_id: UserId) -> str:
    return f"{USERS}/{user_id}"


def drafts(user_id: UserId) -> str:
    return f"{user(user_id)}/drafts"


def draft(user_id: UserId, draft_id: DraftId) -> str:
    return f"{drafts(user_id)}/{draft_id}"
