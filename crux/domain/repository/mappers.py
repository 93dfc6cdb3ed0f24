"""Mappers between store documents and domain models.

Documents use the store's camelCase field names. Domain models are immutable
pydantic models, so mapping is done by hand in both directions.
"""

import json
from datetime import datetime
from typing import Any

import logfire

from crux.domain.model import Comment, Draft, Post, UserProfile
from crux.domain.repository import SERVER_TIMESTAMP, DocumentSnapshot
from crux.domain.value import CommentId, DraftId, PostId, UserId, normalize_tags
from crux.util.time import to_datetime


def _tags(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return normalize_tags(str(tag) for tag in value)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def doc_to_post(doc: DocumentSnapshot) -> Post | None:
    """Convert a ``posts/{id}`` document to a Post.

    Args:
        doc: Document snapshot

    Returns:
        Post domain model, or None for missing or unreadable documents
    """
    if doc.data is None:
        return None
    data = doc.data
    content = _text(data.get("content"))
    if not content:
        logfire.warn("Skipping post without content", post_id=doc.id)
        return None
    return Post(
        id=PostId(doc.id),
        title=_text(data.get("title")),
        content=content,
        tags=_tags(data.get("tags")),
        author_id=UserId(_text(data.get("authorId"))),
        author_name=_text(data.get("author")) or "Anonymous",
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def post_to_doc(
    title: str, content: str, tags: tuple[str, ...], author_id: UserId, author_name: str
) -> dict[str, Any]:
    """Document for a new post (``createdAt`` is stamped by the store)."""
    return {
        "title": title,
        "content": content,
        "tags": list(tags),
        "authorId": author_id,
        "author": author_name,
        "createdAt": SERVER_TIMESTAMP,
    }


def doc_to_comment(doc: DocumentSnapshot, post_id: PostId) -> Comment | None:
    """Convert a ``posts/{pid}/comments/{id}`` document to a Comment."""
    if doc.data is None:
        return None
    data = doc.data
    parent_id = data.get("parentId")
    return Comment(
        id=CommentId(doc.id),
        post_id=post_id,
        parent_id=CommentId(parent_id) if isinstance(parent_id, str) and parent_id else None,
        content=_text(data.get("content")),
        author_id=UserId(_text(data.get("authorId"))),
        author_name=_text(data.get("author")) or "Anonymous",
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def comment_to_doc(
    content: str,
    author_id: UserId,
    author_name: str,
    parent_id: CommentId | None,
) -> dict[str, Any]:
    """Document for a new comment or reply."""
    return {
        "content": content,
        "parentId": parent_id,
        "authorId": author_id,
        "author": author_name,
        "createdAt": SERVER_TIMESTAMP,
    }


def doc_to_rating_value(doc: DocumentSnapshot) -> int | None:
    """Extract the rating value of a ratings document.

    Malformed values (non-integers, booleans) are ignored.
    """
    value = doc.get("rating")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def rating_to_doc(rater_id: UserId, value: int) -> dict[str, Any]:
    return {"rating": value, "userId": rater_id, "createdAt": SERVER_TIMESTAMP}


def doc_to_profile(doc: DocumentSnapshot) -> UserProfile | None:
    """Convert a ``users/{id}`` document to a UserProfile."""
    if doc.data is None:
        return None
    data = doc.data
    return UserProfile(
        id=UserId(doc.id),
        display_name=data.get("displayName"),
        email=data.get("email"),
        avatar_url=data.get("photoURL"),
        created_at=to_datetime(data.get("createdAt")),
        last_login_at=to_datetime(data.get("lastLoginAt")),
        last_post_at=to_datetime(data.get("lastPostAt")),
    )


def doc_to_draft(doc: DocumentSnapshot, now: datetime) -> Draft | None:
    """Convert a ``users/{uid}/drafts/{id}`` document to a Draft."""
    if doc.data is None:
        return None
    return draft_from_dict(doc.id, doc.data, now)


def draft_to_doc(draft: Draft) -> dict[str, Any]:
    return {
        "title": draft.title,
        "content": draft.content,
        "tags": list(draft.tags),
        "createdAt": draft.created_at,
        "updatedAt": draft.updated_at,
    }


def draft_from_dict(draft_id: str, data: dict[str, Any], now: datetime) -> Draft:
    created_at = to_datetime(data.get("createdAt"), now)
    return Draft(
        id=DraftId(draft_id),
        title=_text(data.get("title")),
        content=_text(data.get("content")),
        tags=_tags(data.get("tags")),
        created_at=created_at,
        updated_at=to_datetime(data.get("updatedAt"), created_at),
    )


def drafts_to_json(drafts: list[Draft]) -> str:
    """Serialize a draft set for local storage."""
    return json.dumps(
        [
            {
                "id": draft.id,
                "title": draft.title,
                "content": draft.content,
                "tags": list(draft.tags),
                "createdAt": draft.created_at.isoformat(),
                "updatedAt": draft.updated_at.isoformat(),
            }
            for draft in drafts
        ]
    )


def drafts_from_json(raw: str | None, now: datetime) -> list[Draft]:
    """Parse a locally stored draft set.

    Unreadable content yields an empty set so a corrupt entry never blocks
    the compose view.
    """
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        logfire.warn("Discarding unreadable local drafts", error=str(e))
        return []
    if not isinstance(items, list):
        return []
    drafts = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("id"), str) and item["id"]:
            drafts.append(draft_from_dict(item["id"], item, now))
    return drafts


def draft_ids_to_json(draft_ids: set[DraftId]) -> str:
    """Serialize pending remote deletions for local storage."""
    return json.dumps(sorted(draft_ids))


def draft_ids_from_json(raw: str | None) -> set[DraftId]:
    """Parse pending remote deletions; unreadable content yields none."""
    if not raw:
        return set()
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        logfire.warn("Discarding unreadable draft deletions", error=str(e))
        return set()
    if not isinstance(items, list):
        return set()
    return {DraftId(item) for item in items if isinstance(item, str) and item}
