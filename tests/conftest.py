"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import logfire
import pytest

from crux.config import Settings
from crux.domain.model import Comment, Post
from crux.domain.value import CommentId, PostId, RatingAggregate, UserId

# Keep test output quiet: no console exporter, nothing sent
logfire.configure(send_to_logfire=False, console=False)

T0 = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock for cooldown and draft timestamps."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_post(
    post_id: str,
    minutes_ago: int = 0,
    ratings: list[int] | None = None,
    tags: tuple[str, ...] = (),
    author_id: str = "author-1",
) -> Post:
    """Helper to build a post with an attached rating aggregate."""
    values = ratings or []
    return Post(
        id=PostId(post_id),
        content=f"Statement {post_id}",
        tags=tags,
        author_id=UserId(author_id),
        created_at=T0 - timedelta(minutes=minutes_ago),
        rating=RatingAggregate(
            average=sum(values) / len(values) if values else None,
            count=len(values),
            total=sum(values),
        ),
    )


def make_comment(
    comment_id: str,
    parent_id: str | None = None,
    minutes_ago: int = 0,
    ratings: list[int] | None = None,
    post_id: str = "post-1",
) -> Comment:
    """Helper to build a comment with an attached rating aggregate."""
    values = ratings or []
    return Comment(
        id=CommentId(comment_id),
        post_id=PostId(post_id),
        parent_id=CommentId(parent_id) if parent_id else None,
        content=f"Comment {comment_id}",
        author_id=UserId("author-1"),
        created_at=T0 - timedelta(minutes=minutes_ago),
        rating=RatingAggregate(
            average=sum(values) / len(values) if values else None,
            count=len(values),
            total=sum(values),
        ),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Test settings (defaults, test environment)."""
    return Settings(environment="test")


async def seed_post(
    store,
    post_id: str,
    minutes_ago: int = 0,
    ratings: dict[str, int] | None = None,
    tags: tuple[str, ...] = (),
    author_id: str = "author-1",
) -> None:
    """Write a post document and its ratings straight into a store."""
    await store.set(
        f"posts/{post_id}",
        {
            "title": "",
            "content": f"Statement {post_id}",
            "tags": list(tags),
            "authorId": author_id,
            "author": "Author",
            "createdAt": T0 - timedelta(minutes=minutes_ago),
        },
    )
    for rater_id, value in (ratings or {}).items():
        await store.set(f"posts/{post_id}/ratings/{rater_id}", {"rating": value, "userId": rater_id})


async def seed_comment(
    store,
    post_id: str,
    comment_id: str,
    parent_id: str | None = None,
    minutes_ago: int = 0,
    ratings: dict[str, int] | None = None,
) -> None:
    """Write a comment document and its ratings straight into a store."""
    path = f"posts/{post_id}/comments/{comment_id}"
    await store.set(
        path,
        {
            "content": f"Comment {comment_id}",
            "parentId": parent_id,
            "authorId": "author-1",
            "author": "Author",
            "createdAt": T0 - timedelta(minutes=minutes_ago),
        },
    )
    for rater_id, value in (ratings or {}).items():
        await store.set(f"{path}/ratings/{rater_id}", {"rating": value, "userId": rater_id})
