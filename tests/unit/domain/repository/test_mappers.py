"""Unit tests for document mappers."""

import json
from datetime import timedelta

import pytest

from crux.domain.model import Draft
from crux.domain.repository import SERVER_TIMESTAMP, DocumentSnapshot
from crux.domain.repository.mappers import (
    comment_to_doc,
    doc_to_comment,
    doc_to_post,
    doc_to_profile,
    doc_to_rating_value,
    drafts_from_json,
    drafts_to_json,
    post_to_doc,
)
from crux.domain.value import CommentId, DraftId, PostId, UserId

from tests.conftest import T0


class TestPostMapping:
    """Tests for post documents."""

    def test_new_post_document(self):
        doc = post_to_doc("T", "Body", ("AI",), UserId("u1"), "Ada")

        assert doc["createdAt"] is SERVER_TIMESTAMP
        assert doc["tags"] == ["AI"]
        assert doc["authorId"] == "u1"

    def test_full_document(self):
        snapshot = DocumentSnapshot(
            path="posts/p1",
            data={
                "title": "Q",
                "content": "Body",
                "tags": ["AI", " ai ", ""],
                "authorId": "u1",
                "author": "Ada",
                "createdAt": "2025-01-15T12:00:00Z",
            },
        )

        post = doc_to_post(snapshot)

        assert post.id == "p1"
        assert post.tags == ("AI",)
        assert post.created_at == T0
        assert post.rating_count == 0
        assert post.avg_rating is None

    def test_pending_timestamp_and_missing_author(self):
        post = doc_to_post(DocumentSnapshot(path="posts/p1", data={"content": "Body"}))

        assert post.created_at is None
        assert post.author_name == "Anonymous"

    @pytest.mark.parametrize("data", [None, {"title": "No content"}, {"content": 42}])
    def test_unreadable_post_skipped(self, data):
        assert doc_to_post(DocumentSnapshot(path="posts/p1", data=data)) is None


class TestCommentMapping:
    """Tests for comment documents."""

    def test_reply_round_trip_fields(self):
        doc = comment_to_doc("Reply", UserId("u2"), "Grace", CommentId("c1"))
        doc["createdAt"] = T0

        comment = doc_to_comment(
            DocumentSnapshot(path="posts/p1/comments/c2", data=doc), PostId("p1")
        )

        assert comment.id == "c2"
        assert comment.parent_id == "c1"
        assert comment.post_id == "p1"
        assert comment.author_name == "Grace"

    def test_empty_parent_is_top_level(self):
        comment = doc_to_comment(
            DocumentSnapshot(path="posts/p1/comments/c1", data={"content": "x", "parentId": ""}),
            PostId("p1"),
        )

        assert comment.parent_id is None


class TestRatingMapping:
    """Tests for rating values."""

    @pytest.mark.parametrize(
        "value,expected",
        [(7, 7), (0, 0), (True, None), ("7", None), (7.5, None), (None, None)],
    )
    def test_rating_value(self, value, expected):
        snapshot = DocumentSnapshot(path="posts/p1/ratings/u1", data={"rating": value})

        assert doc_to_rating_value(snapshot) == expected


class TestProfileMapping:
    def test_profile(self):
        profile = doc_to_profile(
            DocumentSnapshot(
                path="users/u1",
                data={"displayName": "Ada", "photoURL": "https://x/a.png", "lastPostAt": T0},
            )
        )

        assert profile.id == "u1"
        assert profile.avatar_url == "https://x/a.png"
        assert profile.last_post_at == T0
        assert profile.created_at is None


class TestLocalDrafts:
    """Tests for the local draft serialization."""

    def test_serialized_drafts_parse_back(self):
        draft = Draft(
            id=DraftId("d1"),
            title="T",
            content="Body",
            tags=("a", "b"),
            created_at=T0,
            updated_at=T0 + timedelta(minutes=1),
        )

        (parsed,) = drafts_from_json(drafts_to_json([draft]), T0)

        assert parsed == draft

    def test_invalid_entries_dropped(self):
        raw = json.dumps([{"id": "d1", "content": "ok"}, {"content": "no id"}, "junk"])

        drafts = drafts_from_json(raw, T0)

        assert [d.id for d in drafts] == ["d1"]
        assert drafts[0].created_at == T0
        assert drafts[0].updated_at == T0

    @pytest.mark.parametrize("raw", [None, "", "{oops", '{"id": "d1"}'])
    def test_unreadable_storage(self, raw):
        assert drafts_from_json(raw, T0) == []
