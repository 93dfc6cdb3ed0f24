"""Unit tests for InMemoryDocumentStore."""

from datetime import timedelta

import pytest

from crux.domain.repository import SERVER_TIMESTAMP, Query, StoreError, WriteOp
from crux.persistence.store import InMemoryDocumentStore

from tests.conftest import T0


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


class TestWrites:
    """Tests for writes and server timestamps."""

    @pytest.mark.asyncio
    async def test_server_timestamp_resolved(self, store):
        await store.set("posts/p1", {"content": "x", "createdAt": SERVER_TIMESTAMP})

        assert store.document("posts/p1")["createdAt"] == T0

    @pytest.mark.asyncio
    async def test_stamps_are_monotonic(self, store):
        await store.set("posts/p1", {"createdAt": SERVER_TIMESTAMP})
        await store.set("posts/p2", {"createdAt": SERVER_TIMESTAMP})

        first = store.document("posts/p1")["createdAt"]
        second = store.document("posts/p2")["createdAt"]
        assert second == first + timedelta(microseconds=1)

    @pytest.mark.asyncio
    async def test_merge_keeps_other_fields(self, store):
        await store.set("users/u1", {"displayName": "Ada", "lastPostAt": T0})

        await store.set("users/u1", {"displayName": "Ada L."}, merge=True)

        assert store.document("users/u1") == {"displayName": "Ada L.", "lastPostAt": T0}

    @pytest.mark.asyncio
    async def test_batch_is_atomic(self, store):
        # Arrange
        store.fail_writes("users")

        # Act
        with pytest.raises(StoreError):
            await store.write_batch(
                [WriteOp.set("posts/p1", {"content": "x"}), WriteOp.set("users/u1", {"a": 1})]
            )

        # Assert
        assert store.paths() == []

    @pytest.mark.asyncio
    async def test_rejects_collection_path(self, store):
        with pytest.raises(ValueError):
            await store.set("posts", {"content": "x"})

    @pytest.mark.asyncio
    async def test_document_peek_is_a_copy(self, store):
        await store.set("posts/p1", {"tags": ["a"]})

        store.document("posts/p1")["tags"].append("b")

        assert store.document("posts/p1")["tags"] == ["a"]


class TestQueries:
    """Tests for live queries."""

    @pytest.mark.asyncio
    async def test_initial_snapshot_and_updates(self, store):
        # Arrange
        seen = []
        store.watch(Query("posts").order("createdAt", descending=True), lambda s: seen.append(s.ids))

        # Act
        await store.flush()
        await store.set("posts/p1", {"createdAt": SERVER_TIMESTAMP})
        await store.set("posts/p2", {"createdAt": SERVER_TIMESTAMP})
        await store.flush()

        # Assert
        assert seen == [[], ["p1"], ["p2", "p1"]]

    @pytest.mark.asyncio
    async def test_only_direct_children(self, store):
        await store.set("posts/p1", {"v": 1})
        await store.set("posts/p1/ratings/u1", {"rating": 3})
        seen = []

        store.watch(Query("posts"), lambda s: seen.append(s.ids))
        await store.flush()

        assert seen == [["p1"]]

    @pytest.mark.asyncio
    async def test_unchanged_results_not_redelivered(self, store):
        seen = []
        store.watch(Query("posts").where("tag", "==", "a"), lambda s: seen.append(s.ids))
        await store.flush()

        await store.set("posts/p1", {"tag": "b"})
        await store.flush()

        assert seen == [[]]

    @pytest.mark.asyncio
    async def test_filters_and_limit(self, store):
        for i, tags in enumerate([["a"], ["a", "b"], ["b"]]):
            await store.set(f"posts/p{i}", {"tags": tags, "n": i})
        seen = []

        store.watch(
            Query("posts").where("tags", "array-contains", "a").order("n").limited(1),
            lambda s: seen.append(s.ids),
        )
        await store.flush()

        assert seen == [["p0"]]

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, store):
        seen = []
        unsubscribe = store.watch(Query("posts"), seen.append)

        unsubscribe()
        unsubscribe()
        await store.flush()

        assert seen == []


class TestFaults:
    """Tests for fault injection."""

    @pytest.mark.asyncio
    async def test_failed_read(self, store):
        store.fail_reads("users")

        with pytest.raises(StoreError) as exc_info:
            await store.get("users/u1")

        assert exc_info.value.code == "permission-denied"

    @pytest.mark.asyncio
    async def test_failed_subscription_reports_error(self, store):
        store.fail_reads("posts")
        snapshots, errors = [], []

        store.watch(Query("posts"), snapshots.append, errors.append)
        await store.flush()

        assert snapshots == []
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_broken_watch_is_closed(self, store):
        # Arrange
        snapshots, errors = [], []
        store.watch_document("users/u1", snapshots.append, errors.append)
        await store.flush()

        # Act
        store.break_watches("users")
        await store.set("users/u1", {"a": 1})
        await store.flush()

        # Assert
        assert len(snapshots) == 1
        assert errors[0].code == "unavailable"

    @pytest.mark.asyncio
    async def test_clear_faults(self, store):
        store.fail_writes("posts")
        store.clear_faults()

        await store.set("posts/p1", {"content": "x"})

        assert store.paths("posts") == ["posts/p1"]
