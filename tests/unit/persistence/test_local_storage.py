"""Unit tests for local storage implementations."""

import json

import pytest

from crux.domain.repository import LocalStorageError
from crux.persistence.local import FileLocalStorage, InMemoryLocalStorage


class TestFileLocalStorage:
    """Tests for the JSON file backed storage."""

    def test_values_survive_reopen(self, tmp_path):
        # Arrange
        path = tmp_path / "nested" / "local.json"
        storage = FileLocalStorage(path)

        # Act
        storage.set("theme-preference", "starry")
        reopened = FileLocalStorage(path)

        # Assert
        assert reopened.get("theme-preference") == "starry"
        assert json.loads(path.read_text()) == {"theme-preference": "starry"}

    def test_remove(self, tmp_path):
        storage = FileLocalStorage(tmp_path / "local.json")
        storage.set("drafts-guest", "[]")

        storage.remove("drafts-guest")
        storage.remove("never-set")

        assert FileLocalStorage(tmp_path / "local.json").get("drafts-guest") is None

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "local.json"
        path.write_text("{broken")

        storage = FileLocalStorage(path)

        assert storage.get("anything") is None

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = FileLocalStorage(blocker / "local.json")

        with pytest.raises(LocalStorageError):
            storage.set("key", "value")


class TestInMemoryLocalStorage:
    def test_read_only(self):
        storage = InMemoryLocalStorage({"a": "1"})
        storage.read_only = True

        with pytest.raises(LocalStorageError):
            storage.set("a", "2")

        assert storage.get("a") == "1"
