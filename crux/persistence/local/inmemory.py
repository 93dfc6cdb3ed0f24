"""In-memory local storage for testing."""

from crux.domain.repository import LocalStorage, LocalStorageError


class InMemoryLocalStorage(LocalStorage):
    """In-memory implementation of LocalStorage for testing."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})
        self.read_only = False  # Simulates a full or locked storage

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        if self.read_only:
            raise LocalStorageError(f"Storage is read-only, cannot write {key}")
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)
