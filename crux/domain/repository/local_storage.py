"""Local persistent storage port.

Synchronous, process-local key to string storage. Used for the per-identity
draft sets (``drafts-<identity-or-guest>``) and the theme preference.
"""

from abc import ABC, abstractmethod


class LocalStorageError(Exception):
    """Local storage could not be read or written."""

    pass


class LocalStorage(ABC):
    """Key to string storage that survives process restarts."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            LocalStorageError: If the value cannot be persisted
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass
