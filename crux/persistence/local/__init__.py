"""Local storage implementations."""

from crux.persistence.local.file import FileLocalStorage
from crux.persistence.local.inmemory import InMemoryLocalStorage

__all__ = ["FileLocalStorage", "InMemoryLocalStorage"]
