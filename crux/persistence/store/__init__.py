"""Document store implementations."""

from crux.persistence.store.inmemory import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
