"""Remote document store adapters."""

from crux.adapter.store.firestore import FirestoreDocumentStore

__all__ = ["FirestoreDocumentStore"]
