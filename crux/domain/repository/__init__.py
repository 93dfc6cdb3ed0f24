"""Repository interfaces (ports) for the document store and local storage."""

from crux.domain.repository.document_store import (
    SERVER_TIMESTAMP,
    Direction,
    DocumentListener,
    DocumentSnapshot,
    DocumentStore,
    ErrorListener,
    FieldFilter,
    FilterOp,
    OrderBy,
    Query,
    QueryListener,
    QuerySnapshot,
    StoreError,
    Unsubscribe,
    WriteKind,
    WriteOp,
)
from crux.domain.repository.local_storage import LocalStorage, LocalStorageError

__all__ = [
    "SERVER_TIMESTAMP",
    "Direction",
    "DocumentListener",
    "DocumentSnapshot",
    "DocumentStore",
    "ErrorListener",
    "FieldFilter",
    "FilterOp",
    "OrderBy",
    "Query",
    "QueryListener",
    "QuerySnapshot",
    "StoreError",
    "Unsubscribe",
    "WriteKind",
    "WriteOp",
    "LocalStorage",
    "LocalStorageError",
]
