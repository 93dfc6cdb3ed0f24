"""Document store port.

The client is layered on a hierarchical document store with live queries.
The store engine itself is external; this module defines the contract the
rest of CRUX relies on:

- collection queries (filters, order-by, limit) delivered as a stream of
  snapshots, plus live single-document watches
- point reads, upsert-with-merge writes, deletes and atomic batches
- a ``SERVER_TIMESTAMP`` sentinel resolved by the store at write time

Snapshots of one subscription are delivered in the order the store
produces them. Nothing is guaranteed across different subscriptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterator, Sequence


class _ServerTimestamp:
    """Write-time placeholder replaced by the store's own clock."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class StoreError(Exception):
    """Failure reported by the document store.

    ``code`` follows the store's status vocabulary, e.g. ``unavailable`` or
    ``permission-denied``.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(f"{code}: {message}")


class FilterOp(str, Enum):
    """Field filter operators."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    ARRAY_CONTAINS = "array-contains"


class Direction(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: Direction = Direction.ASCENDING


@dataclass(frozen=True)
class Query:
    """Query over the documents directly inside one collection.

    Built fluently: ``Query("posts").order("createdAt", descending=True)``.
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: tuple[OrderBy, ...] = ()
    limit: int | None = None

    def where(self, field_path: str, op: FilterOp | str, value: Any) -> "Query":
        return replace(
            self, filters=(*self.filters, FieldFilter(field_path, FilterOp(op), value))
        )

    def order(self, field_path: str, descending: bool = False) -> "Query":
        direction = Direction.DESCENDING if descending else Direction.ASCENDING
        return replace(self, order_by=(*self.order_by, OrderBy(field_path, direction)))

    def limited(self, count: int) -> "Query":
        return replace(self, limit=count)


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time content of one document. ``data`` is None when missing."""

    path: str
    data: dict[str, Any] | None = None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def get(self, field_path: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field_path, default)


@dataclass(frozen=True)
class QuerySnapshot:
    """Result set of a query at one point in time."""

    query: Query
    documents: tuple[DocumentSnapshot, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[DocumentSnapshot]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def ids(self) -> list[str]:
        return [doc.id for doc in self.documents]


class WriteKind(str, Enum):
    SET = "set"
    DELETE = "delete"


@dataclass(frozen=True)
class WriteOp:
    """One write inside an atomic batch."""

    kind: WriteKind
    path: str
    data: dict[str, Any] | None = None
    merge: bool = False

    @classmethod
    def set(cls, path: str, data: dict[str, Any], merge: bool = False) -> "WriteOp":
        return cls(kind=WriteKind.SET, path=path, data=data, merge=merge)

    @classmethod
    def delete(cls, path: str) -> "WriteOp":
        return cls(kind=WriteKind.DELETE, path=path)


class Unsubscribe:
    """Disposer returned by every subscription.

    Calling it more than once is safe: the release callback runs only once.
    """

    def __init__(self, release: Callable[[], None] | None = None) -> None:
        self._release = release
        self._cancelled = False

    def __call__(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        release, self._release = self._release, None
        if release is not None:
            release()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


QueryListener = Callable[[QuerySnapshot], None]
DocumentListener = Callable[[DocumentSnapshot], None]
ErrorListener = Callable[[StoreError], None]


class DocumentStore(ABC):
    """Hierarchical document store with live queries.

    Implementations live in the persistence layer.
    """

    @abstractmethod
    def watch(
        self,
        query: Query,
        on_next: QueryListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        """Subscribe to a live query.

        The current result is delivered first, then a new snapshot on every
        change. After an error the subscription is closed by the store.

        Args:
            query: Collection query
            on_next: Called with every result snapshot
            on_error: Called once if the subscription fails

        Returns:
            Idempotent disposer
        """
        pass

    @abstractmethod
    def watch_document(
        self,
        path: str,
        on_next: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        """Subscribe to a single document (missing documents have no data)."""
        pass

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot:
        """Read one document.

        Raises:
            StoreError: If the read fails
        """
        pass

    @abstractmethod
    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """Create or overwrite a document.

        Args:
            path: Document path
            data: Field values; ``SERVER_TIMESTAMP`` values are resolved by the store
            merge: Update only the given fields of an existing document

        Raises:
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a document. Sub-collections are left untouched.

        Raises:
            StoreError: If the delete fails
        """
        pass

    @abstractmethod
    async def write_batch(self, ops: Sequence[WriteOp]) -> None:
        """Apply several writes atomically: all of them or none.

        Raises:
            StoreError: If the batch fails
        """
        pass

    @abstractmethod
    def allocate_id(self) -> str:
        """Allocate a fresh document id without writing anything."""
        pass
