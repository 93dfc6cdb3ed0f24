"""In-memory document store.

Reference implementation of the DocumentStore port for development and
tests. Snapshots are delivered with ``loop.call_soon`` so independent
subscriptions interleave the way they do against a remote store, while each
subscription keeps its own emission order. ``flush()`` lets every pending
delivery run.

Faults can be injected per path prefix to exercise failure handling.
"""

import asyncio
import copy
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence
from uuid import uuid4

import logfire

from crux.domain.repository import (
    SERVER_TIMESTAMP,
    Direction,
    DocumentListener,
    DocumentSnapshot,
    DocumentStore,
    ErrorListener,
    FieldFilter,
    FilterOp,
    Query,
    QueryListener,
    QuerySnapshot,
    StoreError,
    Unsubscribe,
    WriteKind,
    WriteOp,
)
from crux.util.time import Clock, utc_now

# Ordering of values of different types, following the store's type order
_TYPE_RANK = {type(None): 0, bool: 1, int: 2, float: 2, datetime: 3, str: 4}


def _sort_value(value: Any) -> tuple[int, Any]:
    rank = _TYPE_RANK.get(type(value), 5)
    if rank == 0:
        return (0, 0)
    if rank == 5:
        return (5, repr(value))
    return (rank, value)


def _matches(flt: FieldFilter, data: dict[str, Any]) -> bool:
    if flt.field not in data:
        return False
    value = data[flt.field]
    if flt.op == FilterOp.EQ:
        return value == flt.value
    if flt.op == FilterOp.NE:
        return value != flt.value
    if flt.op == FilterOp.ARRAY_CONTAINS:
        return isinstance(value, list) and flt.value in value
    left, right = _sort_value(value), _sort_value(flt.value)
    if left[0] != right[0]:
        return False
    if flt.op == FilterOp.LT:
        return left < right
    if flt.op == FilterOp.LE:
        return left <= right
    if flt.op == FilterOp.GT:
        return left > right
    return left >= right


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def _check_document_path(path: str) -> None:
    segments = path.split("/")
    if len(segments) % 2 != 0 or not all(segments):
        raise ValueError(f"Not a document path: {path!r}")


def _resolve(value: Any, stamp: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return stamp
    if isinstance(value, dict):
        return {k: _resolve(v, stamp) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_resolve(v, stamp) for v in value]
    return value


class _Watch:
    """One live subscription."""

    def __init__(
        self,
        target: Query | str,
        on_next: Callable[[Any], None],
        on_error: ErrorListener | None,
    ) -> None:
        self.target = target
        self.on_next = on_next
        self.on_error = on_error
        self.last: Any = None
        self.closed = False  # Closed by the store after an error
        self.cancelled = False  # Released by the consumer

    @property
    def path(self) -> str:
        return self.target.collection if isinstance(self.target, Query) else self.target


class InMemoryDocumentStore(DocumentStore):
    """In-memory implementation of DocumentStore."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._docs: dict[str, dict[str, Any]] = {}
        self._watches: list[_Watch] = []
        self._pending = 0
        self._last_stamp: datetime | None = None
        self._write_faults: dict[str, StoreError] = {}
        self._read_faults: dict[str, StoreError] = {}

    # Subscriptions

    def watch(
        self,
        query: Query,
        on_next: QueryListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        return self._open(_Watch(query, on_next, on_error))

    def watch_document(
        self,
        path: str,
        on_next: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        _check_document_path(path)
        return self._open(_Watch(path, on_next, on_error))

    def _open(self, watch: _Watch) -> Unsubscribe:
        self._watches.append(watch)

        def release() -> None:
            watch.cancelled = True
            if watch in self._watches:
                self._watches.remove(watch)

        fault = self._fault_for(self._read_faults, watch.path)
        if fault is not None:
            self._close(watch, fault)
        else:
            self._refresh(watch)
        return Unsubscribe(release)

    def _evaluate(self, watch: _Watch) -> QuerySnapshot | DocumentSnapshot:
        if isinstance(watch.target, Query):
            return self._run_query(watch.target)
        return self._snapshot(watch.target)

    def _refresh(self, watch: _Watch) -> None:
        snapshot = self._evaluate(watch)
        current = snapshot.documents if isinstance(snapshot, QuerySnapshot) else snapshot
        if watch.last is not None and current == watch.last:
            return
        watch.last = current
        self._schedule(self._deliver, watch, snapshot)

    def _deliver(self, watch: _Watch, snapshot: Any) -> None:
        if watch.closed or watch.cancelled:
            return
        watch.on_next(snapshot)

    def _close(self, watch: _Watch, error: StoreError) -> None:
        watch.closed = True
        if watch in self._watches:
            self._watches.remove(watch)
        self._schedule(self._deliver_error, watch, error)

    def _deliver_error(self, watch: _Watch, error: StoreError) -> None:
        if watch.cancelled:
            return
        if watch.on_error is None:
            logfire.warn("Unhandled subscription error", path=watch.path, error=str(error))
            return
        watch.on_error(error)

    def _schedule(self, callback: Callable[..., None], *args: Any) -> None:
        self._pending += 1

        def run() -> None:
            self._pending -= 1
            callback(*args)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            run()
            return
        loop.call_soon(run)

    async def flush(self) -> None:
        """Wait until every scheduled delivery has run."""
        while self._pending:
            await asyncio.sleep(0)
        await asyncio.sleep(0)

    # Reads

    def _snapshot(self, path: str) -> DocumentSnapshot:
        data = self._docs.get(path)
        return DocumentSnapshot(path=path, data=copy.deepcopy(data) if data is not None else None)

    def _run_query(self, query: Query) -> QuerySnapshot:
        rows = sorted(
            (path, data)
            for path, data in self._docs.items()
            if _parent(path) == query.collection
        )
        rows = [row for row in rows if all(_matches(f, row[1]) for f in query.filters)]
        for order in reversed(query.order_by):
            # Documents without the ordered field are left out of the result
            rows = [row for row in rows if order.field in row[1]]
            rows.sort(
                key=lambda row, name=order.field: _sort_value(row[1][name]),
                reverse=order.direction == Direction.DESCENDING,
            )
        if query.limit is not None:
            rows = rows[: query.limit]
        return QuerySnapshot(
            query=query,
            documents=tuple(
                DocumentSnapshot(path=path, data=copy.deepcopy(data)) for path, data in rows
            ),
        )

    async def get(self, path: str) -> DocumentSnapshot:
        _check_document_path(path)
        await asyncio.sleep(0)
        fault = self._fault_for(self._read_faults, path)
        if fault is not None:
            raise fault
        return self._snapshot(path)

    def document(self, path: str) -> dict[str, Any] | None:
        """Synchronous peek at a document, for tests and tooling."""
        data = self._docs.get(path)
        return copy.deepcopy(data) if data is not None else None

    def paths(self, prefix: str = "") -> list[str]:
        return sorted(path for path in self._docs if path.startswith(prefix))

    # Writes

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        await self.write_batch([WriteOp.set(path, data, merge=merge)])

    async def delete(self, path: str) -> None:
        await self.write_batch([WriteOp.delete(path)])

    async def write_batch(self, ops: Sequence[WriteOp]) -> None:
        for op in ops:
            _check_document_path(op.path)
        await asyncio.sleep(0)
        for op in ops:
            fault = self._fault_for(self._write_faults, op.path)
            if fault is not None:
                raise fault

        stamp = self._next_stamp()
        for op in ops:
            if op.kind == WriteKind.DELETE:
                self._docs.pop(op.path, None)
                continue
            resolved = _resolve(op.data or {}, stamp)
            if op.merge and op.path in self._docs:
                self._docs[op.path].update(resolved)
            else:
                self._docs[op.path] = resolved
        self._notify()

    def allocate_id(self) -> str:
        return uuid4().hex[:20]

    def _next_stamp(self) -> datetime:
        stamp = self._clock()
        if self._last_stamp is not None and stamp <= self._last_stamp:
            stamp = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = stamp
        return stamp

    def _notify(self) -> None:
        for watch in list(self._watches):
            if not watch.closed and not watch.cancelled:
                self._refresh(watch)

    # Fault injection

    def fail_writes(self, prefix: str, code: str = "unavailable") -> None:
        """Make writes under ``prefix`` fail until faults are cleared."""
        self._write_faults[prefix] = StoreError(code, f"writes to {prefix} are failing")

    def fail_reads(self, prefix: str, code: str = "permission-denied") -> None:
        """Make point reads and new subscriptions under ``prefix`` fail."""
        self._read_faults[prefix] = StoreError(code, f"reads of {prefix} are failing")

    def break_watches(self, prefix: str, code: str = "unavailable") -> None:
        """Close every open subscription under ``prefix`` with an error."""
        error = StoreError(code, f"subscription to {prefix} was lost")
        for watch in list(self._watches):
            if watch.path.startswith(prefix):
                self._close(watch, error)

    def clear_faults(self) -> None:
        self._write_faults.clear()
        self._read_faults.clear()

    @staticmethod
    def _fault_for(faults: dict[str, StoreError], path: str) -> StoreError | None:
        for prefix, error in faults.items():
            if path.startswith(prefix):
                return error
        return None
