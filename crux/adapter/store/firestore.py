"""Firestore REST document store.

Implements the DocumentStore port against the Firestore v1 REST API:

- point reads with ``GET {document}``
- writes and atomic batches with ``POST documents:commit``; merge writes
  carry an ``updateMask`` and ``SERVER_TIMESTAMP`` values become
  ``REQUEST_TIME`` field transforms
- queries with ``POST {parent}:runQuery``

REST has no streaming listener, so live queries and document watches poll
at ``poll_interval`` and deliver a snapshot only when the result changed.
Requests carry the signed-in identity's ID token when one is available.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Sequence
from uuid import uuid4

import httpx
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

OPERATORS = {
    FilterOp.EQ: "EQUAL",
    FilterOp.NE: "NOT_EQUAL",
    FilterOp.LT: "LESS_THAN",
    FilterOp.LE: "LESS_THAN_OR_EQUAL",
    FilterOp.GT: "GREATER_THAN",
    FilterOp.GE: "GREATER_THAN_OR_EQUAL",
    FilterOp.ARRAY_CONTAINS: "ARRAY_CONTAINS",
}

# Fallback status codes when the error body carries none
HTTP_STATUS_CODES = {
    400: "invalid-argument",
    401: "unauthenticated",
    403: "permission-denied",
    404: "not-found",
    409: "aborted",
    429: "resource-exhausted",
}

_SIMPLE_FIELD = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")
_FRACTION = re.compile(r"\.(\d+)")


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        stamp = value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        return {"timestampValue": stamp}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: encode_value(value)
        for key, value in data.items()
        if value is not SERVER_TIMESTAMP
    }


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp; nanosecond precision is cut to microseconds."""
    text = raw.replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def decode_value(value: dict[str, Any]) -> Any:
    """Decode a Firestore ``Value`` into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    # References, bytes and geo points are passed through as-is
    return next(iter(value.values()), None)


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def field_path(name: str) -> str:
    """Quote a field name for use in masks and transforms."""
    if _SIMPLE_FIELD.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def _server_timestamp_paths(data: dict[str, Any], prefix: str = "") -> list[str]:
    paths = []
    for key, value in data.items():
        path = f"{prefix}{field_path(key)}"
        if value is SERVER_TIMESTAMP:
            paths.append(path)
        elif isinstance(value, dict):
            paths.extend(_server_timestamp_paths(value, prefix=f"{path}."))
    return paths


def _strip_server_timestamps(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: _strip_server_timestamps(value) if isinstance(value, dict) else value
        for key, value in data.items()
        if value is not SERVER_TIMESTAMP
    }


def _status_code(response: httpx.Response) -> tuple[str, str]:
    """Status vocabulary code and message of an error response."""
    try:
        error = response.json()
        if isinstance(error, list):
            error = error[0] if error else {}
        error = error.get("error", {})
    except ValueError:
        error = {}
    status = error.get("status")
    if status:
        code = status.lower().replace("_", "-")
    elif response.status_code >= 500:
        code = "unavailable"
    else:
        code = HTTP_STATUS_CODES.get(response.status_code, "unknown")
    return code, error.get("message") or f"HTTP {response.status_code}"


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        base_url: str = "https://firestore.googleapis.com/v1",
        database_id: str = "(default)",
        timeout: float = 10.0,
        poll_interval: float = 2.0,
        token_source: Callable[[], str | None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Firestore REST store.

        Args:
            project_id: Cloud project id
            base_url: API base URL
            database_id: Database within the project
            timeout: Request timeout in seconds
            poll_interval: Seconds between refreshes of a live subscription
            token_source: Returns the current ID token, or None when signed out
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.root = f"projects/{project_id}/databases/{database_id}/documents"
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._token_source = token_source
        self._transport = transport
        self._polls: set[asyncio.Task] = set()

    def _name(self, path: str) -> str:
        return f"{self.root}/{path}" if path else self.root

    def _path(self, name: str) -> str:
        return name.removeprefix(self.root).lstrip("/")

    async def _request(self, method: str, name: str, json: Any = None) -> httpx.Response | None:
        """Send one request.

        Returns:
            The response, or None for a missing document

        Raises:
            StoreError: On an error response or transport failure
        """
        headers = {}
        token = self._token_source() if self._token_source else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}/{name}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method, url, json=json, headers=headers, timeout=self.timeout
                )
        except httpx.HTTPError as e:
            logfire.warn("Document store unreachable", method=method, name=name, error=str(e))
            raise StoreError("unavailable", "could not reach the document store") from e

        if response.status_code == 404 and method == "GET":
            return None
        if response.status_code != 200:
            code, message = _status_code(response)
            logfire.warn(
                "Document store rejected request",
                method=method,
                name=name,
                status_code=response.status_code,
                code=code,
            )
            raise StoreError(code, message)
        return response

    # Reads

    async def get(self, path: str) -> DocumentSnapshot:
        response = await self._request("GET", self._name(path))
        if response is None:
            return DocumentSnapshot(path=path)
        return DocumentSnapshot(path=path, data=decode_fields(response.json().get("fields", {})))

    def structured_query(self, query: Query) -> tuple[str, dict[str, Any]]:
        """Translate a query into its parent document name and ``structuredQuery``."""
        parent, _, collection_id = query.collection.rpartition("/")
        body: dict[str, Any] = {"from": [{"collectionId": collection_id}]}

        filters = [self._filter(f) for f in query.filters]
        if len(filters) == 1:
            body["where"] = filters[0]
        elif filters:
            body["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
        if query.order_by:
            body["orderBy"] = [
                {
                    "field": {"fieldPath": field_path(order.field)},
                    "direction": (
                        "DESCENDING" if order.direction == Direction.DESCENDING else "ASCENDING"
                    ),
                }
                for order in query.order_by
            ]
        if query.limit is not None:
            body["limit"] = query.limit
        return self._name(parent), body

    @staticmethod
    def _filter(flt: FieldFilter) -> dict[str, Any]:
        if flt.value is None and flt.op in (FilterOp.EQ, FilterOp.NE):
            op = "IS_NULL" if flt.op == FilterOp.EQ else "IS_NOT_NULL"
            return {"unaryFilter": {"field": {"fieldPath": field_path(flt.field)}, "op": op}}
        return {
            "fieldFilter": {
                "field": {"fieldPath": field_path(flt.field)},
                "op": OPERATORS[flt.op],
                "value": encode_value(flt.value),
            }
        }

    async def run_query(self, query: Query) -> QuerySnapshot:
        """Run a query once.

        Raises:
            StoreError: If the query fails
        """
        parent, structured = self.structured_query(query)
        response = await self._request(
            "POST", f"{parent}:runQuery", json={"structuredQuery": structured}
        )
        documents = tuple(
            DocumentSnapshot(
                path=self._path(row["document"]["name"]),
                data=decode_fields(row["document"].get("fields", {})),
            )
            for row in response.json()
            if "document" in row
        )
        return QuerySnapshot(query=query, documents=documents)

    # Writes

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        await self.write_batch([WriteOp.set(path, data, merge=merge)])

    async def delete(self, path: str) -> None:
        await self.write_batch([WriteOp.delete(path)])

    def _write(self, op: WriteOp) -> dict[str, Any]:
        if op.kind == WriteKind.DELETE:
            return {"delete": self._name(op.path)}

        data = op.data or {}
        write: dict[str, Any] = {
            "update": {
                "name": self._name(op.path),
                "fields": encode_fields(_strip_server_timestamps(data)),
            }
        }
        if op.merge:
            write["updateMask"] = {
                "fieldPaths": [
                    field_path(key) for key, value in data.items() if value is not SERVER_TIMESTAMP
                ]
            }
        stamps = _server_timestamp_paths(data)
        if stamps:
            write["updateTransforms"] = [
                {"fieldPath": path, "setToServerValue": "REQUEST_TIME"} for path in stamps
            ]
        return write

    async def write_batch(self, ops: Sequence[WriteOp]) -> None:
        if not ops:
            return
        await self._request(
            "POST", f"{self.root}:commit", json={"writes": [self._write(op) for op in ops]}
        )

    def allocate_id(self) -> str:
        return uuid4().hex[:20]

    # Subscriptions

    def watch(
        self,
        query: Query,
        on_next: QueryListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        return self._poll(
            lambda: self.run_query(query),
            lambda snapshot: snapshot.documents,
            on_next,
            on_error,
            label=query.collection,
        )

    def watch_document(
        self,
        path: str,
        on_next: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        return self._poll(
            lambda: self.get(path),
            lambda snapshot: snapshot,
            on_next,
            on_error,
            label=path,
        )

    def _poll(
        self,
        read: Callable[[], Awaitable[Any]],
        key: Callable[[Any], Any],
        on_next: Callable[[Any], None],
        on_error: ErrorListener | None,
        label: str,
    ) -> Unsubscribe:
        async def run() -> None:
            last: Any = None
            delivered = False
            while True:
                try:
                    snapshot = await read()
                except StoreError as e:
                    if on_error is None:
                        logfire.warn("Unhandled subscription error", path=label, error=str(e))
                    else:
                        on_error(e)
                    return
                current = key(snapshot)
                if not delivered or current != last:
                    delivered = True
                    last = current
                    on_next(snapshot)
                await asyncio.sleep(self.poll_interval)

        task = asyncio.get_running_loop().create_task(run())
        self._polls.add(task)
        task.add_done_callback(self._polls.discard)
        return Unsubscribe(task.cancel)

    async def close(self) -> None:
        """Stop every live subscription."""
        polls = list(self._polls)
        for task in polls:
            task.cancel()
        await asyncio.gather(*polls, return_exceptions=True)
