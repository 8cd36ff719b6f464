"""In-memory document store.

Reference implementation of the DocumentStore protocol for tests and local
development. It mimics the parts of a hosted document store the engine
relies on: store-assigned IDs, server timestamps that may be acknowledged
late, live snapshot subscriptions and atomic batch deletes.
"""

import asyncio
import copy
import logging
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from chatsync.domain.entities import ChangeType, DocumentChange, FeedQuery
from chatsync.domain.exceptions import DocumentNotFoundError
from chatsync.domain.repositories import SERVER_TIMESTAMP
from chatsync.domain.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Single-collection in-memory store.

    With ``auto_acknowledge=False`` fields written as SERVER_TIMESTAMP stay
    unset (delivered as None) until ``acknowledge()`` is awaited, the way a
    latency-compensated client sees its own writes before the server does.
    """

    def __init__(
        self,
        name: str = "documents",
        clock: Clock | None = None,
        auto_acknowledge: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            name: Collection name (for logging).
            clock: Source of server timestamps.
            auto_acknowledge: Stamp server timestamps immediately on write.
        """
        self.name = name
        self._clock = clock or SystemClock()
        self._auto_acknowledge = auto_acknowledge
        self._documents: dict[str, dict[str, Any]] = {}
        # Document ID -> field names still waiting for a server timestamp
        self._unacknowledged: dict[str, set[str]] = {}
        self._subscribers: list[asyncio.Queue[DocumentChange]] = []
        self._failures: list[Exception] = []
        self._last_stamp: datetime | None = None

    # --- test helpers -----------------------------------------------------

    def fail_next(self, error: Exception) -> None:
        """Make the next mutating call raise ``error`` without applying."""
        self._failures.append(error)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Copy of every stored document (ID -> fields)."""
        return {doc_id: self._visible(doc_id) for doc_id in self._documents}

    @property
    def subscriber_count(self) -> int:
        """Number of live subscriptions."""
        return len(self._subscribers)

    async def acknowledge(self) -> None:
        """Stamp every pending server timestamp and emit the confirmations."""
        pending = list(self._unacknowledged.items())
        self._unacknowledged.clear()
        for doc_id, fields in pending:
            document = self._documents.get(doc_id)
            if document is None:
                continue
            stamp = self._next_stamp()
            for name in fields:
                document[name] = stamp
            self._emit(doc_id, ChangeType.MODIFIED)

    # --- DocumentStore ----------------------------------------------------

    async def subscribe(self, query: FeedQuery) -> AsyncIterator[DocumentChange]:
        """Yield the current window, then every later change."""
        queue: asyncio.Queue[DocumentChange] = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            for doc_id in self._initial_window(query):
                yield DocumentChange(
                    id=doc_id, data=self._visible(doc_id), change_type=ChangeType.ADDED
                )
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    async def get(self, document_id: str) -> dict[str, Any] | None:
        if document_id not in self._documents:
            return None
        return self._visible(document_id)

    async def find(self, where: Mapping[str, Any]) -> list[tuple[str, dict[str, Any]]]:
        results = []
        for doc_id, document in self._documents.items():
            if all(document.get(key) == value for key, value in where.items()):
                results.append((doc_id, self._visible(doc_id)))
        return results

    async def add(self, document: Mapping[str, Any]) -> str:
        self._raise_injected_failure()
        doc_id = uuid.uuid4().hex
        self._write(doc_id, dict(document))
        self._emit(doc_id, ChangeType.ADDED)
        return doc_id

    async def set(self, document_id: str, document: Mapping[str, Any]) -> None:
        self._raise_injected_failure()
        existed = document_id in self._documents
        self._unacknowledged.pop(document_id, None)
        self._write(document_id, dict(document))
        self._emit(document_id, ChangeType.MODIFIED if existed else ChangeType.ADDED)

    async def update(self, document_id: str, fields: Mapping[str, Any]) -> None:
        self._raise_injected_failure()
        if document_id not in self._documents:
            raise DocumentNotFoundError(document_id)
        merged = {**self._documents[document_id], **fields}
        self._write(document_id, merged, changed=fields.keys())
        self._emit(document_id, ChangeType.MODIFIED)

    async def delete(self, document_id: str) -> None:
        self._raise_injected_failure()
        self._remove(document_id)

    async def batch_delete(self, document_ids: Sequence[str]) -> None:
        # Failure check happens before any removal: all-or-nothing
        self._raise_injected_failure()
        for doc_id in document_ids:
            self._remove(doc_id)
        logger.debug("Batch deleted %d documents from %s", len(document_ids), self.name)

    # --- internals --------------------------------------------------------

    def _raise_injected_failure(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    def _next_stamp(self) -> datetime:
        stamp = self._clock.now()
        if self._last_stamp is not None and stamp <= self._last_stamp:
            stamp = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = stamp
        return stamp

    def _write(
        self,
        doc_id: str,
        document: dict[str, Any],
        changed: Any = None,
    ) -> None:
        names = set(document) if changed is None else set(changed)
        pending = {
            name for name in names if document.get(name) is SERVER_TIMESTAMP
        }
        if pending and self._auto_acknowledge:
            stamp = self._next_stamp()
            for name in pending:
                document[name] = stamp
        elif pending:
            self._unacknowledged.setdefault(doc_id, set()).update(pending)
        self._documents[doc_id] = document

    def _remove(self, doc_id: str) -> None:
        if doc_id not in self._documents:
            return
        data = self._visible(doc_id)
        del self._documents[doc_id]
        self._unacknowledged.pop(doc_id, None)
        self._broadcast(
            DocumentChange(id=doc_id, data=data, change_type=ChangeType.REMOVED)
        )

    def _visible(self, doc_id: str) -> dict[str, Any]:
        """Document as readers see it: unacknowledged stamps read as None."""
        document = copy.deepcopy(self._documents[doc_id])
        for name, value in document.items():
            if value is SERVER_TIMESTAMP:
                document[name] = None
        return document

    def _initial_window(self, query: FeedQuery) -> list[str]:
        def order(doc_id: str) -> tuple[int, Any, str]:
            value = self._documents[doc_id].get(query.order_by)
            if isinstance(value, datetime):
                return (0, value, doc_id)
            # Unstamped documents sort after stamped ones
            return (1, 0, doc_id)

        ordered = sorted(self._documents, key=order)
        if query.limit is not None:
            ordered = ordered[-query.limit :]
        return ordered

    def _emit(self, doc_id: str, change_type: ChangeType) -> None:
        self._broadcast(
            DocumentChange(
                id=doc_id, data=self._visible(doc_id), change_type=change_type
            )
        )

    def _broadcast(self, change: DocumentChange) -> None:
        for queue in self._subscribers:
            queue.put_nowait(change)
