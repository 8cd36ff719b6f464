"""Coalescing queue for document changes."""

import asyncio
import logging

from chatsync.domain.entities import DocumentChange

logger = logging.getLogger(__name__)


class ChangeQueue:
    """In-memory queue of feed changes with per-document coalescing.

    The feed delivers whole document snapshots, so a newer change for a
    document subsumes any older one still waiting. When a change for a
    document that is already queued arrives, the older one is dropped at
    dequeue time and only the newest is delivered.
    """

    def __init__(self) -> None:
        """Initialize the queue."""
        self._queue: asyncio.Queue[DocumentChange] = asyncio.Queue()
        # Latest change waiting per document (document_id -> DocumentChange)
        self._pending: dict[str, DocumentChange] = {}

    async def enqueue(self, change: DocumentChange) -> None:
        """Add a change to the queue.

        Args:
            change: The change to enqueue.
        """
        if change.id in self._pending:
            logger.debug(
                "Coalescing change for %s: %s -> %s",
                change.id,
                self._pending[change.id].change_type.value,
                change.change_type.value,
            )
        self._pending[change.id] = change
        await self._queue.put(change)

    async def dequeue(self) -> DocumentChange:
        """Get the next change, skipping superseded ones.

        Blocks until a change is available.

        Returns:
            The newest pending change of the next document.
        """
        while True:
            change = await self._queue.get()
            current = self._pending.get(change.id)
            if current is change:
                del self._pending[change.id]
                return change
            # Superseded by a newer snapshot or cleared
            self._queue.task_done()

    def mark_done(self) -> None:
        """Mark the last dequeued change as processed."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every delivered change has been marked done."""
        await self._queue.join()

    @property
    def pending_count(self) -> int:
        """Number of documents with a change waiting."""
        return len(self._pending)

    def clear(self) -> None:
        """Drop all waiting changes."""
        self._pending.clear()
        logger.info("ChangeQueue cleared")
