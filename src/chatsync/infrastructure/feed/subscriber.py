"""Feed subscriber pumping store changes into the change queue."""

import asyncio
import logging

from chatsync.domain.entities import FeedQuery
from chatsync.domain.repositories import DocumentStore
from chatsync.infrastructure.events.queue import ChangeQueue

logger = logging.getLogger(__name__)


class FeedSubscriber:
    """Subscribes to a collection and enqueues every delivered change."""

    def __init__(
        self, store: DocumentStore, queue: ChangeQueue, query: FeedQuery
    ) -> None:
        self._store = store
        self._queue = queue
        self._query = query
        self._received = 0

    @property
    def received_count(self) -> int:
        """Number of changes received since start."""
        return self._received

    async def run(self) -> None:
        """Consume the subscription until it ends or the task is cancelled."""
        logger.info(
            "Subscribing to %s (order_by=%s, limit=%s)",
            self._query.collection,
            self._query.order_by,
            self._query.limit,
        )
        try:
            async for change in self._store.subscribe(self._query):
                self._received += 1
                await self._queue.enqueue(change)
        except asyncio.CancelledError:
            logger.info("Subscription to %s cancelled", self._query.collection)
            raise
        logger.info("Subscription to %s ended", self._query.collection)
