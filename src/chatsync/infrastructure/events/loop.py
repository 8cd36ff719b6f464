"""Feed processing loop."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from chatsync.domain.entities import DocumentChange
from chatsync.infrastructure.events.queue import ChangeQueue

logger = logging.getLogger(__name__)

ChangeConsumer = Callable[[DocumentChange], Awaitable[object]]


class FeedLoop:
    """Change processing loop.

    Continuously dequeues changes and hands them to the consumer.
    Changes are processed sequentially (one at a time), so each one runs
    to completion before the next is dispatched.
    """

    def __init__(self, queue: ChangeQueue, consumer: ChangeConsumer) -> None:
        """Initialize the feed loop.

        Args:
            queue: The change queue to read from.
            consumer: Coroutine applying one change (e.g. TimelineStore.ingest).
        """
        self._queue = queue
        self._consumer = consumer
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def start(self) -> None:
        """Start the loop.

        This method runs until stop() is called.
        """
        if not self._stop_event.is_set():
            logger.warning("FeedLoop already running")
            return

        self._stop_event.clear()
        logger.info("FeedLoop started")

        while not self._stop_event.is_set():
            try:
                # Use a timeout to periodically check stop_event
                try:
                    change = await asyncio.wait_for(
                        self._queue.dequeue(),
                        timeout=1.0,
                    )
                except asyncio.TimeoutError:
                    continue

                logger.debug(
                    "Processing change: id=%s, type=%s",
                    change.id,
                    change.change_type.value,
                )
                try:
                    await self._consumer(change)
                except Exception:
                    # One bad change must not stop the feed
                    logger.exception("Error applying change %s", change.id)
                finally:
                    self._queue.mark_done()

            except asyncio.CancelledError:
                break

        logger.info("FeedLoop stopped")

    async def stop(self) -> None:
        """Stop the loop."""
        logger.info("Stopping FeedLoop")
        self._stop_event.set()
        self._queue.clear()

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return not self._stop_event.is_set()
