"""Tests for FeedLoop."""

import asyncio

import pytest

from chatsync.domain.entities import DocumentChange
from chatsync.infrastructure.events.loop import FeedLoop
from chatsync.infrastructure.events.queue import ChangeQueue


class TestFeedLoop:
    """Tests for FeedLoop."""

    @pytest.fixture
    def queue(self) -> ChangeQueue:
        """Create a ChangeQueue instance."""
        return ChangeQueue()

    @pytest.fixture
    def received(self) -> list[DocumentChange]:
        """Changes seen by the consumer."""
        return []

    @pytest.fixture
    def loop(self, queue: ChangeQueue, received: list[DocumentChange]) -> FeedLoop:
        """Create a FeedLoop instance with a recording consumer."""

        async def consumer(change: DocumentChange) -> None:
            received.append(change)

        return FeedLoop(queue, consumer)

    async def test_is_running_initially_false(self, loop: FeedLoop) -> None:
        """Test that is_running is False initially."""
        assert not loop.is_running

    async def test_start_and_stop(self, loop: FeedLoop) -> None:
        """Test that start sets is_running and stop clears it."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)
        assert loop.is_running

        await loop.stop()
        await task

        assert not loop.is_running

    async def test_processes_changes(
        self,
        loop: FeedLoop,
        queue: ChangeQueue,
        received: list[DocumentChange],
    ) -> None:
        """Test that changes reach the consumer."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        change = DocumentChange(id="m1", data={"text": "hi"})
        await queue.enqueue(change)
        await queue.join()

        await loop.stop()
        await task

        assert received == [change]

    async def test_processes_changes_sequentially(self, queue: ChangeQueue) -> None:
        """Test that one change finishes before the next starts."""
        events: list[str] = []

        async def consumer(change: DocumentChange) -> None:
            events.append(f"start:{change.id}")
            await asyncio.sleep(0.02)
            events.append(f"end:{change.id}")

        loop = FeedLoop(queue, consumer)
        task = asyncio.create_task(loop.start())

        await queue.enqueue(DocumentChange(id="m1"))
        await queue.enqueue(DocumentChange(id="m2"))
        await queue.join()

        await loop.stop()
        await task

        assert events == ["start:m1", "end:m1", "start:m2", "end:m2"]

    async def test_consumer_error_does_not_stop_loop(
        self, queue: ChangeQueue, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a failing change is logged and the loop continues."""
        received: list[str] = []

        async def consumer(change: DocumentChange) -> None:
            if change.id == "bad":
                raise RuntimeError("broken snapshot")
            received.append(change.id)

        loop = FeedLoop(queue, consumer)
        task = asyncio.create_task(loop.start())

        await queue.enqueue(DocumentChange(id="bad"))
        await queue.enqueue(DocumentChange(id="good"))
        await queue.join()

        await loop.stop()
        await task

        assert received == ["good"]
        assert "Error applying change bad" in caplog.text
