"""Typing presence: publishing local typing and viewing remote typing."""

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import Any

from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.domain.entities import DocumentChange, FeedQuery, TypingRecord
from chatsync.domain.entities.typing_record import typing_document_id
from chatsync.domain.repositories import DocumentStore
from chatsync.domain.services.clock import Clock
from chatsync.domain.services.typing_filter import visible_typists
from chatsync.infrastructure.feed.datetime_utils import coerce_timestamp

logger = logging.getLogger(__name__)


class TypingPublisher:
    """Publishes the local user's typing records.

    One record is published per keystroke burst. A burst ends after
    ``idle_seconds`` without keystrokes or when a message is sent; the
    record is then retracted. Retraction failures are only logged: viewers
    drop stale records by TTL anyway.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityResolver,
        clock: Clock,
        idle_seconds: float = 3.0,
    ) -> None:
        """Initialize the publisher.

        Args:
            store: Typing collection.
            identity: Resolves the name shown to other users.
            clock: Source of record timestamps.
            idle_seconds: Inactivity that ends a burst.
        """
        self._store = store
        self._identity = identity
        self._clock = clock
        self._idle_seconds = idle_seconds
        # channel_id -> idle timer of the running burst
        self._bursts: dict[str, asyncio.Task[None]] = {}
        self._live = True

    @property
    def active_channels(self) -> list[str]:
        """Channels with a running keystroke burst."""
        return sorted(self._bursts)

    async def keystroke(self, channel_id: str) -> None:
        """Register a keystroke in a channel.

        Args:
            channel_id: Channel whose input box received the keystroke.
        """
        if not self._live:
            return
        new_burst = channel_id not in self._bursts
        self._restart_timer(channel_id)
        if new_burst:
            await self._publish(channel_id)

    async def message_sent(self, channel_id: str) -> None:
        """End the burst of a channel because a message was sent."""
        timer = self._bursts.pop(channel_id, None)
        if timer is None:
            return
        timer.cancel()
        await self._retract(channel_id)

    async def close(self) -> None:
        """Stop publishing, release timers and retract running bursts."""
        self._live = False
        bursts = list(self._bursts.items())
        self._bursts.clear()
        for channel_id, timer in bursts:
            timer.cancel()
            await self._retract(channel_id)

    def _restart_timer(self, channel_id: str) -> None:
        previous = self._bursts.get(channel_id)
        if previous is not None:
            previous.cancel()
        self._bursts[channel_id] = asyncio.create_task(self._idle_timer(channel_id))

    async def _idle_timer(self, channel_id: str) -> None:
        await asyncio.sleep(self._idle_seconds)
        current = asyncio.current_task()
        # A timer that was replaced or outlived the publisher must not act
        if not self._live or self._bursts.get(channel_id) is not current:
            return
        del self._bursts[channel_id]
        await self._retract(channel_id)

    async def _publish(self, channel_id: str) -> None:
        user_id = self._identity.current_user_id
        try:
            display_name = await self._identity.resolve()
            await self._store.set(
                typing_document_id(channel_id, user_id),
                {
                    "channelId": channel_id,
                    "userId": user_id,
                    "displayName": display_name,
                    "timestamp": self._clock.now(),
                },
            )
        except Exception as e:
            logger.warning("Failed to publish typing in %s: %s", channel_id, e)

    async def _retract(self, channel_id: str) -> None:
        user_id = self._identity.current_user_id
        try:
            await self._store.delete(typing_document_id(channel_id, user_id))
        except Exception as e:
            logger.warning("Failed to retract typing in %s: %s", channel_id, e)


def parse_typing_record(data: dict[str, Any]) -> TypingRecord | None:
    """Build a TypingRecord from raw document fields.

    Returns:
        The record, or None if a required field is missing.
    """
    timestamp = coerce_timestamp(data.get("timestamp"))
    channel_id = data.get("channelId")
    user_id = data.get("userId")
    if timestamp is None or not channel_id or not user_id:
        return None
    return TypingRecord(
        channel_id=str(channel_id),
        user_id=str(user_id),
        display_name=str(data.get("displayName") or ""),
        timestamp=timestamp,
    )


class TypingPresenceView:
    """Who is typing in the channel being viewed.

    Consumes the typing collection feed while started. After ``stop()``
    the subscription is cancelled and late changes are ignored.
    """

    def __init__(
        self,
        store: DocumentStore,
        query: FeedQuery,
        channel_id: str,
        self_user_id: str,
        clock: Clock,
        ttl: timedelta = timedelta(seconds=5),
    ) -> None:
        """Initialize the view.

        Args:
            store: Typing collection.
            query: Subscription query for the typing collection.
            channel_id: Channel being viewed.
            self_user_id: Viewer's user ID.
            clock: Source of evaluation time.
            ttl: Records older than this are treated as absent.
        """
        self._store = store
        self._query = query
        self._channel_id = channel_id
        self._self_user_id = self_user_id
        self._clock = clock
        self._ttl = ttl
        self._records: dict[tuple[str, str], TypingRecord] = {}
        self._task: asyncio.Task[None] | None = None
        self._live = False

    @property
    def channel_id(self) -> str:
        """Channel being viewed."""
        return self._channel_id

    @property
    def is_live(self) -> bool:
        """Check if the view is consuming its subscription."""
        return self._live

    def start(self) -> None:
        """Start consuming the typing feed."""
        if self._live:
            logger.warning(
                "TypingPresenceView for %s already started", self._channel_id
            )
            return
        self._live = True
        self._task = asyncio.create_task(self._consume())

    async def stop(self) -> None:
        """Stop consuming and drop every record."""
        self._live = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._records.clear()

    def apply(self, change: DocumentChange) -> None:
        """Apply one typing feed change.

        Args:
            change: Change from the typing collection.
        """
        if not self._live:
            return
        record = parse_typing_record(change.data)
        if change.is_removal:
            if record is not None:
                self._records.pop(record.key, None)
            else:
                self._drop_document(change.id)
            return
        if record is None:
            logger.debug("Ignoring malformed typing record %s", change.id)
            return
        self._records[record.key] = record

    def typists(self) -> list[TypingRecord]:
        """Records to show right now (other users, this channel, not expired)."""
        return visible_typists(
            self._records.values(),
            channel_id=self._channel_id,
            self_user_id=self._self_user_id,
            now=self._clock.now(),
            ttl=self._ttl,
        )

    async def _consume(self) -> None:
        async for change in self._store.subscribe(self._query):
            if not self._live:
                break
            self.apply(change)

    def _drop_document(self, document_id: str) -> None:
        for key, record in list(self._records.items()):
            if record.document_id == document_id:
                del self._records[key]
