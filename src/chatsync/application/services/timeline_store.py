"""Per-channel ordered timeline of messages."""

import bisect
import dataclasses
import logging

from chatsync.domain.entities import (
    DocumentChange,
    Event,
    EventType,
    Message,
    MessagePhase,
    TimelineDiff,
)
from chatsync.infrastructure.events.dispatcher import EventDispatcher
from chatsync.infrastructure.feed.normalizer import ChangeNormalizer

logger = logging.getLogger(__name__)


class TimelineStore:
    """Turns the unordered change feed into stable per-channel timelines.

    For each channel the store keeps:
    - confirmed messages sorted by (created_at, id), whatever the arrival order
    - pending messages in a side buffer, shown after the confirmed ones in
      the order they were submitted

    A pending entry is replaced in place by its confirmed counterpart (same
    ID), never duplicated. A confirmed message is never demoted back to
    pending by a later snapshot that lacks the timestamp.

    The store only knows the window the feed delivered: a missing ID means
    "not loaded", not "does not exist".

    Every effective change is published through the dispatcher:
    TIMELINE_CHANGED (payload: channel_id, diff), MESSAGE_CONFIRMED when a
    confirmed message appears or its text changes (payload: message, is_new)
    and MESSAGE_REMOVED (payload: message_id, channel_id). is_new is False
    when an already confirmed message only changed its text.
    """

    def __init__(
        self,
        normalizer: ChangeNormalizer,
        dispatcher: EventDispatcher | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            normalizer: Converts raw snapshots into messages.
            dispatcher: Receives timeline events (optional).
        """
        self._normalizer = normalizer
        self._dispatcher = dispatcher
        self._confirmed: dict[str, list[Message]] = {}
        self._pending: dict[str, dict[str, Message]] = {}
        # message_id -> channel_id of the entry currently held
        self._locations: dict[str, str] = {}
        # Cached snapshots, dropped whenever the channel changes
        self._snapshots: dict[str, tuple[Message, ...]] = {}

    # --- reads ------------------------------------------------------------

    def snapshot(self, channel_id: str) -> tuple[Message, ...]:
        """Get the rendered sequence of a channel.

        The same tuple object is returned until the channel changes, so
        consumers can detect changes by identity.

        Args:
            channel_id: Channel ID.

        Returns:
            Confirmed messages in order, then pending messages.
        """
        cached = self._snapshots.get(channel_id)
        if cached is not None:
            return cached
        snapshot = tuple(self._confirmed.get(channel_id, ())) + tuple(
            self._pending.get(channel_id, {}).values()
        )
        self._snapshots[channel_id] = snapshot
        return snapshot

    def snapshots(self) -> dict[str, tuple[Message, ...]]:
        """Get snapshots of every channel holding messages."""
        return {
            channel_id: self.snapshot(channel_id) for channel_id in self.channel_ids()
        }

    def channel_ids(self) -> list[str]:
        """Get the IDs of channels that currently hold messages."""
        return sorted(set(self._locations.values()))

    def get(self, message_id: str) -> Message | None:
        """Find a loaded message by ID.

        Returns:
            The message, or None if it is not in the loaded window.
        """
        channel_id = self._locations.get(message_id)
        if channel_id is None:
            return None
        pending = self._pending.get(channel_id, {}).get(message_id)
        if pending is not None:
            return pending
        for message in self._confirmed.get(channel_id, ()):
            if message.id == message_id:
                return message
        return None

    def is_loaded(self, message_id: str) -> bool:
        """Check if a message is in the loaded window."""
        return message_id in self._locations

    # --- writes -----------------------------------------------------------

    async def ingest(self, change: DocumentChange) -> list[TimelineDiff]:
        """Apply one feed change.

        Args:
            change: Raw change from the feed.

        Returns:
            Diffs of the affected channels (empty if nothing changed).
        """
        if change.is_removal:
            return await self.remove(change.id)

        message = self._normalizer.normalize(change.id, change.data)
        existing = self.get(message.id)

        if existing is not None and not existing.is_pending and message.is_pending:
            logger.debug("Keeping confirmed timestamp of %s", message.id)
            message = dataclasses.replace(
                message, phase=MessagePhase.CONFIRMED, created_at=existing.created_at
            )

        if existing == message:
            logger.debug("Ignoring duplicate snapshot of %s", message.id)
            return []

        is_new = existing is None or existing.is_pending
        text_changed = existing is not None and existing.text != message.text
        diffs: list[TimelineDiff] = []
        if existing is not None and existing.channel_id != message.channel_id:
            logger.info(
                "Message %s moved from %s to %s",
                message.id,
                existing.channel_id,
                message.channel_id,
            )
            self._discard(existing)
            diffs.append(
                TimelineDiff(channel_id=existing.channel_id, removed=(existing.id,))
            )
            existing = None

        self._place(message, existing)
        if existing is None:
            diffs.append(TimelineDiff(channel_id=message.channel_id, added=(message,)))
        else:
            diffs.append(
                TimelineDiff(channel_id=message.channel_id, updated=(message,))
            )

        newly_confirmed = not message.is_pending and (is_new or text_changed)

        for diff in diffs:
            await self._publish(
                EventType.TIMELINE_CHANGED,
                {"channel_id": diff.channel_id, "diff": diff},
            )
        if newly_confirmed:
            await self._publish(
                EventType.MESSAGE_CONFIRMED, {"message": message, "is_new": is_new}
            )
        return diffs

    async def remove(self, message_id: str) -> list[TimelineDiff]:
        """Remove a message from its timeline.

        Removing an unknown ID is a no-op.

        Args:
            message_id: Message ID.

        Returns:
            Diff of the affected channel (empty if the ID was unknown).
        """
        existing = self.get(message_id)
        if existing is None:
            logger.debug("Remove of unknown message %s ignored", message_id)
            return []

        self._discard(existing)
        diff = TimelineDiff(channel_id=existing.channel_id, removed=(message_id,))
        await self._publish(
            EventType.TIMELINE_CHANGED, {"channel_id": diff.channel_id, "diff": diff}
        )
        await self._publish(
            EventType.MESSAGE_REMOVED,
            {"message_id": message_id, "channel_id": existing.channel_id},
        )
        return [diff]

    # --- internals --------------------------------------------------------

    def _place(self, message: Message, existing: Message | None) -> None:
        channel_id = message.channel_id
        pending = self._pending.setdefault(channel_id, {})

        if message.is_pending and existing is not None and existing.is_pending:
            # Keep the submission position of the pending entry
            pending[message.id] = message
        else:
            if existing is not None:
                self._discard(existing)
            if message.is_pending:
                pending[message.id] = message
            else:
                bisect.insort(
                    self._confirmed.setdefault(channel_id, []),
                    message,
                    key=Message.sort_key,
                )

        self._locations[message.id] = channel_id
        self._snapshots.pop(channel_id, None)

    def _discard(self, message: Message) -> None:
        channel_id = message.channel_id
        self._pending.get(channel_id, {}).pop(message.id, None)
        confirmed = self._confirmed.get(channel_id, [])
        self._confirmed[channel_id] = [m for m in confirmed if m.id != message.id]
        self._locations.pop(message.id, None)
        self._snapshots.pop(channel_id, None)

    async def _publish(self, event_type: EventType, payload: dict) -> None:
        if self._dispatcher is None:
            return
        await self._dispatcher.dispatch(Event(type=event_type, payload=payload))
