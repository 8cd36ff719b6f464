"""Read-state tracking: watermarks and channel indicators."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.application.services.timeline_store import TimelineStore
from chatsync.domain.entities import ChannelIndicator, Event, ReadWatermark
from chatsync.domain.entities.event import EventType
from chatsync.domain.services.clock import Clock
from chatsync.domain.services.indicators import (
    derive_channel_indicator,
    derive_indicators,
)
from chatsync.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class ReadStateTracker:
    """Tracks per-channel read watermarks and derives unread/mention flags.

    Watermarks are session scoped (nothing is persisted) and only move
    forward. Switching channels stamps both the channel being left and the
    channel being entered, so messages seen while a channel was active do not
    flag it after the user leaves.

    Indicators are recomputed for one channel on TIMELINE_CHANGED and for all
    channels on every visit. The derivation itself lives in
    ``chatsync.domain.services.indicators``.
    """

    def __init__(
        self,
        timeline: TimelineStore,
        identity: IdentityResolver,
        clock: Clock,
        horizon: timedelta | None = timedelta(minutes=10),
        channel_ids: Iterable[str] = (),
    ) -> None:
        """Initialize the tracker.

        Args:
            timeline: Timeline store to read snapshots from.
            identity: Resolves the current user's display name.
            clock: Source of visit times.
            horizon: Recency bound for indicator computation (None: unbounded).
            channel_ids: Channels to track even before they hold messages.
        """
        self._timeline = timeline
        self._identity = identity
        self._clock = clock
        self._horizon = horizon
        self._channel_ids: set[str] = set(channel_ids)
        self._watermarks: dict[str, datetime] = {}
        self._active_channel_id: str | None = None
        self._indicators: dict[str, ChannelIndicator] = {}

    @property
    def active_channel_id(self) -> str | None:
        """Channel currently being viewed."""
        return self._active_channel_id

    @property
    def indicators(self) -> dict[str, ChannelIndicator]:
        """Latest indicators of every tracked channel."""
        return dict(self._indicators)

    def indicator(self, channel_id: str) -> ChannelIndicator:
        """Latest indicator of a channel."""
        return self._indicators.get(channel_id, ChannelIndicator(channel_id=channel_id))

    def watermark(self, channel_id: str) -> ReadWatermark | None:
        """Watermark of a channel (None if never visited)."""
        visited_at = self._watermarks.get(channel_id)
        if visited_at is None:
            return None
        return ReadWatermark(channel_id=channel_id, visited_at=visited_at)

    def track(self, channel_id: str) -> None:
        """Start tracking a channel that may not hold messages yet."""
        self._channel_ids.add(channel_id)

    async def visit(self, channel_id: str) -> None:
        """Activate a channel.

        Args:
            channel_id: Channel the user switched to.
        """
        now = self._clock.now()
        previous = self._active_channel_id
        if previous is not None and previous != channel_id:
            self._advance(previous, now)
        self._advance(channel_id, now)
        self._active_channel_id = channel_id
        self._channel_ids.add(channel_id)
        logger.debug("Visited channel %s at %s", channel_id, now.isoformat())
        await self.refresh()

    async def refresh(self) -> dict[str, ChannelIndicator]:
        """Recompute the indicators of every channel.

        Returns:
            Channel ID -> indicator.
        """
        display_name = await self._identity.resolve()
        self._indicators = derive_indicators(
            self._timeline.snapshots(),
            self._watermarks,
            active_channel_id=self._active_channel_id,
            current_user_id=self._identity.current_user_id,
            display_name=display_name,
            now=self._clock.now(),
            horizon=self._horizon,
            channel_ids=self._channel_ids,
        )
        return self.indicators

    async def refresh_channel(self, channel_id: str) -> ChannelIndicator:
        """Recompute the indicator of a single channel.

        Args:
            channel_id: Channel whose timeline changed.

        Returns:
            The new indicator.
        """
        display_name = await self._identity.resolve()
        indicator = derive_channel_indicator(
            channel_id,
            self._timeline.snapshot(channel_id),
            watermark=self._watermarks.get(channel_id),
            is_active=channel_id == self._active_channel_id,
            current_user_id=self._identity.current_user_id,
            display_name=display_name,
            now=self._clock.now(),
            horizon=self._horizon,
        )
        previous = self._indicators.get(channel_id)
        self._indicators[channel_id] = indicator
        self._channel_ids.add(channel_id)
        if previous is None or previous.level != indicator.level:
            logger.debug("Channel %s indicator: %s", channel_id, indicator.level.value)
        return indicator

    @event_handler(EventType.TIMELINE_CHANGED)
    async def handle_timeline_changed(self, event: Event) -> None:
        """Handle TIMELINE_CHANGED events.

        Args:
            event: The TIMELINE_CHANGED event.
        """
        await self.refresh_channel(event.payload["channel_id"])

    def _advance(self, channel_id: str, now: datetime) -> None:
        current = self._watermarks.get(channel_id)
        if current is None or now > current:
            self._watermarks[channel_id] = now
