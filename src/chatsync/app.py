"""Composition root: wires the synchronization engine for one session."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta

from chatsync.application.services import (
    ChannelAdmin,
    IdentityResolver,
    MessageComposer,
    MutationReconciler,
    NotificationDispatcher,
    PlayedNotificationLog,
    ProfanityFilter,
    ProfanityModerator,
    ReadStateTracker,
    TimelineStore,
    TypingPresenceView,
    TypingPublisher,
)
from chatsync.config import Config, LoggingConfig
from chatsync.domain.entities import AuthSession, FeedQuery, Message, TypingRecord
from chatsync.domain.repositories import DocumentStore
from chatsync.domain.services.clock import Clock, SystemClock
from chatsync.domain.services.protocols import (
    AudioOutput,
    ProfileLookup,
    UploadProvider,
)
from chatsync.infrastructure.events import ChangeQueue, EventDispatcher, FeedLoop
from chatsync.infrastructure.feed import ChangeNormalizer, FeedSubscriber

logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    # Get root logger
    root_logger = logging.getLogger()

    # Set root level
    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    # Update handler format if specified
    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    # Configure individual loggers
    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_logger = logging.getLogger(logger_name)
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            individual_logger.setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


@dataclass
class StoreCollections:
    """Collections of the document store used by a session."""

    messages: DocumentStore
    channels: DocumentStore
    servers: DocumentStore
    typing: DocumentStore
    banned: DocumentStore


class ChatSession:
    """One signed-in client session.

    Data flow: message feed -> ChangeQueue -> FeedLoop -> TimelineStore,
    whose events reach the ReadStateTracker, the NotificationDispatcher and,
    when enabled, the ProfanityModerator. Mutations go to the store and come
    back through the same feed.
    """

    def __init__(
        self,
        config: Config,
        session: AuthSession,
        collections: StoreCollections,
        audio: AudioOutput,
        profiles: ProfileLookup | None = None,
        uploads: UploadProvider | None = None,
        clock: Clock | None = None,
        played: PlayedNotificationLog | None = None,
    ) -> None:
        """Build every component of the session.

        Args:
            config: Application configuration.
            session: Signed-in user.
            collections: Store collections.
            audio: Audio output for mention cues.
            profiles: Profile lookup for stored usernames (optional).
            uploads: Upload provider for attachments (optional).
            clock: Time source (defaults to the system clock).
            played: Notification log to share (a fresh one by default).
        """
        self._config = config
        self._clock = clock or SystemClock()
        self._collections = collections

        self.dispatcher = EventDispatcher()
        self.identity = IdentityResolver(
            session,
            profiles,
            guest_prefix=config.identity.guest_prefix,
            fallback_display_name=config.identity.fallback_display_name,
        )
        normalizer = ChangeNormalizer(
            fallback_channel=config.timeline.fallback_channel,
            fallback_display_name=config.identity.fallback_display_name,
        )
        self.timeline = TimelineStore(normalizer, self.dispatcher)

        horizon_seconds = config.read_state.recency_horizon_seconds
        horizon = timedelta(seconds=horizon_seconds) if horizon_seconds else None
        self.read_state = ReadStateTracker(
            self.timeline,
            self.identity,
            self._clock,
            horizon=horizon,
        )
        self.played = played if played is not None else PlayedNotificationLog()
        self.notifications = NotificationDispatcher(
            self.identity,
            audio,
            self.played,
            enabled=config.notifications.enabled,
            clock=self._clock,
            horizon=horizon,
        )
        self.dispatcher.register_object(self.read_state)
        self.dispatcher.register_object(self.notifications)

        self.moderator: ProfanityModerator | None = None
        if config.moderation.enabled:
            self.moderator = ProfanityModerator(
                ProfanityFilter(config.moderation.banned_words),
                collections.messages,
                collections.banned,
            )
            self.dispatcher.register_object(self.moderator)

        self.mutations = MutationReconciler(collections.messages)
        self.typing = TypingPublisher(
            collections.typing,
            self.identity,
            self._clock,
            idle_seconds=config.typing.idle_seconds,
        )
        self.composer = MessageComposer(
            collections.messages,
            self.identity,
            fallback_channel=config.timeline.fallback_channel,
            uploads=uploads,
            typing=self.typing,
        )
        self.channels = ChannelAdmin(
            session, collections.servers, collections.channels, collections.messages
        )

        self._queue = ChangeQueue()
        self._subscriber = FeedSubscriber(
            collections.messages,
            self._queue,
            FeedQuery(
                collection=config.store.messages_collection,
                limit=config.timeline.window_size,
            ),
        )
        self._feed_loop = FeedLoop(self._queue, self.timeline.ingest)
        self._tasks: list[asyncio.Task[None]] = []
        self._presence: TypingPresenceView | None = None

    @property
    def active_channel_id(self) -> str | None:
        """Channel being viewed."""
        return self.read_state.active_channel_id

    @property
    def is_running(self) -> bool:
        """Check if the session is consuming the feed."""
        return bool(self._tasks)

    async def start(self, channel_id: str | None = None) -> None:
        """Start consuming the message feed and open a channel.

        Args:
            channel_id: Channel to open (fallback channel if None).
        """
        if self._tasks:
            logger.warning("ChatSession already started")
            return
        logger.info("Starting session for %s", self.identity.current_user_id)
        self._tasks = [
            asyncio.create_task(self._subscriber.run()),
            asyncio.create_task(self._feed_loop.start()),
        ]
        await self.switch_channel(channel_id or self._config.timeline.fallback_channel)

    async def switch_channel(self, channel_id: str) -> None:
        """Make a channel the active one.

        Visits the channel (advancing watermarks) and swaps the typing
        presence subscription; the previous one is stopped first.

        Args:
            channel_id: Channel to view.
        """
        if self._presence is not None:
            await self._presence.stop()
        await self.read_state.visit(channel_id)
        self._presence = TypingPresenceView(
            self._collections.typing,
            FeedQuery(
                collection=self._config.store.typing_collection,
                order_by="timestamp",
            ),
            channel_id,
            self.identity.current_user_id,
            self._clock,
            ttl=timedelta(seconds=self._config.typing.ttl_seconds),
        )
        self._presence.start()
        logger.info("Switched to channel %s", channel_id)

    def messages(self, channel_id: str | None = None) -> tuple[Message, ...]:
        """Timeline snapshot of a channel (the active one by default)."""
        target = channel_id or self.active_channel_id
        if target is None:
            return ()
        return self.timeline.snapshot(target)

    def typists(self) -> list[TypingRecord]:
        """Other users typing in the active channel."""
        if self._presence is None:
            return []
        return self._presence.typists()

    async def stop(self) -> None:
        """Stop every subscription and timer of the session."""
        logger.info("Stopping session for %s", self.identity.current_user_id)
        if self._presence is not None:
            await self._presence.stop()
            self._presence = None
        await self.typing.close()
        await self._feed_loop.stop()

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Session stopped")
