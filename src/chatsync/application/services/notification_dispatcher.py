"""Mention notification dispatch."""

import logging
from datetime import timedelta

from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.domain.entities import Event, Message
from chatsync.domain.entities.event import EventType
from chatsync.domain.services.clock import Clock, SystemClock
from chatsync.domain.services.mention_matcher import is_mentioned
from chatsync.domain.services.protocols import AudioOutput
from chatsync.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class PlayedNotificationLog:
    """Append-only set of (message ID, text) keys that already notified.

    One instance lives for the whole application session and is owned by
    the NotificationDispatcher. Entries are never removed.
    """

    def __init__(self) -> None:
        self._keys: set[tuple[str, str]] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def record(self, key: tuple[str, str]) -> bool:
        """Add a key.

        Returns:
            True if the key was new, False if it was already recorded.
        """
        if key in self._keys:
            return False
        self._keys.add(key)
        return True


class NotificationDispatcher:
    """Plays the audible cue for mentions of the current user.

    Notifications are global: every newly confirmed message is evaluated,
    whatever channel is being viewed. The cue fires at most once per
    (message ID, text); an edit that changes the text is a new candidate.
    A rewrite by moderation is not an edit and never re-notifies. Messages
    older than the recency horizon are history loaded on start and stay
    silent.
    """

    def __init__(
        self,
        identity: IdentityResolver,
        audio: AudioOutput,
        played: PlayedNotificationLog,
        enabled: bool = True,
        clock: Clock | None = None,
        horizon: timedelta | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            identity: Resolves the current user's display name.
            audio: Audio output for the cue.
            played: Session-wide log of notified keys.
            enabled: When False, mentions are evaluated but never played.
            clock: Source of the current time (defaults to the system clock).
            horizon: Messages older than this never notify (None: unbounded).
        """
        self._identity = identity
        self._audio = audio
        self._played = played
        self._enabled = enabled
        self._clock = clock or SystemClock()
        self._horizon = horizon

    async def evaluate(self, message: Message, is_new: bool = True) -> bool:
        """Evaluate one message and play the cue if it qualifies.

        Args:
            message: A confirmed message.
            is_new: False when an already confirmed message changed its text.

        Returns:
            True if the cue was played.
        """
        if message.is_pending:
            return False
        if message.moderated and not is_new:
            return False
        if self._is_stale(message):
            logger.debug("Message %s is older than the horizon", message.id)
            return False
        if message.author_id == self._identity.current_user_id:
            return False
        key = message.notification_key
        if key in self._played:
            return False

        display_name = await self._identity.resolve()
        if not is_mentioned(message.text, display_name):
            return False

        # Check-and-record with no suspension point in between, so that an
        # overlapping evaluation of the same key cannot also fire.
        if not self._played.record(key):
            return False

        if not self._enabled:
            logger.debug("Notifications disabled; skipping cue for %s", message.id)
            return False

        logger.info(
            "Mention of %s in %s (message %s)",
            display_name,
            message.channel_id,
            message.id,
        )
        self._play()
        return True

    @event_handler(EventType.MESSAGE_CONFIRMED)
    async def handle_message_confirmed(self, event: Event) -> None:
        """Handle MESSAGE_CONFIRMED events.

        Args:
            event: The MESSAGE_CONFIRMED event.
        """
        await self.evaluate(
            event.payload["message"], is_new=event.payload.get("is_new", True)
        )

    def _is_stale(self, message: Message) -> bool:
        if self._horizon is None:
            return False
        activity = message.edited_at or message.created_at
        return activity < self._clock.now() - self._horizon

    def _play(self) -> None:
        try:
            self._audio.play_cue()
        except Exception as e:
            logger.warning("Failed to play notification cue: %s", e)
