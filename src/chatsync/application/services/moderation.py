"""Profanity moderation of confirmed messages."""

import logging
import re
from collections.abc import Iterable

from chatsync.domain.entities import Event, Message
from chatsync.domain.entities.event import EventType
from chatsync.domain.repositories import SERVER_TIMESTAMP, DocumentStore
from chatsync.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)

BAN_REASON = "Profanity"
BANNED_TEMPLATE = "I got banned for bad words! (Original: {cleaned})"


class ProfanityFilter:
    """Whole-word, case-insensitive banned word matcher."""

    def __init__(self, banned_words: Iterable[str]) -> None:
        # Longest first so that overlapping words mask completely
        words = sorted(
            {w.strip() for w in banned_words if w.strip()}, key=len, reverse=True
        )
        self._pattern = (
            re.compile(
                r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b",
                re.IGNORECASE,
            )
            if words
            else None
        )

    def is_profane(self, text: str) -> bool:
        """Check if text contains a banned word."""
        return self._pattern is not None and self._pattern.search(text) is not None

    def clean(self, text: str) -> str:
        """Mask every banned word with asterisks."""
        if self._pattern is None:
            return text
        return self._pattern.sub(lambda m: "*" * len(m.group(0)), text)


class ProfanityModerator:
    """Rewrites profane messages and bans their authors.

    Only the first confirmation of a message is moderated. The rewrite is
    marked as moderated and is never moderated again, even when the template
    itself contains a banned word.
    """

    def __init__(
        self,
        profanity: ProfanityFilter,
        messages: DocumentStore,
        bans: DocumentStore,
    ) -> None:
        """Initialize the moderator.

        Args:
            profanity: Banned word matcher.
            messages: Message collection.
            bans: Ban collection (documents keyed by user ID).
        """
        self._profanity = profanity
        self._messages = messages
        self._bans = bans

    async def moderate(self, message: Message) -> bool:
        """Moderate one confirmed message.

        Returns:
            True if the message was rewritten.
        """
        if message.moderated or not self._profanity.is_profane(message.text):
            return False

        cleaned = self._profanity.clean(message.text)
        logger.warning(
            "Profanity from %s in message %s; banning", message.author_id, message.id
        )
        await self._messages.update(
            message.id,
            {"text": BANNED_TEMPLATE.format(cleaned=cleaned), "moderated": True},
        )
        await self._bans.set(
            message.author_id,
            {"reason": BAN_REASON, "timestamp": SERVER_TIMESTAMP},
        )
        return True

    @event_handler(EventType.MESSAGE_CONFIRMED)
    async def handle_message_confirmed(self, event: Event) -> None:
        """Handle MESSAGE_CONFIRMED events.

        Args:
            event: The MESSAGE_CONFIRMED event.
        """
        if not event.payload.get("is_new", True):
            return
        await self.moderate(event.payload["message"])
