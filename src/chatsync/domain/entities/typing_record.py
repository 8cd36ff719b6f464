"""TypingRecord entity."""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class TypingRecord:
    """Ephemeral "user is typing" marker.

    Attributes:
        channel_id: Channel the user is typing in.
        user_id: Typing user.
        display_name: Name to show in the indicator.
        timestamp: Last time the record was published.
    """

    channel_id: str
    user_id: str
    display_name: str
    timestamp: datetime

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the record."""
        return (self.channel_id, self.user_id)

    @property
    def document_id(self) -> str:
        """Document ID used in the typing collection."""
        return typing_document_id(self.channel_id, self.user_id)

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """Check if the record is older than the TTL.

        Args:
            now: Current time.
            ttl: Maximum record age.

        Returns:
            True if the record should be treated as absent.
        """
        return now - self.timestamp > ttl


def typing_document_id(channel_id: str, user_id: str) -> str:
    """Build the typing document ID for a (channel, user) pair."""
    return f"{channel_id}_{user_id}"
