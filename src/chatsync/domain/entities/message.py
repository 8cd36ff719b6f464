"""Message entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MessagePhase(Enum):
    """Acknowledgement phase of a message.

    PENDING messages were submitted locally but the store has not stamped a
    server timestamp yet. CONFIRMED messages carry their final ``created_at``.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class Attachment:
    """Uploaded file metadata attached to a message.

    Attributes:
        url: Download URL returned by the upload provider.
        mime_type: MIME type of the uploaded blob.
        name: Original file name.
    """

    url: str
    mime_type: str
    name: str


@dataclass(frozen=True)
class Reaction:
    """Reaction bucket: users who applied one emoji to a message.

    Attributes:
        emoji: The emoji key.
        user_ids: Users who reacted, in the order they reacted.
    """

    emoji: str
    user_ids: tuple[str, ...]

    @property
    def count(self) -> int:
        """Number of users in the bucket."""
        return len(self.user_ids)


@dataclass(frozen=True)
class Message:
    """Message entity.

    Attributes:
        id: Store-assigned message ID.
        text: Message content.
        author_id: ID of the user who sent the message.
        author_display_name: Display name of the author at send time.
        channel_id: Channel the message belongs to.
        phase: Whether the server timestamp has been assigned.
        created_at: Server-assigned creation time (None while pending).
        server_id: Server scoping the channel namespace, if any.
        edited_at: When the text was last edited.
        reactions: Reaction buckets in display order.
        attachment: Uploaded file metadata, if any.
        author_photo_url: Avatar URL of the author at send time.
        moderated: Whether the text was rewritten by profanity moderation.
    """

    id: str
    text: str
    author_id: str
    author_display_name: str
    channel_id: str
    phase: MessagePhase
    created_at: datetime | None = None
    server_id: str | None = None
    edited_at: datetime | None = None
    reactions: tuple[Reaction, ...] = field(default_factory=tuple)
    attachment: Attachment | None = None
    author_photo_url: str | None = None
    moderated: bool = False

    def __post_init__(self) -> None:
        if self.phase is MessagePhase.CONFIRMED and self.created_at is None:
            raise ValueError(f"Confirmed message {self.id} has no created_at")
        if self.phase is MessagePhase.PENDING and self.created_at is not None:
            raise ValueError(f"Pending message {self.id} has a created_at")

    @property
    def is_pending(self) -> bool:
        """Check if the message is still awaiting server acknowledgement."""
        return self.phase is MessagePhase.PENDING

    @property
    def is_edited(self) -> bool:
        """Check if the message text was edited after sending."""
        return self.edited_at is not None

    @property
    def notification_key(self) -> tuple[str, str]:
        """Key identifying one notifiable version of this message."""
        return (self.id, self.text)

    def sort_key(self) -> tuple[datetime, str]:
        """Ordering key within a channel timeline.

        Returns:
            (created_at, id) so that ties are broken by ID.

        Raises:
            ValueError: If the message is still pending.
        """
        if self.created_at is None:
            raise ValueError(f"Pending message {self.id} has no ordering key")
        return (self.created_at, self.id)

    def reaction_map(self) -> dict[str, list[str]]:
        """Get reactions as a plain emoji -> user IDs mapping.

        Returns:
            Mapping preserving emoji display order.
        """
        return {r.emoji: list(r.user_ids) for r in self.reactions}
