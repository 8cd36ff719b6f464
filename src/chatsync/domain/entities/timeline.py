"""Timeline diff entity."""

from dataclasses import dataclass, field

from chatsync.domain.entities.message import Message


@dataclass(frozen=True)
class TimelineDiff:
    """Changes applied to one channel timeline by a single ingest.

    Attributes:
        channel_id: Affected channel.
        added: Messages that were not in the timeline before.
        updated: Messages that replaced an entry with the same ID.
        removed: IDs of messages that left the timeline.
    """

    channel_id: str
    added: tuple[Message, ...] = field(default_factory=tuple)
    updated: tuple[Message, ...] = field(default_factory=tuple)
    removed: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """Check if the diff carries no change."""
        return not (self.added or self.updated or self.removed)
