"""Event entity for the timeline update stream."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventType(Enum):
    """Event types published by the timeline store."""

    TIMELINE_CHANGED = "timeline_changed"
    MESSAGE_CONFIRMED = "message_confirmed"
    MESSAGE_REMOVED = "message_removed"


@dataclass(frozen=True)
class Event:
    """Domain event.

    Attributes:
        type: Event type.
        payload: Event-specific data.
        created_at: Event creation time.
    """

    type: EventType
    payload: dict[str, Any]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_identity_key(self) -> str:
        """Get identity key for logging and duplicate detection.

        Returns:
            Key based on event type and payload.
        """
        if self.type == EventType.TIMELINE_CHANGED:
            channel_id = self.payload.get("channel_id", "")
            return f"timeline:{channel_id}"
        elif self.type == EventType.MESSAGE_CONFIRMED:
            message = self.payload.get("message")
            message_id = getattr(message, "id", "")
            return f"confirmed:{message_id}"
        elif self.type == EventType.MESSAGE_REMOVED:
            message_id = self.payload.get("message_id", "")
            return f"removed:{message_id}"
        return f"{self.type.value}:unknown"
