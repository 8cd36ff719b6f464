"""Domain entities."""

from chatsync.domain.entities.change import ChangeType, DocumentChange, FeedQuery
from chatsync.domain.entities.channel import Channel, Server
from chatsync.domain.entities.event import Event, EventType
from chatsync.domain.entities.message import (
    Attachment,
    Message,
    MessagePhase,
    Reaction,
)
from chatsync.domain.entities.read_state import (
    ChannelIndicator,
    IndicatorLevel,
    ReadWatermark,
)
from chatsync.domain.entities.session import AuthSession
from chatsync.domain.entities.timeline import TimelineDiff
from chatsync.domain.entities.typing_record import TypingRecord

__all__ = [
    "Attachment",
    "AuthSession",
    "ChangeType",
    "Channel",
    "ChannelIndicator",
    "DocumentChange",
    "Event",
    "EventType",
    "FeedQuery",
    "IndicatorLevel",
    "Message",
    "MessagePhase",
    "Reaction",
    "ReadWatermark",
    "Server",
    "TimelineDiff",
    "TypingRecord",
]
