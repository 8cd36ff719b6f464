"""Domain services."""

from chatsync.domain.services.clock import Clock, SystemClock
from chatsync.domain.services.indicators import (
    derive_channel_indicator,
    derive_indicators,
    is_unread,
)
from chatsync.domain.services.mention_matcher import is_mentioned
from chatsync.domain.services.protocols import (
    AudioOutput,
    ProfileLookup,
    UploadProvider,
)
from chatsync.domain.services.reactions import toggle_reaction
from chatsync.domain.services.typing_filter import visible_typists

__all__ = [
    "AudioOutput",
    "Clock",
    "ProfileLookup",
    "SystemClock",
    "UploadProvider",
    "derive_channel_indicator",
    "derive_indicators",
    "is_mentioned",
    "is_unread",
    "toggle_reaction",
    "visible_typists",
]
