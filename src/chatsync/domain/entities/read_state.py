"""Read state entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class IndicatorLevel(Enum):
    """What a channel entry should show in the sidebar."""

    NONE = "none"
    UNREAD = "unread"
    MENTIONED = "mentioned"


@dataclass(frozen=True)
class ReadWatermark:
    """Last visit of the current user to a channel.

    Attributes:
        channel_id: Visited channel.
        visited_at: Everything created up to this time has been seen.
    """

    channel_id: str
    visited_at: datetime


@dataclass(frozen=True)
class ChannelIndicator:
    """Unread/mention indicator for one channel.

    Attributes:
        channel_id: Channel ID.
        unread_count: Messages flagged unread (mentions included).
        mention_count: Unread messages that mention the current user.
    """

    channel_id: str
    unread_count: int = 0
    mention_count: int = 0

    @property
    def level(self) -> IndicatorLevel:
        """Indicator to render; a mention takes precedence over unread."""
        if self.mention_count > 0:
            return IndicatorLevel.MENTIONED
        if self.unread_count > 0:
            return IndicatorLevel.UNREAD
        return IndicatorLevel.NONE
