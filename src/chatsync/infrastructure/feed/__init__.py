"""Feed adaptation infrastructure."""

from chatsync.infrastructure.feed.normalizer import (
    ChangeNormalizer,
    ChannelSource,
    to_document,
)
from chatsync.infrastructure.feed.subscriber import FeedSubscriber

__all__ = ["ChangeNormalizer", "ChannelSource", "FeedSubscriber", "to_document"]
