"""Event system infrastructure."""

from chatsync.infrastructure.events.dispatcher import EventDispatcher, event_handler
from chatsync.infrastructure.events.loop import FeedLoop
from chatsync.infrastructure.events.queue import ChangeQueue

__all__ = [
    "ChangeQueue",
    "EventDispatcher",
    "FeedLoop",
    "event_handler",
]
