"""Application services."""

from chatsync.application.services.channel_admin import ChannelAdmin
from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.application.services.message_composer import MessageComposer
from chatsync.application.services.moderation import ProfanityFilter, ProfanityModerator
from chatsync.application.services.mutation_reconciler import MutationReconciler
from chatsync.application.services.notification_dispatcher import (
    NotificationDispatcher,
    PlayedNotificationLog,
)
from chatsync.application.services.read_state_tracker import ReadStateTracker
from chatsync.application.services.timeline_store import TimelineStore
from chatsync.application.services.typing_presence import (
    TypingPresenceView,
    TypingPublisher,
)

__all__ = [
    "ChannelAdmin",
    "IdentityResolver",
    "MessageComposer",
    "MutationReconciler",
    "NotificationDispatcher",
    "PlayedNotificationLog",
    "ProfanityFilter",
    "ProfanityModerator",
    "ReadStateTracker",
    "TimelineStore",
    "TypingPresenceView",
    "TypingPublisher",
]
