"""Unread and mention indicator derivation.

Pure functions: callers supply the timeline snapshot, watermarks and the
resolved identity, so the derivation can be tested without a live feed.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from chatsync.domain.entities import ChannelIndicator, Message
from chatsync.domain.services.mention_matcher import is_mentioned


def is_unread(
    message: Message,
    *,
    watermark: datetime | None,
    current_user_id: str,
    cutoff: datetime | None = None,
) -> bool:
    """Check if a message counts as unread for the current user.

    Args:
        message: Message to check.
        watermark: Last visit to the message's channel (None if never visited).
        current_user_id: Current user ID; own messages are never unread.
        cutoff: Messages created before this time are ignored.

    Returns:
        True if the message should flag its channel.
    """
    if message.created_at is None:
        return False
    if message.author_id == current_user_id:
        return False
    if cutoff is not None and message.created_at < cutoff:
        return False
    if watermark is not None and message.created_at <= watermark:
        return False
    return True


def derive_channel_indicator(
    channel_id: str,
    messages: Sequence[Message],
    *,
    watermark: datetime | None,
    is_active: bool,
    current_user_id: str,
    display_name: str,
    now: datetime,
    horizon: timedelta | None,
) -> ChannelIndicator:
    """Derive the indicator of one channel.

    Args:
        channel_id: Channel ID.
        messages: Timeline snapshot of the channel.
        watermark: Last visit to the channel (None if never visited).
        is_active: Whether the user is viewing the channel.
        current_user_id: Current user ID.
        display_name: Current user's resolved display name.
        now: Evaluation time.
        horizon: Only messages newer than ``now - horizon`` are considered.

    Returns:
        ChannelIndicator with unread and mention counts.
    """
    if is_active:
        return ChannelIndicator(channel_id=channel_id)

    cutoff = now - horizon if horizon is not None else None
    unread = 0
    mentioned = 0
    for message in messages:
        if not is_unread(
            message,
            watermark=watermark,
            current_user_id=current_user_id,
            cutoff=cutoff,
        ):
            continue
        unread += 1
        if is_mentioned(message.text, display_name):
            mentioned += 1

    return ChannelIndicator(
        channel_id=channel_id, unread_count=unread, mention_count=mentioned
    )


def derive_indicators(
    timelines: Mapping[str, Sequence[Message]],
    watermarks: Mapping[str, datetime],
    *,
    active_channel_id: str | None,
    current_user_id: str,
    display_name: str,
    now: datetime,
    horizon: timedelta | None,
    channel_ids: Iterable[str] = (),
) -> dict[str, ChannelIndicator]:
    """Derive indicators for every known channel.

    Args:
        timelines: Channel ID -> timeline snapshot.
        watermarks: Channel ID -> last visit time.
        active_channel_id: Channel being viewed.
        current_user_id: Current user ID.
        display_name: Current user's resolved display name.
        now: Evaluation time.
        horizon: Recency bound (None to consider the whole window).
        channel_ids: Extra channels to include even without messages.

    Returns:
        Channel ID -> ChannelIndicator.
    """
    all_channels = dict.fromkeys([*timelines.keys(), *channel_ids])
    return {
        channel_id: derive_channel_indicator(
            channel_id,
            timelines.get(channel_id, ()),
            watermark=watermarks.get(channel_id),
            is_active=channel_id == active_channel_id,
            current_user_id=current_user_id,
            display_name=display_name,
            now=now,
            horizon=horizon,
        )
        for channel_id in all_channels
    }
