"""Typing presence filtering."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from chatsync.domain.entities import TypingRecord


def visible_typists(
    records: Iterable[TypingRecord],
    *,
    channel_id: str,
    self_user_id: str,
    now: datetime,
    ttl: timedelta,
) -> list[TypingRecord]:
    """Filter raw typing records down to what the viewer should see.

    Excludes the viewer, records for other channels and records older than
    the TTL. Expired records need no explicit delete from their producer.

    Args:
        records: Raw typing records.
        channel_id: Channel being viewed.
        self_user_id: Viewer's user ID.
        now: Evaluation time.
        ttl: Maximum record age.

    Returns:
        Visible records, oldest first.
    """
    visible = [
        record
        for record in records
        if record.channel_id == channel_id
        and record.user_id != self_user_id
        and not record.is_expired(now, ttl)
    ]
    return sorted(visible, key=lambda r: (r.timestamp, r.user_id))
