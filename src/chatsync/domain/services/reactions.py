"""Reaction map operations."""

from collections.abc import Mapping, Sequence


def toggle_reaction(
    reactions: Mapping[str, Sequence[str]],
    emoji: str,
    user_id: str,
) -> dict[str, list[str]]:
    """Toggle a user's reaction on a reaction map.

    - Bucket exists and contains the user: the user is removed; an emptied
      bucket is dropped entirely.
    - Bucket exists without the user: the user is appended.
    - No bucket: a new one is created with just the user.

    The input is never mutated and emoji key order is preserved. Empty
    buckets carried by the input are dropped.

    Args:
        reactions: Latest known emoji -> user IDs map.
        emoji: Emoji to toggle.
        user_id: Reacting user.

    Returns:
        New reaction map.
    """
    result = prune_empty(reactions)
    bucket = result.get(emoji)

    if bucket is None:
        result[emoji] = [user_id]
    elif user_id in bucket:
        bucket.remove(user_id)
        if not bucket:
            del result[emoji]
    else:
        bucket.append(user_id)

    return result


def prune_empty(reactions: Mapping[str, Sequence[str]]) -> dict[str, list[str]]:
    """Drop empty buckets (legacy documents may still carry them)."""
    return {key: list(users) for key, users in reactions.items() if users}
