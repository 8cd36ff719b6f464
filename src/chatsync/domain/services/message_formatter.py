"""Message presentation helpers."""

from chatsync.domain.entities import Message

ANONYMOUS_NAME = "Anonymous"
PLACEHOLDER_AVATAR_URL = "https://api.adorable.io/avatars/23/abott@adorable.png"


def format_time(message: Message) -> str:
    """Format the creation time of a message.

    Args:
        message: The message to format.

    Returns:
        "HH:MM", or "" while the message is pending.
    """
    if message.created_at is None:
        return ""
    return message.created_at.strftime("%H:%M")


def author_label(message: Message) -> str:
    """Get the author name to display."""
    return message.author_display_name or ANONYMOUS_NAME


def avatar_url(message: Message) -> str:
    """Get the avatar URL to display, falling back to a placeholder."""
    return message.author_photo_url or PLACEHOLDER_AVATAR_URL


def message_class(message: Message, current_user_id: str) -> str:
    """Classify a message as "sent" (own) or "received"."""
    return "sent" if message.author_id == current_user_id else "received"

