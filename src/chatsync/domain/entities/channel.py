"""Channel and Server entities."""

from dataclasses import dataclass

DEFAULT_CHANNEL_CATEGORY = "Text Channels"


@dataclass(frozen=True)
class Channel:
    """Channel entity.

    The ID is stable for the channel's lifetime; renaming only replaces
    ``name``.

    Attributes:
        id: Store-assigned channel ID.
        name: Display name, unique within the server.
        server_id: Parent server ID.
        category: Display grouping (not identity-bearing).
    """

    id: str
    name: str
    server_id: str
    category: str = DEFAULT_CHANNEL_CATEGORY


@dataclass(frozen=True)
class Server:
    """Server entity (a namespace of channels).

    Attributes:
        id: Store-assigned server ID.
        name: Display name.
        owner_id: User who created the server.
    """

    id: str
    name: str
    owner_id: str
