"""Change normalizer: raw feed snapshots to Message entities."""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from chatsync.domain.entities import Attachment, Message, MessagePhase, Reaction
from chatsync.domain.repositories import SERVER_TIMESTAMP
from chatsync.domain.services.reactions import prune_empty
from chatsync.infrastructure.feed.datetime_utils import coerce_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_CHANNEL = "general"
DEFAULT_DISPLAY_NAME = "Anonymous"


class ChannelSource(Enum):
    """Where the channel of a message came from."""

    EXPLICIT = "explicit"
    LEGACY_FIELD = "legacy_field"
    DEFAULTED = "defaulted"


class ChangeNormalizer:
    """Convert raw document snapshots into Message entities.

    Normalization is a pure function of the snapshot: the same input always
    yields an equal Message. Legacy records are repaired with defaulting
    rules instead of being rejected:

    - no ``channelId``: the legacy ``channel`` field, else the fallback channel
    - no display name: ``Anonymous``
    - legacy ``uid`` / ``displayName`` / ``photoURL`` field names
    """

    def __init__(
        self,
        fallback_channel: str = DEFAULT_FALLBACK_CHANNEL,
        fallback_display_name: str = DEFAULT_DISPLAY_NAME,
    ) -> None:
        """Initialize the normalizer.

        Args:
            fallback_channel: Channel for records without a channel field.
            fallback_display_name: Name for records without a display name.
        """
        self._fallback_channel = fallback_channel
        self._fallback_display_name = fallback_display_name

    def resolve_channel(self, data: Mapping[str, Any]) -> tuple[str, ChannelSource]:
        """Resolve the channel of a raw record.

        Args:
            data: Raw document fields.

        Returns:
            (channel ID, where it came from)
        """
        channel_id = data.get("channelId")
        if channel_id:
            return str(channel_id), ChannelSource.EXPLICIT
        legacy = data.get("channel")
        if legacy:
            return str(legacy), ChannelSource.LEGACY_FIELD
        return self._fallback_channel, ChannelSource.DEFAULTED

    def normalize(self, document_id: str, data: Mapping[str, Any]) -> Message:
        """Convert a raw snapshot to a Message.

        Args:
            document_id: Store document ID.
            data: Raw document fields.

        Returns:
            Message tagged PENDING (no server timestamp yet) or CONFIRMED.
        """
        channel_id, source = self.resolve_channel(data)
        if source is ChannelSource.DEFAULTED:
            logger.debug(
                "Message %s has no channel; defaulting to %s", document_id, channel_id
            )

        created_at = coerce_timestamp(data.get("createdAt"))
        phase = MessagePhase.PENDING if created_at is None else MessagePhase.CONFIRMED

        author_id = data.get("authorId", data.get("uid")) or ""
        display_name = (
            data.get("authorDisplayName", data.get("displayName"))
            or self._fallback_display_name
        )

        return Message(
            id=document_id,
            text=str(data.get("text") or ""),
            author_id=str(author_id),
            author_display_name=str(display_name),
            channel_id=channel_id,
            phase=phase,
            created_at=created_at,
            server_id=data.get("serverId") or None,
            edited_at=coerce_timestamp(data.get("editedAt")),
            reactions=self._parse_reactions(data.get("reactions")),
            attachment=self._parse_attachment(data.get("attachment")),
            author_photo_url=data.get("authorPhotoUrl", data.get("photoURL")) or None,
            moderated=bool(data.get("moderated")),
        )

    def _parse_reactions(self, raw: Any) -> tuple[Reaction, ...]:
        if not isinstance(raw, Mapping):
            return ()
        reactions = []
        for emoji, users in prune_empty(raw).items():
            # dict.fromkeys keeps first-seen order while dropping duplicates
            unique_users = tuple(dict.fromkeys(str(u) for u in users))
            reactions.append(Reaction(emoji=str(emoji), user_ids=unique_users))
        return tuple(reactions)

    def _parse_attachment(self, raw: Any) -> Attachment | None:
        if not isinstance(raw, Mapping) or not raw.get("url"):
            return None
        return Attachment(
            url=str(raw["url"]),
            mime_type=str(raw.get("mimeType") or "application/octet-stream"),
            name=str(raw.get("name") or ""),
        )


def to_document(message: Message) -> dict[str, Any]:
    """Serialize a Message into store fields.

    A pending message is written with the server-timestamp sentinel so the
    store assigns ``createdAt`` on acknowledgement.

    Args:
        message: Message to serialize.

    Returns:
        Document fields (the ID is not included).
    """
    document: dict[str, Any] = {
        "text": message.text,
        "authorId": message.author_id,
        "authorDisplayName": message.author_display_name,
        "channelId": message.channel_id,
        "createdAt": (
            SERVER_TIMESTAMP if message.created_at is None else message.created_at
        ),
        "reactions": message.reaction_map(),
    }
    if message.server_id is not None:
        document["serverId"] = message.server_id
    if message.edited_at is not None:
        document["editedAt"] = message.edited_at
    if message.attachment is not None:
        document["attachment"] = {
            "url": message.attachment.url,
            "mimeType": message.attachment.mime_type,
            "name": message.attachment.name,
        }
    if message.author_photo_url is not None:
        document["authorPhotoUrl"] = message.author_photo_url
    if message.moderated:
        document["moderated"] = True
    return document
