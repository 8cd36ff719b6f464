"""Channel and server lifecycle operations."""

import logging
import re
from collections.abc import Awaitable
from typing import TypeVar

from chatsync.application.services.mutation_reconciler import TRANSIENT_ERRORS
from chatsync.domain.entities import AuthSession, Channel, Server
from chatsync.domain.entities.channel import DEFAULT_CHANNEL_CATEGORY
from chatsync.domain.exceptions import (
    DocumentNotFoundError,
    MutationFailedError,
    PermissionDeniedError,
    ValidationError,
)
from chatsync.domain.repositories import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WHITESPACE = re.compile(r"\s+")


def normalize_channel_name(name: str) -> str:
    """Normalize a channel name: lower case, whitespace runs become "-".

    Raises:
        ValidationError: The name is blank.
    """
    normalized = _WHITESPACE.sub("-", name.strip().lower())
    if not normalized:
        raise ValidationError("Channel name must not be empty")
    return normalized


class ChannelAdmin:
    """Creates, renames and deletes channels and servers.

    Deleting a channel removes all of its messages in one atomic batch
    before the channel itself; deleting a server does the same for every
    channel it contains.
    """

    def __init__(
        self,
        session: AuthSession,
        servers: DocumentStore,
        channels: DocumentStore,
        messages: DocumentStore,
    ) -> None:
        """Initialize the admin service.

        Args:
            session: Current user.
            servers: Server collection.
            channels: Channel collection.
            messages: Message collection.
        """
        self._session = session
        self._servers = servers
        self._channels = channels
        self._messages = messages

    async def create_server(self, name: str) -> Server:
        """Create a server owned by the current user."""
        display_name = name.strip()
        if not display_name:
            raise ValidationError("Server name must not be empty")
        server_id = await self._write(
            "create_server",
            display_name,
            self._servers.add(
                {
                    "name": display_name,
                    "ownerId": self._session.user_id,
                    "createdAt": SERVER_TIMESTAMP,
                }
            ),
        )
        logger.info("Created server %s (%s)", display_name, server_id)
        return Server(id=server_id, name=display_name, owner_id=self._session.user_id)

    async def list_channels(self, server_id: str) -> list[Channel]:
        """List the channels of a server, sorted by category then name."""
        documents = await self._channels.find({"serverId": server_id})
        channels = [
            Channel(
                id=doc_id,
                name=str(data.get("name") or ""),
                server_id=server_id,
                category=str(data.get("category") or DEFAULT_CHANNEL_CATEGORY),
            )
            for doc_id, data in documents
        ]
        return sorted(channels, key=lambda c: (c.category, c.name))

    async def create_channel(
        self,
        server_id: str,
        name: str,
        category: str = DEFAULT_CHANNEL_CATEGORY,
    ) -> Channel:
        """Create a channel.

        Raises:
            PermissionDeniedError: The current user is not privileged.
            ValidationError: The name is blank or already used in the server.
        """
        self._require_privileged("create a channel")
        channel_name = normalize_channel_name(name)
        await self._ensure_unique(server_id, channel_name)
        channel_id = await self._write(
            "create_channel",
            channel_name,
            self._channels.add(
                {
                    "name": channel_name,
                    "serverId": server_id,
                    "category": category,
                    "createdAt": SERVER_TIMESTAMP,
                }
            ),
        )
        logger.info("Created channel #%s in %s", channel_name, server_id)
        return Channel(
            id=channel_id, name=channel_name, server_id=server_id, category=category
        )

    async def rename_channel(self, channel_id: str, new_name: str) -> Channel:
        """Rename a channel; its ID stays the same.

        Raises:
            PermissionDeniedError: The current user is not privileged.
            DocumentNotFoundError: The channel does not exist.
            ValidationError: The name is blank or already used in the server.
        """
        self._require_privileged("rename a channel")
        data = await self._channels.get(channel_id)
        if data is None:
            raise DocumentNotFoundError(channel_id)
        channel_name = normalize_channel_name(new_name)
        server_id = str(data.get("serverId") or "")
        if channel_name != data.get("name"):
            await self._ensure_unique(server_id, channel_name)
            await self._write(
                "rename_channel",
                channel_id,
                self._channels.update(channel_id, {"name": channel_name}),
            )
            logger.info("Renamed channel %s to #%s", channel_id, channel_name)
        return Channel(
            id=channel_id,
            name=channel_name,
            server_id=server_id,
            category=str(data.get("category") or DEFAULT_CHANNEL_CATEGORY),
        )

    async def delete_channel(self, channel_id: str) -> int:
        """Delete a channel and all of its messages.

        Returns:
            Number of messages deleted.

        Raises:
            PermissionDeniedError: The current user is not privileged.
        """
        self._require_privileged("delete a channel")
        message_ids = await self._message_ids([channel_id])
        await self._write(
            "delete_channel", channel_id, self._messages.batch_delete(message_ids)
        )
        await self._write(
            "delete_channel", channel_id, self._channels.delete(channel_id)
        )
        logger.info(
            "Deleted channel %s with %d messages", channel_id, len(message_ids)
        )
        return len(message_ids)

    async def delete_server(self, server_id: str) -> int:
        """Delete a server, its channels and their messages.

        Returns:
            Number of messages deleted.

        Raises:
            PermissionDeniedError: The user neither owns the server nor is
                privileged.
        """
        data = await self._servers.get(server_id)
        owner_id = data.get("ownerId") if data else None
        if owner_id != self._session.user_id:
            self._require_privileged("delete a server")

        found = await self._channels.find({"serverId": server_id})
        channel_ids = [doc_id for doc_id, _ in found]
        message_ids = await self._message_ids(channel_ids)
        await self._write(
            "delete_server", server_id, self._messages.batch_delete(message_ids)
        )
        await self._write(
            "delete_server", server_id, self._channels.batch_delete(channel_ids)
        )
        await self._write("delete_server", server_id, self._servers.delete(server_id))
        logger.info(
            "Deleted server %s (%d channels, %d messages)",
            server_id,
            len(channel_ids),
            len(message_ids),
        )
        return len(message_ids)

    def _require_privileged(self, action: str) -> None:
        if not self._session.is_privileged:
            raise PermissionDeniedError(
                f"User {self._session.user_id} is not allowed to {action}"
            )

    async def _ensure_unique(self, server_id: str, name: str) -> None:
        existing = await self._channels.find({"serverId": server_id, "name": name})
        if existing:
            raise ValidationError(f"Channel #{name} already exists in {server_id}")

    async def _message_ids(self, channel_ids: list[str]) -> list[str]:
        message_ids: list[str] = []
        for channel_id in channel_ids:
            found = await self._messages.find({"channelId": channel_id})
            message_ids.extend(doc_id for doc_id, _ in found)
        return message_ids

    async def _write(self, operation: str, target: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except TRANSIENT_ERRORS as e:
            logger.error("%s of %s failed: %s", operation, target, e)
            raise MutationFailedError(operation, target, e) from e
