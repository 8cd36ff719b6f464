"""Outgoing message construction."""

import logging

from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.application.services.mutation_reconciler import TRANSIENT_ERRORS
from chatsync.application.services.typing_presence import TypingPublisher
from chatsync.domain.entities import Attachment, Message, MessagePhase
from chatsync.domain.exceptions import MutationFailedError, ValidationError
from chatsync.domain.repositories import DocumentStore
from chatsync.domain.services.protocols import UploadProvider
from chatsync.infrastructure.feed.normalizer import to_document

logger = logging.getLogger(__name__)


class MessageComposer:
    """Builds and submits messages written by the current user.

    The message is written with a server-timestamp placeholder, so it shows
    up in the timeline as pending until the store acknowledges it.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityResolver,
        fallback_channel: str = "general",
        uploads: UploadProvider | None = None,
        typing: TypingPublisher | None = None,
        server_id: str | None = None,
    ) -> None:
        """Initialize the composer.

        Args:
            store: Message collection.
            identity: Resolves the sender's display name at send time.
            fallback_channel: Channel used when none is given.
            uploads: Upload provider for attachments (optional).
            typing: Typing publisher whose burst ends on send (optional).
            server_id: Server scoping outgoing messages (optional).
        """
        self._store = store
        self._identity = identity
        self._fallback_channel = fallback_channel
        self._uploads = uploads
        self._typing = typing
        self._server_id = server_id

    async def send(
        self,
        channel_id: str | None,
        text: str,
        attachment: Attachment | None = None,
    ) -> str:
        """Submit a message.

        Args:
            channel_id: Target channel (fallback channel if empty).
            text: Message text.
            attachment: Uploaded file metadata (optional).

        Returns:
            The store-assigned message ID.

        Raises:
            ValidationError: Blank text without an attachment.
            MutationFailedError: The store failed transiently.
        """
        body = text.strip()
        if not body and attachment is None:
            raise ValidationError("Message text must not be empty")

        target = channel_id or self._fallback_channel
        session = self._identity.session
        draft = Message(
            id="",
            text=body,
            author_id=session.user_id,
            author_display_name=await self._identity.resolve(),
            channel_id=target,
            phase=MessagePhase.PENDING,
            server_id=self._server_id,
            attachment=attachment,
            author_photo_url=session.photo_url,
        )

        if self._typing is not None:
            await self._typing.message_sent(target)

        try:
            message_id = await self._store.add(to_document(draft))
        except TRANSIENT_ERRORS as e:
            logger.error("Sending message to %s failed: %s", target, e)
            raise MutationFailedError("send", target, e) from e

        logger.info("Sent message %s to %s", message_id, target)
        return message_id

    async def upload_attachment(
        self, data: bytes, name: str, mime_type: str
    ) -> Attachment:
        """Upload a file and describe it for a message.

        Only the returned URL and metadata end up on the message.

        Args:
            data: File content.
            name: File name.
            mime_type: MIME type.

        Returns:
            Attachment metadata.

        Raises:
            ValidationError: No upload provider is configured.
            MutationFailedError: The upload failed.
        """
        if self._uploads is None:
            raise ValidationError(
                "Attachments are not supported without an upload provider"
            )
        try:
            url = await self._uploads.upload(data, name, mime_type)
        except TRANSIENT_ERRORS as e:
            logger.error("Uploading %s failed: %s", name, e)
            raise MutationFailedError("upload", name, e) from e
        return Attachment(url=url, mime_type=mime_type, name=name)
