"""Field-level message mutations against the canonical store."""

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from chatsync.domain.exceptions import (
    DocumentNotFoundError,
    MutationFailedError,
    StoreError,
    ValidationError,
)
from chatsync.domain.repositories import SERVER_TIMESTAMP, DocumentStore
from chatsync.domain.services.reactions import toggle_reaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures the caller should surface to the user (nothing is retried here)
TRANSIENT_ERRORS = (StoreError, OSError, TimeoutError)


class _Dropped(Exception):
    """The target document vanished; the mutation is dropped."""


class MutationReconciler:
    """Applies edits, deletes and reaction toggles to the message store.

    Results come back through the change feed like any other write; no
    local state is modified here. Every read-modify-write starts from the
    document as freshly fetched right before the write, never from a
    locally cached copy, so concurrent reactions from other users are not
    lost.

    Error policy:
    - the document no longer exists (e.g. deleted, then reacted to): the
      mutation is logged and dropped, a falsy result is returned
    - transient store failures: MutationFailedError is raised to the caller
    """

    def __init__(self, store: DocumentStore) -> None:
        """Initialize the reconciler.

        Args:
            store: Message collection.
        """
        self._store = store

    async def edit(self, message_id: str, new_text: str) -> bool:
        """Replace the text of a message and stamp ``editedAt``.

        An edit whose trimmed text equals the current text is a no-op, so no
        spurious edit marker appears.

        Args:
            message_id: Message to edit.
            new_text: Replacement text.

        Returns:
            True if the edit was written.

        Raises:
            ValidationError: The new text is blank.
            MutationFailedError: The store failed transiently.
        """
        text = new_text.strip()
        if not text:
            raise ValidationError("Edited message text must not be empty")

        try:
            current = await self._call("edit", message_id, self._fetch(message_id))
            if text == str(current.get("text") or "").strip():
                logger.debug("Edit of %s does not change the text; skipped", message_id)
                return False
            await self._call(
                "edit",
                message_id,
                self._store.update(
                    message_id, {"text": text, "editedAt": SERVER_TIMESTAMP}
                ),
            )
        except _Dropped:
            return False

        logger.info("Edited message %s", message_id)
        return True

    async def delete(self, message_id: str) -> None:
        """Delete a message. Deleting a missing message is harmless.

        Args:
            message_id: Message to delete.

        Raises:
            MutationFailedError: The store failed transiently.
        """
        try:
            await self._call("delete", message_id, self._store.delete(message_id))
        except _Dropped:
            logger.debug("Message %s already deleted", message_id)
            return
        logger.info("Deleted message %s", message_id)

    async def toggle_reaction(
        self, message_id: str, emoji: str, user_id: str
    ) -> dict[str, list[str]] | None:
        """Toggle a user's reaction on a message.

        Args:
            message_id: Message reacted to.
            emoji: Emoji to toggle.
            user_id: Reacting user.

        Returns:
            The reaction map that was written, or None if the message no
            longer exists.

        Raises:
            MutationFailedError: The store failed transiently.
        """
        try:
            current = await self._call("react", message_id, self._fetch(message_id))
            reactions = toggle_reaction(current.get("reactions") or {}, emoji, user_id)
            await self._call(
                "react",
                message_id,
                self._store.update(message_id, {"reactions": reactions}),
            )
        except _Dropped:
            return None

        logger.debug("Toggled %s on %s for %s", emoji, message_id, user_id)
        return reactions

    async def _fetch(self, message_id: str) -> dict[str, Any]:
        document = await self._store.get(message_id)
        if document is None:
            raise DocumentNotFoundError(message_id)
        return document

    async def _call(self, operation: str, message_id: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except DocumentNotFoundError as e:
            logger.warning("Dropping %s of %s: %s", operation, message_id, e)
            raise _Dropped() from e
        except TRANSIENT_ERRORS as e:
            logger.error("%s of %s failed: %s", operation, message_id, e)
            raise MutationFailedError(operation, message_id, e) from e
