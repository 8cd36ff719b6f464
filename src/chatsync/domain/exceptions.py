"""Domain exceptions."""


class ChatSyncError(Exception):
    """Base class for chatsync errors."""


class StoreError(ChatSyncError):
    """Transient document store failure (network, permissions).

    Local optimistic state is left unchanged; retrying is up to the caller.
    """


class PermissionDeniedError(StoreError):
    """The store or the local policy refused the operation."""


class DocumentNotFoundError(StoreError):
    """A mutation targeted a document that no longer exists."""

    def __init__(self, document_id: str, message: str = "") -> None:
        """初期化

        Args:
            document_id: 存在しないドキュメントのID
            message: エラーメッセージ（オプション）
        """
        self.document_id = document_id
        super().__init__(message or f"Document {document_id} does not exist")


class MutationFailedError(ChatSyncError):
    """A user-initiated mutation failed and should be surfaced to the user."""

    def __init__(self, operation: str, document_id: str, cause: Exception) -> None:
        self.operation = operation
        self.document_id = document_id
        self.cause = cause
        super().__init__(f"{operation} failed for {document_id}: {cause}")


class ValidationError(ChatSyncError):
    """Input rejected before reaching the store."""


class IdentityResolutionError(ChatSyncError):
    """Profile lookup for a display name failed."""
