"""Domain repositories."""

from chatsync.domain.repositories.document_store import (
    SERVER_TIMESTAMP,
    DocumentStore,
    ServerTimestamp,
)

__all__ = ["SERVER_TIMESTAMP", "DocumentStore", "ServerTimestamp"]
