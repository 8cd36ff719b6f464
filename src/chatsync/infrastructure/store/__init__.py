"""Document store adapters."""

from chatsync.infrastructure.store.memory import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
