"""Tests for MutationReconciler."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from chatsync.application.services.mutation_reconciler import MutationReconciler
from chatsync.domain.exceptions import (
    DocumentNotFoundError,
    MutationFailedError,
    StoreError,
    ValidationError,
)
from chatsync.infrastructure.store.memory import InMemoryDocumentStore


class TestMutationReconciler:
    """MutationReconciler tests."""

    @pytest.fixture
    async def store(self, clock, raw_message, now: datetime) -> InMemoryDocumentStore:
        """Create a message store holding one message from Bob."""
        store = InMemoryDocumentStore("messages", clock=clock)
        await store.set(
            "m1", raw_message(text="hello", created_at=now, reactions={"👍": ["U2"]})
        )
        return store

    @pytest.fixture
    def reconciler(self, store: InMemoryDocumentStore) -> MutationReconciler:
        """Create a reconciler."""
        return MutationReconciler(store)

    async def test_edit_writes_text_and_marker(
        self,
        reconciler: MutationReconciler,
        store: InMemoryDocumentStore,
        now: datetime,
    ) -> None:
        """Test a successful edit."""
        assert await reconciler.edit("m1", "  hello world  ")

        document = await store.get("m1")
        assert document is not None
        assert document["text"] == "hello world"
        assert document["editedAt"] == now

    async def test_edit_with_same_text_is_noop(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test that an unchanged edit writes nothing."""
        assert not await reconciler.edit("m1", " hello ")

        document = await store.get("m1")
        assert document is not None
        assert "editedAt" not in document

    async def test_blank_edit_is_rejected(
        self, reconciler: MutationReconciler
    ) -> None:
        """Test edit validation."""
        with pytest.raises(ValidationError):
            await reconciler.edit("m1", "   ")

    async def test_edit_of_deleted_message_is_dropped(
        self, reconciler: MutationReconciler, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that an edit of a vanished message is dropped."""
        assert not await reconciler.edit("missing", "text")
        assert "Dropping edit of missing" in caplog.text

    async def test_delete_is_idempotent(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test deleting twice."""
        await reconciler.delete("m1")
        await reconciler.delete("m1")

        assert await store.get("m1") is None

    async def test_toggle_adds_reaction(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test adding a reaction to an existing bucket."""
        result = await reconciler.toggle_reaction("m1", "👍", "U_ALICE")

        document = await store.get("m1")
        assert document is not None
        assert result == {"👍": ["U2", "U_ALICE"]}
        assert document["reactions"] == result

    async def test_toggle_twice_restores_map(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test that a double toggle is a no-op."""
        await reconciler.toggle_reaction("m1", "🎉", "U_ALICE")
        await reconciler.toggle_reaction("m1", "🎉", "U_ALICE")

        document = await store.get("m1")
        assert document is not None
        assert document["reactions"] == {"👍": ["U2"]}

    async def test_toggle_starts_from_fresh_document(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test that a concurrent reaction by another user is kept."""
        await store.update("m1", {"reactions": {"👍": ["U2", "U3"]}})

        result = await reconciler.toggle_reaction("m1", "👍", "U_ALICE")

        assert result == {"👍": ["U2", "U3", "U_ALICE"]}

    async def test_toggle_removes_empty_bucket(
        self, reconciler: MutationReconciler
    ) -> None:
        """Test that the last user leaving removes the emoji."""
        result = await reconciler.toggle_reaction("m1", "👍", "U2")

        assert result == {}

    async def test_toggle_on_deleted_message_is_dropped(
        self, reconciler: MutationReconciler
    ) -> None:
        """Test reacting to a message deleted in the meantime."""
        assert await reconciler.toggle_reaction("missing", "👍", "U_ALICE") is None

    async def test_update_racing_a_delete_is_dropped(self) -> None:
        """Test a document vanishing between read and write."""
        store = AsyncMock()
        store.get.return_value = {"text": "hi", "reactions": {}}
        store.update.side_effect = DocumentNotFoundError("m1")

        result = await MutationReconciler(store).toggle_reaction("m1", "👍", "U1")

        assert result is None

    async def test_transient_failure_is_surfaced(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test that store failures reach the caller."""
        store.fail_next(StoreError("permission denied"))

        with pytest.raises(MutationFailedError) as exc_info:
            await reconciler.edit("m1", "changed")

        assert exc_info.value.operation == "edit"
        assert exc_info.value.document_id == "m1"
        assert isinstance(exc_info.value.cause, StoreError)
        document = await store.get("m1")
        assert document is not None
        assert document["text"] == "hello"

    async def test_delete_failure_is_surfaced(
        self, reconciler: MutationReconciler, store: InMemoryDocumentStore
    ) -> None:
        """Test a failing delete."""
        store.fail_next(OSError("network unreachable"))

        with pytest.raises(MutationFailedError):
            await reconciler.delete("m1")
