"""Tests for ChangeNormalizer."""

from datetime import datetime, timezone

import pytest

from chatsync.domain.entities import Attachment, MessagePhase, Reaction
from chatsync.domain.repositories import SERVER_TIMESTAMP
from chatsync.infrastructure.feed.normalizer import (
    ChangeNormalizer,
    ChannelSource,
    to_document,
)


class TestChangeNormalizer:
    """ChangeNormalizer tests."""

    @pytest.fixture
    def normalizer(self) -> ChangeNormalizer:
        """Create a normalizer with default fallbacks."""
        return ChangeNormalizer()

    def test_confirmed_message(self, normalizer: ChangeNormalizer, raw_message) -> None:
        """Test a fully populated snapshot."""
        created_at = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        data = raw_message(
            text="hello", author_id="U1", channel_id="random", created_at=created_at
        )

        message = normalizer.normalize("m1", data)

        assert message.id == "m1"
        assert message.text == "hello"
        assert message.author_id == "U1"
        assert message.channel_id == "random"
        assert message.phase is MessagePhase.CONFIRMED
        assert message.created_at == created_at

    def test_missing_timestamp_is_pending(
        self, normalizer: ChangeNormalizer, raw_message
    ) -> None:
        """Test that an unacknowledged write is pending."""
        message = normalizer.normalize("m1", raw_message(created_at=None))

        assert message.phase is MessagePhase.PENDING
        assert message.created_at is None

    def test_missing_channel_defaults_to_general(
        self, normalizer: ChangeNormalizer, raw_message
    ) -> None:
        """Test that legacy records without a channel land in general."""
        data = raw_message(channel_id=None)

        message = normalizer.normalize("m1", data)

        assert message.channel_id == "general"
        assert normalizer.resolve_channel(data) == ("general", ChannelSource.DEFAULTED)

    def test_custom_fallback_channel(self, raw_message) -> None:
        """Test the configured fallback channel is used."""
        normalizer = ChangeNormalizer(fallback_channel="lobby")

        message = normalizer.normalize("m1", raw_message(channel_id=None))

        assert message.channel_id == "lobby"

    def test_legacy_channel_field(self, normalizer: ChangeNormalizer) -> None:
        """Test the legacy channel field is honored."""
        data = {"text": "hi", "uid": "U1", "channel": "random"}

        assert normalizer.resolve_channel(data) == (
            "random",
            ChannelSource.LEGACY_FIELD,
        )
        assert normalizer.normalize("m1", data).channel_id == "random"

    def test_legacy_author_fields(self, normalizer: ChangeNormalizer) -> None:
        """Test legacy author field names."""
        data = {
            "text": "hi",
            "uid": "U1",
            "displayName": "Alice",
            "photoURL": "https://example.com/a.png",
        }

        message = normalizer.normalize("m1", data)

        assert message.author_id == "U1"
        assert message.author_display_name == "Alice"
        assert message.author_photo_url == "https://example.com/a.png"

    def test_missing_display_name_is_anonymous(
        self, normalizer: ChangeNormalizer
    ) -> None:
        """Test the display name fallback."""
        message = normalizer.normalize("m1", {"text": "hi", "authorId": "U1"})

        assert message.author_display_name == "Anonymous"

    def test_is_idempotent(self, normalizer: ChangeNormalizer, raw_message) -> None:
        """Test that the same snapshot always yields an equal message."""
        data = raw_message(
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            reactions={"👍": ["U2"]},
        )

        assert normalizer.normalize("m1", data) == normalizer.normalize("m1", data)

    def test_reactions_drop_empty_buckets_and_duplicates(
        self, normalizer: ChangeNormalizer, raw_message
    ) -> None:
        """Test reaction parsing."""
        data = raw_message(reactions={"👍": ["U2", "U2", "U3"], "🎉": []})

        message = normalizer.normalize("m1", data)

        assert message.reactions == (Reaction(emoji="👍", user_ids=("U2", "U3")),)

    def test_attachment(self, normalizer: ChangeNormalizer, raw_message) -> None:
        """Test attachment parsing and the MIME type default."""
        data = raw_message(attachment={"url": "https://cdn/x.bin", "name": "x.bin"})

        message = normalizer.normalize("m1", data)

        assert message.attachment == Attachment(
            url="https://cdn/x.bin",
            mime_type="application/octet-stream",
            name="x.bin",
        )

    def test_attachment_without_url_is_ignored(
        self, normalizer: ChangeNormalizer, raw_message
    ) -> None:
        """Test that an attachment must carry a URL."""
        message = normalizer.normalize("m1", raw_message(attachment={"name": "x"}))

        assert message.attachment is None

    def test_edited_at(self, normalizer: ChangeNormalizer, raw_message) -> None:
        """Test the edit marker."""
        data = raw_message(
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            editedAt=datetime(2024, 1, 1, 0, 5, tzinfo=timezone.utc),
        )

        assert normalizer.normalize("m1", data).is_edited

    def test_moderated(self, normalizer: ChangeNormalizer, raw_message) -> None:
        """Test the moderation marker."""
        data = raw_message(
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc), moderated=True
        )

        assert normalizer.normalize("m1", data).moderated
        assert not normalizer.normalize("m1", raw_message()).moderated


class TestToDocument:
    """to_document tests."""

    def test_pending_message_uses_server_timestamp(self, make_message) -> None:
        """Test that the store is asked to assign createdAt."""
        document = to_document(make_message(created_at=None))

        assert document["createdAt"] is SERVER_TIMESTAMP
        assert document["channelId"] == "general"
        assert "editedAt" not in document

    def test_round_trip(self, make_message) -> None:
        """Test that a confirmed message survives serialization."""
        message = make_message(
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            reactions=(Reaction(emoji="👍", user_ids=("U2",)),),
            attachment=Attachment(
                url="https://cdn/a.png", mime_type="image/png", name="a.png"
            ),
            server_id="s1",
            author_photo_url="https://example.com/b.png",
        )

        assert ChangeNormalizer().normalize(message.id, to_document(message)) == message
