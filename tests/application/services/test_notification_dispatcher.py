"""Tests for NotificationDispatcher."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatsync.application.services.identity_resolver import IdentityResolver
from chatsync.application.services.notification_dispatcher import (
    NotificationDispatcher,
    PlayedNotificationLog,
)
from chatsync.domain.entities import AuthSession, Event, EventType


class TestPlayedNotificationLog:
    """PlayedNotificationLog tests."""

    def test_record(self) -> None:
        """Test that a key is only recorded once."""
        log = PlayedNotificationLog()

        assert log.record(("m1", "hi"))
        assert not log.record(("m1", "hi"))
        assert ("m1", "hi") in log
        assert len(log) == 1


class TestNotificationDispatcher:
    """NotificationDispatcher tests."""

    @pytest.fixture
    def audio(self) -> MagicMock:
        """Create a mock audio output."""
        return MagicMock()

    @pytest.fixture
    def played(self) -> PlayedNotificationLog:
        """Create an empty notification log."""
        return PlayedNotificationLog()

    @pytest.fixture
    def identity(self) -> IdentityResolver:
        """Create a resolver for Alice."""
        return IdentityResolver(AuthSession(user_id="U_ALICE", display_name="Alice"))

    @pytest.fixture
    def notifier(
        self,
        identity: IdentityResolver,
        audio: MagicMock,
        played: PlayedNotificationLog,
    ) -> NotificationDispatcher:
        """Create a dispatcher."""
        return NotificationDispatcher(identity, audio, played)

    async def test_mention_plays_cue_once(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test exactly-once notification per message and text."""
        message = make_message(text="hey @Alice", created_at=now)

        first = await notifier.evaluate(message)
        second = await notifier.evaluate(message)

        assert first is True
        assert second is False
        audio.play_cue.assert_called_once()

    async def test_edited_text_fires_again(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that a changed text is a new candidate."""
        await notifier.evaluate(make_message(text="hey @Alice", created_at=now))

        fired = await notifier.evaluate(
            make_message(text="hey @Alice, again", created_at=now)
        )

        assert fired is True
        assert audio.play_cue.call_count == 2

    async def test_no_mention(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        played: PlayedNotificationLog,
        make_message,
        now: datetime,
    ) -> None:
        """Test that a message without a mention is silent."""
        assert not await notifier.evaluate(make_message(text="hello", created_at=now))
        audio.play_cue.assert_not_called()
        assert len(played) == 0

    async def test_own_message(
        self, notifier: NotificationDispatcher, audio: MagicMock, make_message, now
    ) -> None:
        """Test that mentioning yourself is silent."""
        message = make_message(text="@Alice note", author_id="U_ALICE", created_at=now)

        assert not await notifier.evaluate(message)
        audio.play_cue.assert_not_called()

    async def test_pending_message(
        self, notifier: NotificationDispatcher, audio: MagicMock, make_message
    ) -> None:
        """Test that unconfirmed messages are never evaluated."""
        assert not await notifier.evaluate(make_message(text="@Alice", created_at=None))
        audio.play_cue.assert_not_called()

    async def test_overlapping_evaluations_fire_once(
        self, audio: MagicMock, played: PlayedNotificationLog, make_message, now
    ) -> None:
        """Test concurrent evaluation of the same key."""
        profiles = AsyncMock()

        async def slow_lookup(user_id: str) -> str:
            await asyncio.sleep(0.01)
            return "Alice"

        profiles.fetch_username.side_effect = slow_lookup
        identity = IdentityResolver(AuthSession(user_id="U_ALICE"), profiles)
        notifier = NotificationDispatcher(identity, audio, played)
        message = make_message(text="@Alice look", created_at=now)

        results = await asyncio.gather(
            notifier.evaluate(message), notifier.evaluate(message)
        )

        assert sorted(results) == [False, True]
        audio.play_cue.assert_called_once()

    async def test_disabled_records_without_playing(
        self,
        identity: IdentityResolver,
        audio: MagicMock,
        played: PlayedNotificationLog,
        make_message,
        now: datetime,
    ) -> None:
        """Test that disabled notifications still mark the key."""
        notifier = NotificationDispatcher(identity, audio, played, enabled=False)
        message = make_message(text="@Alice", created_at=now)

        assert not await notifier.evaluate(message)
        audio.play_cue.assert_not_called()
        assert message.notification_key in played

    async def test_audio_failure_is_logged(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a broken audio device does not raise."""
        audio.play_cue.side_effect = OSError("no device")

        assert await notifier.evaluate(make_message(text="@Alice", created_at=now))
        assert "Failed to play notification cue" in caplog.text

    async def test_shared_log_across_dispatchers(
        self,
        identity: IdentityResolver,
        audio: MagicMock,
        played: PlayedNotificationLog,
        make_message,
        now: datetime,
    ) -> None:
        """Test that a re-created dispatcher does not replay old mentions."""
        message = make_message(text="@Alice", created_at=now)
        await NotificationDispatcher(identity, audio, played).evaluate(message)

        replayed = await NotificationDispatcher(identity, audio, played).evaluate(
            message
        )

        assert not replayed
        audio.play_cue.assert_called_once()

    async def test_handle_message_confirmed(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test the event handler entry point."""
        event = Event(
            type=EventType.MESSAGE_CONFIRMED,
            payload={"message": make_message(text="@Alice", created_at=now)},
        )

        await notifier.handle_message_confirmed(event)

        audio.play_cue.assert_called_once()

    async def test_moderation_rewrite_does_not_replay(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that a moderation rewrite of a mention stays silent."""
        await notifier.evaluate(make_message(text="darn @Alice", created_at=now))
        rewritten = make_message(
            text="I got banned for bad words! (Original: **** @Alice)",
            created_at=now,
            moderated=True,
        )

        played = await notifier.evaluate(rewritten, is_new=False)

        assert not played
        audio.play_cue.assert_called_once()

    async def test_user_edit_still_replays(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that an edit changing the text is a new candidate."""
        await notifier.evaluate(make_message(text="@Alice hi", created_at=now))

        played = await notifier.evaluate(
            make_message(text="@Alice hi!", created_at=now, edited_at=now),
            is_new=False,
        )

        assert played
        assert audio.play_cue.call_count == 2


class TestNotificationDispatcherHorizon:
    """Recency horizon tests."""

    @pytest.fixture
    def audio(self) -> MagicMock:
        """Create a mock audio output."""
        return MagicMock()

    @pytest.fixture
    def notifier(self, audio: MagicMock, clock) -> NotificationDispatcher:
        """Create a dispatcher with a 10 minute horizon."""
        return NotificationDispatcher(
            IdentityResolver(AuthSession(user_id="U_ALICE", display_name="Alice")),
            audio,
            PlayedNotificationLog(),
            clock=clock,
            horizon=timedelta(minutes=10),
        )

    async def test_old_message_is_silent(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that history older than the horizon never plays."""
        message = make_message(text="@Alice", created_at=now - timedelta(days=3))

        assert not await notifier.evaluate(message)
        audio.play_cue.assert_not_called()

    async def test_recent_message_plays(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that a message inside the horizon plays."""
        message = make_message(text="@Alice", created_at=now - timedelta(minutes=5))

        assert await notifier.evaluate(message)
        audio.play_cue.assert_called_once()

    async def test_recent_edit_of_old_message_plays(
        self,
        notifier: NotificationDispatcher,
        audio: MagicMock,
        make_message,
        now: datetime,
    ) -> None:
        """Test that the edit time counts as activity."""
        message = make_message(
            text="@Alice", created_at=now - timedelta(days=3), edited_at=now
        )

        assert await notifier.evaluate(message, is_new=False)
        audio.play_cue.assert_called_once()
