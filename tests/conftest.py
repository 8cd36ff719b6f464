"""Common fixtures."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from chatsync.domain.entities import Message, MessagePhase


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def now() -> datetime:
    """Create a fixed current time for testing."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now: datetime) -> FakeClock:
    """Create a clock fixed at ``now``."""
    return FakeClock(now)


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Factory for messages (confirmed unless created_at is None)."""

    def factory(
        id: str = "m1",
        text: str = "hello",
        author_id: str = "U_BOB",
        channel_id: str = "general",
        created_at: datetime | None = None,
        **kwargs: Any,
    ) -> Message:
        return Message(
            id=id,
            text=text,
            author_id=author_id,
            author_display_name=kwargs.pop("author_display_name", "Bob"),
            channel_id=channel_id,
            phase=(
                MessagePhase.PENDING if created_at is None else MessagePhase.CONFIRMED
            ),
            created_at=created_at,
            **kwargs,
        )

    return factory


@pytest.fixture
def raw_message() -> Callable[..., dict[str, Any]]:
    """Factory for raw message documents as delivered by the feed."""

    def factory(
        text: str = "hello",
        author_id: str = "U_BOB",
        channel_id: str | None = "general",
        created_at: Any = None,
        **extra: Any,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "text": text,
            "authorId": author_id,
            "authorDisplayName": extra.pop("author_display_name", "Bob"),
            "createdAt": created_at,
        }
        if channel_id is not None:
            data["channelId"] = channel_id
        data.update(extra)
        return data

    return factory
