"""Authenticated session entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthSession:
    """Current user as supplied by the auth provider.

    Attributes:
        user_id: Current user ID.
        display_name: Display name from the auth provider (may be empty).
        is_guest: Whether the user signed in anonymously.
        is_privileged: Whether the user may create/delete channels.
        photo_url: Avatar URL from the auth provider.
    """

    user_id: str
    display_name: str | None = None
    is_guest: bool = False
    is_privileged: bool = False
    photo_url: str | None = None

    @property
    def guest_code(self) -> str:
        """Deterministic short code used to synthesize guest names."""
        return self.user_id[-4:].upper()
