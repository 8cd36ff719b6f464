"""Identity resolver for the current user's display name."""

import logging

from chatsync.domain.entities import AuthSession
from chatsync.domain.services.protocols import ProfileLookup

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Resolves the current user's canonical display name on demand.

    Resolution order:
    1. Username stored in the user's profile (overrides everything).
    2. Display name from the auth provider (regular users).
    3. Synthesized guest name ("Guest ABCD") for guests.
    4. Fallback name ("Anonymous").

    Nothing is cached: callers that match mentions need the name as it is
    at evaluation time. A failing profile lookup never raises; the
    deterministic fallback is returned instead.
    """

    def __init__(
        self,
        session: AuthSession,
        profiles: ProfileLookup | None = None,
        guest_prefix: str = "Guest",
        fallback_display_name: str = "Anonymous",
    ) -> None:
        """Initialize the resolver.

        Args:
            session: Current auth session.
            profiles: Profile store lookup (optional).
            guest_prefix: Prefix of synthesized guest names.
            fallback_display_name: Name when nothing else is available.
        """
        self._session = session
        self._profiles = profiles
        self._guest_prefix = guest_prefix
        self._fallback_display_name = fallback_display_name

    @property
    def current_user_id(self) -> str:
        """Current user ID."""
        return self._session.user_id

    @property
    def session(self) -> AuthSession:
        """Current auth session."""
        return self._session

    def synthesized_name(self) -> str:
        """Deterministic name used when no stored name is available."""
        if self._session.is_guest:
            return f"{self._guest_prefix} {self._session.guest_code}"
        return self._session.display_name or self._fallback_display_name

    async def resolve(self) -> str:
        """Resolve the current display name.

        Returns:
            The display name to use for mentions and outgoing messages.
        """
        if self._profiles is not None:
            try:
                username = await self._profiles.fetch_username(self._session.user_id)
            except Exception as e:
                logger.warning(
                    "Profile lookup failed for %s, using fallback name: %s",
                    self._session.user_id,
                    e,
                )
                return self.synthesized_name()
            if username and username.strip():
                return username.strip()

        return self.synthesized_name()
