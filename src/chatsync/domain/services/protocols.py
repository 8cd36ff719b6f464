"""External collaborator protocols."""

from typing import Protocol


class ProfileLookup(Protocol):
    """プロフィールストアの抽象インターフェース

    ユーザーが設定したユーザー名（表示名の上書き）を取得する。
    """

    async def fetch_username(self, user_id: str) -> str | None:
        """ユーザー名を取得する

        Args:
            user_id: ユーザー ID

        Returns:
            保存されたユーザー名（未設定の場合は None）

        Raises:
            IdentityResolutionError: 取得に失敗
        """
        ...


class AudioOutput(Protocol):
    """Audible cue output (fire-and-forget)."""

    def play_cue(self) -> None:
        """Play the mention notification cue."""
        ...


class UploadProvider(Protocol):
    """Binary blob storage returning download URLs."""

    async def upload(self, data: bytes, name: str, mime_type: str) -> str:
        """Upload a blob.

        Args:
            data: File content.
            name: File name.
            mime_type: MIME type.

        Returns:
            Download URL of the stored blob.
        """
        ...
