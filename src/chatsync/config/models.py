"""設定データクラス"""

from dataclasses import dataclass, field


@dataclass
class IdentityConfig:
    """表示名解決の設定"""

    fallback_display_name: str = "Anonymous"
    guest_prefix: str = "Guest"


@dataclass
class TimelineConfig:
    """タイムライン設定

    Attributes:
        fallback_channel: channel フィールドを持たない旧メッセージの所属先
        window_size: フィードから読み込む最新メッセージの件数
    """

    fallback_channel: str = "general"
    window_size: int | None = 25


@dataclass
class ReadStateConfig:
    """未読・メンション表示の設定

    Attributes:
        recency_horizon_seconds: この秒数より古いメッセージは表示計算に含めない
            （None で無制限）
    """

    recency_horizon_seconds: int | None = 600


@dataclass
class TypingConfig:
    """入力中表示の設定"""

    ttl_seconds: float = 5.0
    idle_seconds: float = 3.0


@dataclass
class NotificationConfig:
    """通知音の設定"""

    enabled: bool = True


@dataclass
class StoreConfig:
    """ドキュメントストアのコレクション名"""

    messages_collection: str = "messages"
    channels_collection: str = "channels"
    servers_collection: str = "servers"
    typing_collection: str = "typing"
    banned_collection: str = "banned"


@dataclass
class ModerationConfig:
    """不適切語フィルタ設定"""

    enabled: bool = False
    banned_words: list[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    identity: IdentityConfig = field(default_factory=IdentityConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    read_state: ReadStateConfig = field(default_factory=ReadStateConfig)
    typing: TypingConfig = field(default_factory=TypingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    moderation: ModerationConfig = field(default_factory=ModerationConfig)
    logging: LoggingConfig | None = None
