"""設定管理モジュール"""

from chatsync.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
    parse_config,
)
from chatsync.config.models import (
    Config,
    IdentityConfig,
    LoggingConfig,
    ModerationConfig,
    NotificationConfig,
    ReadStateConfig,
    StoreConfig,
    TimelineConfig,
    TypingConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "IdentityConfig",
    "LoggingConfig",
    "ModerationConfig",
    "NotificationConfig",
    "ReadStateConfig",
    "StoreConfig",
    "TimelineConfig",
    "TypingConfig",
    "expand_env_vars",
    "load_config",
    "parse_config",
]
