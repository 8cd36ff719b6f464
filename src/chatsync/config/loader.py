"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

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


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する

    Args:
        data: 展開対象のデータ（dict, list, str, その他）

    Returns:
        環境変数が展開されたデータ
    """
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """任意セクションを取得する（未指定なら空dict）

    Raises:
        ConfigValidationError: セクションがマッピングでない
    """
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Section '{name}' must be a mapping")
    return section


def _positive_number(value: Any, path: str) -> float:
    """正の数値であることを検証する"""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"'{path}' must be a number") from e
    if number <= 0:
        raise ConfigValidationError(f"'{path}' must be positive")
    return number


def _optional_positive_int(value: Any, path: str) -> int | None:
    """None または正の整数であることを検証する"""
    if value is None:
        return None
    return int(_positive_number(value, path))


def parse_config(data: dict[str, Any] | None) -> Config:
    """展開済みの設定dictから Config を組み立てる

    Args:
        data: YAMLから読み込んだ設定（None は全てデフォルト）

    Returns:
        Config オブジェクト

    Raises:
        ConfigValidationError: 設定値が不正
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigValidationError("Config root must be a mapping")

    # IdentityConfig
    identity_data = _section(data, "identity")
    identity = IdentityConfig(
        fallback_display_name=identity_data.get("fallback_display_name", "Anonymous"),
        guest_prefix=identity_data.get("guest_prefix", "Guest"),
    )

    # TimelineConfig
    timeline_data = _section(data, "timeline")
    fallback_channel = str(timeline_data.get("fallback_channel", "general")).strip()
    if not fallback_channel:
        raise ConfigValidationError("'timeline.fallback_channel' must not be empty")
    timeline = TimelineConfig(
        fallback_channel=fallback_channel,
        window_size=_optional_positive_int(
            timeline_data.get("window_size", 25), "timeline.window_size"
        ),
    )

    # ReadStateConfig
    read_state_data = _section(data, "read_state")
    read_state = ReadStateConfig(
        recency_horizon_seconds=_optional_positive_int(
            read_state_data.get("recency_horizon_seconds", 600),
            "read_state.recency_horizon_seconds",
        ),
    )

    # TypingConfig
    typing_data = _section(data, "typing")
    typing = TypingConfig(
        ttl_seconds=_positive_number(
            typing_data.get("ttl_seconds", 5.0), "typing.ttl_seconds"
        ),
        idle_seconds=_positive_number(
            typing_data.get("idle_seconds", 3.0), "typing.idle_seconds"
        ),
    )

    # NotificationConfig
    notifications_data = _section(data, "notifications")
    notifications = NotificationConfig(
        enabled=bool(notifications_data.get("enabled", True)),
    )

    # StoreConfig
    store_data = _section(data, "store")
    defaults = StoreConfig()
    store = StoreConfig(
        messages_collection=store_data.get(
            "messages_collection", defaults.messages_collection
        ),
        channels_collection=store_data.get(
            "channels_collection", defaults.channels_collection
        ),
        servers_collection=store_data.get(
            "servers_collection", defaults.servers_collection
        ),
        typing_collection=store_data.get(
            "typing_collection", defaults.typing_collection
        ),
        banned_collection=store_data.get(
            "banned_collection", defaults.banned_collection
        ),
    )

    # ModerationConfig (enabled の場合は banned_words が必須)
    moderation_data = _section(data, "moderation")
    moderation = ModerationConfig(enabled=bool(moderation_data.get("enabled", False)))
    if moderation.enabled:
        words = _validate_required_field(moderation_data, "banned_words", "moderation")
        if not isinstance(words, list) or not words:
            raise ConfigValidationError(
                "'moderation.banned_words' must be a non-empty list"
            )
        moderation.banned_words = [str(word) for word in words]

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
        )

    return Config(
        identity=identity,
        timeline=timeline,
        read_state=read_state,
        typing=typing,
        notifications=notifications,
        store=store,
        moderation=moderation,
        logging=logging_config,
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 設定値が不正
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    return parse_config(data)
