"""
Telegram Logger - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the Telegram log channel.

SOURCES:
1. Dataclass defaults (mirror Telegram's documented limits)
2. Environment variables (TELEGRAM_LOG_*), with .env support
3. Nested dictionaries (from_dict) for framework-style config files
4. Keyword overrides (merged)

CRITICAL CONSTRAINTS:
- Missing bot token / chat id is fatal at setup, never at send time
- Retries are bounded

============================================================
"""

import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError


DEFAULT_LEVEL_EMOJIS: Dict[str, str] = {
    "debug": "🐛",
    "info": "ℹ️",
    "notice": "📢",
    "warning": "⚠️",
    "error": "❌",
    "critical": "🔥",
    "alert": "🚨",
    "emergency": "💥",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value: {value!r}")


def _parse_optional_int(value: Any, key: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid integer for {key}: {value!r}",
            config_key=key,
            cause=e,
        )


# ============================================================
# FORMAT OPTIONS
# ============================================================

@dataclass(frozen=True)
class FormatOptions:
    """
    Message formatting options.

    Immutable per formatter instance.
    """

    include_date: bool = True
    """Append the record timestamp to the header."""

    include_level: bool = True
    """Render the bold level name."""

    include_context: bool = True
    """Render the Context block."""

    include_trace: bool = True
    """Render the Stack Trace block for ERROR and above."""

    max_message_length: int = 4096
    """Hard upper bound on output length (Telegram limit)."""

    use_emojis: bool = True
    """Prefix the level with its emoji."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormatOptions":
        """Build from a mapping, ignoring unknown keys."""
        return cls(**_format_kwargs(data))


# ============================================================
# RETRY POLICY
# ============================================================

@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy for a single record.

    Backoff after failed attempt n is delay_ms * 2**(n-1), or
    max(delay_ms * 2, 2000) after a timeout.
    """

    enabled: bool = True
    """Use send_with_retry instead of a single send."""

    max_attempts: int = 3
    """Total attempts including the first."""

    delay_ms: int = 1000
    """Base backoff delay in milliseconds."""


# ============================================================
# RATE LIMIT CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class RateLimitConfig:
    """
    Local send budget.

    Telegram allows ~30 messages per second per bot; the defaults
    stay below that to avoid 429 responses.
    """

    enabled: bool = True
    """Whether the local pre-check runs."""

    max_per_second: int = 20
    """Maximum messages per wall-clock second."""

    max_per_minute: int = 1000
    """Maximum messages per wall-clock minute."""


# ============================================================
# MASTER CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class TelegramLoggerConfig:
    """
    Master configuration for the Telegram log channel.
    """

    bot_token: str = ""
    """Bot API token from @BotFather."""

    chat_id: str = ""
    """Destination chat id or @channel username."""

    topic_id: Optional[int] = None
    """Forum topic (message_thread_id) inside the chat."""

    level: str = "error"
    """Minimum level name sent to Telegram."""

    enabled: bool = True
    """Master switch; disabled config yields a null logger."""

    timeout: float = 10.0
    """Per-request HTTP timeout in seconds."""

    format: FormatOptions = field(default_factory=FormatOptions)
    """Formatting options."""

    emojis: Dict[str, str] = field(default_factory=dict)
    """Per-level emoji overrides, merged over DEFAULT_LEVEL_EMOJIS."""

    retry: RetryPolicy = field(default_factory=RetryPolicy)
    """Retry policy."""

    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    """Rate limit configuration."""

    @property
    def level_emojis(self) -> Dict[str, str]:
        """Defaults with user overrides applied."""
        merged = dict(DEFAULT_LEVEL_EMOJIS)
        merged.update({k.lower(): v for k, v in self.emojis.items()})
        return merged

    def validate(self) -> "TelegramLoggerConfig":
        """
        Check that the configuration can deliver anything.

        Raises:
            ConfigurationError: On missing credentials or invalid limits
        """
        if not self.bot_token:
            raise ConfigurationError(
                "Telegram Logger: bot_token and chat_id must be configured",
                config_key="bot_token",
            )
        if self.chat_id is None or str(self.chat_id).strip() == "":
            raise ConfigurationError(
                "Telegram Logger: bot_token and chat_id must be configured",
                config_key="chat_id",
            )
        if self.retry.max_attempts < 1:
            raise ConfigurationError(
                "retry.max_attempts must be at least 1",
                config_key="retry.max_attempts",
            )
        if self.format.max_message_length < 1:
            raise ConfigurationError(
                "format.max_message_length must be positive",
                config_key="format.max_message_length",
            )
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", config_key="timeout")
        return self

    def merged(self, **overrides: Any) -> "TelegramLoggerConfig":
        """
        Return a copy with overrides applied.

        Nested sections (format, retry, rate_limit) accept either a
        dataclass instance or a partial mapping; emojis are merged.
        """
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None and key not in ("topic_id",):
                continue
            if key == "format" and isinstance(value, Mapping):
                value = replace(self.format, **_format_kwargs(value))
            elif key == "retry" and isinstance(value, Mapping):
                value = replace(self.retry, **_retry_kwargs(value))
            elif key == "rate_limit" and isinstance(value, Mapping):
                value = replace(self.rate_limit, **_rate_limit_kwargs(value))
            elif key == "emojis":
                value = {**self.emojis, **dict(value)}
            changes[key] = value
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TelegramLoggerConfig":
        """
        Build from a nested mapping.

        Accepts the framework config layout:
        retry {enabled, max_attempts, delay} and
        rate_limit {enabled, max_messages_per_second, max_messages_per_minute}.
        """
        base = cls()
        return base.merged(
            bot_token=data.get("bot_token") or "",
            chat_id=str(data.get("chat_id") or ""),
            topic_id=_parse_optional_int(data.get("topic_id"), "topic_id"),
            level=data.get("level"),
            enabled=_parse_bool(data.get("enabled"), True),
            timeout=float(data["timeout"]) if data.get("timeout") is not None else None,
            format=FormatOptions.from_dict(data.get("format") or {}),
            emojis=data.get("emojis") or {},
            retry=data.get("retry") or {},
            rate_limit=data.get("rate_limit") or {},
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ) -> "TelegramLoggerConfig":
        """
        Build from TELEGRAM_LOG_* environment variables.

        Args:
            environ: Mapping to read (defaults to os.environ)
            load_env_file: Load a .env file first via python-dotenv
        """
        if environ is None:
            if load_env_file:
                load_dotenv()
            environ = os.environ

        return cls.from_dict({
            "bot_token": environ.get("TELEGRAM_LOG_BOT_TOKEN", ""),
            "chat_id": environ.get("TELEGRAM_LOG_CHAT_ID", ""),
            "topic_id": environ.get("TELEGRAM_LOG_TOPIC_ID"),
            "level": environ.get("TELEGRAM_LOG_LEVEL", "error"),
            "enabled": environ.get("TELEGRAM_LOG_ENABLED", "true"),
            "timeout": environ.get("TELEGRAM_LOG_TIMEOUT", 10),
        })

    @classmethod
    def for_testing(cls) -> "TelegramLoggerConfig":
        """Get configuration for testing."""
        return cls(
            bot_token="test-token",
            chat_id="123456789",
            retry=RetryPolicy(max_attempts=3, delay_ms=10),
        )


def _format_kwargs(data: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for f in fields(FormatOptions):
        if f.name not in data:
            continue
        if f.name == "max_message_length":
            kwargs[f.name] = int(data[f.name])
        else:
            kwargs[f.name] = _parse_bool(data[f.name], f.default)
    return kwargs


def _retry_kwargs(data: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if "enabled" in data:
        kwargs["enabled"] = _parse_bool(data["enabled"], True)
    if "max_attempts" in data:
        kwargs["max_attempts"] = int(data["max_attempts"])
    # "delay" is the framework config key
    if "delay" in data:
        kwargs["delay_ms"] = int(data["delay"])
    if "delay_ms" in data:
        kwargs["delay_ms"] = int(data["delay_ms"])
    return kwargs


def _rate_limit_kwargs(data: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if "enabled" in data:
        kwargs["enabled"] = _parse_bool(data["enabled"], True)
    for key in ("max_messages_per_second", "max_per_second"):
        if key in data:
            kwargs["max_per_second"] = int(data[key])
    for key in ("max_messages_per_minute", "max_per_minute"):
        if key in data:
            kwargs["max_per_minute"] = int(data[key])
    return kwargs


__all__ = [
    "DEFAULT_LEVEL_EMOJIS",
    "FormatOptions",
    "RetryPolicy",
    "RateLimitConfig",
    "TelegramLoggerConfig",
]
