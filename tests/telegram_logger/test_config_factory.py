"""
Tests for configuration loading and the logger factory.
"""

import logging
import uuid

import pytest

from telegram_logger.config import (
    DEFAULT_LEVEL_EMOJIS,
    FormatOptions,
    RetryPolicy,
    TelegramLoggerConfig,
)
from telegram_logger.exceptions import ConfigurationError
from telegram_logger.factory import create_telegram_logger
from telegram_logger.handler import TelegramHandler
from telegram_logger.levels import ALERT


@pytest.fixture
def logger_name():
    name = f"test.factory.{uuid.uuid4().hex}"
    yield name
    target = logging.getLogger(name)
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()


# ============================================================
# CONFIGURATION
# ============================================================

class TestValidation:

    def test_testing_config_is_valid(self):
        config = TelegramLoggerConfig.for_testing()

        assert config.validate() is config

    @pytest.mark.parametrize("overrides", [
        {"bot_token": ""},
        {"chat_id": ""},
        {"chat_id": "   "},
    ])
    def test_missing_credentials(self, overrides):
        config = TelegramLoggerConfig.for_testing().merged(**overrides)

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        assert "bot_token and chat_id must be configured" in str(exc_info.value)

    def test_zero_attempts_rejected(self):
        config = TelegramLoggerConfig.for_testing().merged(retry={"max_attempts": 0})

        with pytest.raises(ConfigurationError):
            config.validate()


class TestFromEnv:

    def test_reads_variables(self):
        config = TelegramLoggerConfig.from_env({
            "TELEGRAM_LOG_BOT_TOKEN": "abc",
            "TELEGRAM_LOG_CHAT_ID": "-100123",
            "TELEGRAM_LOG_TOPIC_ID": "42",
            "TELEGRAM_LOG_LEVEL": "warning",
            "TELEGRAM_LOG_TIMEOUT": "5",
        })

        assert config.bot_token == "abc"
        assert config.chat_id == "-100123"
        assert config.topic_id == 42
        assert config.level == "warning"
        assert config.timeout == 5.0
        assert config.enabled is True

    def test_defaults(self):
        config = TelegramLoggerConfig.from_env({})

        assert config.bot_token == ""
        assert config.topic_id is None
        assert config.level == "error"
        assert config.timeout == 10.0

    @pytest.mark.parametrize("value", ["false", "0", "no", "OFF"])
    def test_enabled_false(self, value):
        config = TelegramLoggerConfig.from_env({"TELEGRAM_LOG_ENABLED": value})

        assert config.enabled is False

    def test_invalid_topic(self):
        with pytest.raises(ConfigurationError) as exc_info:
            TelegramLoggerConfig.from_env({"TELEGRAM_LOG_TOPIC_ID": "general"})

        assert exc_info.value.config_key == "topic_id"

    def test_invalid_boolean(self):
        with pytest.raises(ConfigurationError):
            TelegramLoggerConfig.from_env({"TELEGRAM_LOG_ENABLED": "maybe"})


class TestFromDict:

    def test_framework_keys(self):
        config = TelegramLoggerConfig.from_dict({
            "bot_token": "abc",
            "chat_id": 123,
            "retry": {"enabled": True, "max_attempts": 5, "delay": 250},
            "rate_limit": {
                "enabled": False,
                "max_messages_per_second": 10,
                "max_messages_per_minute": 100,
            },
            "format": {"include_date": False, "max_message_length": 1000, "unknown": 1},
        })

        assert config.chat_id == "123"
        assert config.retry == RetryPolicy(enabled=True, max_attempts=5, delay_ms=250)
        assert config.rate_limit.enabled is False
        assert config.rate_limit.max_per_second == 10
        assert config.rate_limit.max_per_minute == 100
        assert config.format == FormatOptions(include_date=False, max_message_length=1000)

    def test_emojis_are_merged_over_defaults(self):
        config = TelegramLoggerConfig.from_dict({"emojis": {"ERROR": "🛑"}})

        emojis = config.level_emojis
        assert emojis["error"] == "🛑"
        assert emojis["debug"] == DEFAULT_LEVEL_EMOJIS["debug"]
        assert len(emojis) == len(DEFAULT_LEVEL_EMOJIS)

    def test_format_strings_are_converted(self):
        config = TelegramLoggerConfig.from_dict({
            "format": {
                "include_date": "false",
                "use_emojis": "0",
                "include_trace": "yes",
                "max_message_length": "1000",
            },
        })

        assert config.format.include_date is False
        assert config.format.use_emojis is False
        assert config.format.include_trace is True
        assert config.format.max_message_length == 1000

    def test_invalid_format_boolean(self):
        with pytest.raises(ConfigurationError):
            FormatOptions.from_dict({"include_context": "sometimes"})


class TestMerged:

    def test_none_is_ignored(self):
        base = TelegramLoggerConfig.for_testing()

        assert base.merged(bot_token=None, level=None) == base

    def test_topic_can_be_cleared(self):
        base = TelegramLoggerConfig.for_testing().merged(topic_id=5)

        assert base.merged(topic_id=None).topic_id is None

    def test_partial_nested_sections(self):
        config = TelegramLoggerConfig.for_testing().merged(
            format={"use_emojis": False},
            rate_limit={"max_per_second": 5},
        )

        assert config.format.use_emojis is False
        assert config.format.include_date is True
        assert config.rate_limit.max_per_second == 5
        assert config.rate_limit.max_per_minute == 1000

    def test_format_mapping_override_is_converted(self):
        config = TelegramLoggerConfig.for_testing().merged(
            format={"include_level": "off", "unknown": True}
        )

        assert config.format.include_level is False

    def test_emojis_accumulate(self):
        config = TelegramLoggerConfig.for_testing().merged(emojis={"info": "💬"})
        config = config.merged(emojis={"error": "🛑"})

        assert config.emojis == {"info": "💬", "error": "🛑"}


# ============================================================
# FACTORY
# ============================================================

class TestCreateTelegramLogger:

    def test_missing_credentials_raise(self, logger_name):
        config = TelegramLoggerConfig(bot_token="", chat_id="")

        with pytest.raises(ConfigurationError):
            create_telegram_logger(config, name=logger_name)

        assert logging.getLogger(logger_name).handlers == []

    def test_disabled_yields_null_handler(self, logger_name):
        config = TelegramLoggerConfig(enabled=False)

        log = create_telegram_logger(config, name=logger_name)

        assert len(log.handlers) == 1
        assert isinstance(log.handlers[0], logging.NullHandler)

    def test_handler_configuration(self, logger_name):
        log = create_telegram_logger(
            TelegramLoggerConfig.for_testing(),
            name=logger_name,
            level="alert",
            topic_id=7,
        )

        handlers = [h for h in log.handlers if isinstance(h, TelegramHandler)]
        assert len(handlers) == 1
        handler = handlers[0]
        assert handler.level == ALERT
        assert handler.chat_id == "123456789"
        assert handler.topic_id == 7
        assert handler.retry.delay_ms == 10
        assert log.level <= ALERT

    def test_format_override_reaches_formatter(self, logger_name):
        log = create_telegram_logger(
            TelegramLoggerConfig.for_testing(),
            name=logger_name,
            format={"use_emojis": False},
            emojis={"error": "🛑"},
        )

        handler = log.handlers[0]
        assert handler.telegram_formatter.options.use_emojis is False
        assert handler.telegram_formatter.emojis["error"] == "🛑"

    def test_repeated_calls_replace_handler(self, logger_name):
        config = TelegramLoggerConfig.for_testing()

        create_telegram_logger(config, name=logger_name)
        log = create_telegram_logger(config, name=logger_name, level="critical")

        assert len(log.handlers) == 1
        assert log.handlers[0].level == logging.CRITICAL

    def test_disable_after_enable_replaces_handler(self, logger_name):
        create_telegram_logger(TelegramLoggerConfig.for_testing(), name=logger_name)
        log = create_telegram_logger(
            TelegramLoggerConfig.for_testing(), name=logger_name, enabled=False
        )

        assert len(log.handlers) == 1
        assert isinstance(log.handlers[0], logging.NullHandler)

    def test_unrelated_handlers_are_kept(self, logger_name):
        target = logging.getLogger(logger_name)
        stream = logging.StreamHandler()
        target.addHandler(stream)

        log = create_telegram_logger(TelegramLoggerConfig.for_testing(), name=logger_name)

        assert stream in log.handlers
        assert len(log.handlers) == 2
