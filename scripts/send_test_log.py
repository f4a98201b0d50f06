#!/usr/bin/env python3
"""
Send Test Log - Quick check that Telegram logging is working.

Usage:
    python scripts/send_test_log.py
    python scripts/send_test_log.py --level critical --with-exception
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from telegram_logger import ConfigurationError, TelegramLoggerConfig, create_telegram_logger
from telegram_logger.levels import LEVELS


def main() -> int:
    parser = argparse.ArgumentParser(description="Send a test record to the Telegram log channel")
    parser.add_argument("--level", default="error", choices=sorted(LEVELS),
                        help="Level of the test record")
    parser.add_argument("--message", default="Telegram logger test message",
                        help="Message text")
    parser.add_argument("--with-exception", action="store_true",
                        help="Attach a sample exception")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    load_dotenv()

    config = TelegramLoggerConfig.from_env(load_env_file=False)
    print("📋 Configuration:")
    print(f"  TELEGRAM_LOG_BOT_TOKEN: {'✅ Set' if config.bot_token else '❌ Missing'}")
    print(f"  TELEGRAM_LOG_CHAT_ID: {config.chat_id or '❌ Missing'}")
    print(f"  TELEGRAM_LOG_TOPIC_ID: {config.topic_id}")
    print()

    try:
        # Send regardless of the configured minimum level
        log = create_telegram_logger(config, name="telegram.smoke_test", level="debug")
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        return 1

    log.propagate = False
    level = LEVELS[args.level]
    context = {"source": "send_test_log.py"}

    if args.with_exception:
        try:
            raise RuntimeError("Sample failure for Telegram logger test")
        except RuntimeError:
            log.log(level, args.message, exc_info=True, extra={"context": context})
    else:
        log.log(level, args.message, extra={"context": context})

    print("📤 Test record emitted. Check your Telegram chat.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
