"""
Shared fixtures for telegram_logger tests.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
import requests

from telegram_logger.cache import InMemoryCounterStore
from telegram_logger.clock import MockClock
from telegram_logger.config import RateLimitConfig
from telegram_logger.service import TelegramService


# Start of a minute, so minute buckets line up with test arithmetic
FIXED_TIME = datetime(2025, 1, 2, 3, 4, 0, tzinfo=timezone.utc)


def make_response(
    status_code: int = 200,
    body: Any = None,
    raw_text: Optional[str] = None,
) -> MagicMock:
    """Build a fake requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code

    if raw_text is not None:
        response.text = raw_text
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        payload = {"ok": True, "result": {"message_id": 1}} if body is None else body
        response.text = json.dumps(payload)
        response.json.return_value = payload

    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    else:
        response.raise_for_status.return_value = None

    return response


@pytest.fixture
def clock():
    """Mock clock frozen at FIXED_TIME."""
    return MockClock(FIXED_TIME)


@pytest.fixture
def store(clock):
    """In-memory counter store driven by the mock clock."""
    return InMemoryCounterStore(clock)


@pytest.fixture
def session():
    """Fake HTTP session answering ok=true by default."""
    session = MagicMock(spec=requests.Session)
    session.post.return_value = make_response()
    return session


@pytest.fixture
def service(session, store, clock):
    """TelegramService wired to fakes."""
    return TelegramService(
        bot_token="test-token",
        timeout=10,
        rate_limit=RateLimitConfig(),
        store=store,
        clock=clock,
        session=session,
    )
