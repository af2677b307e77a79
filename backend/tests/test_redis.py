"""Tests for the Redis connection backing the compliance job queue."""

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from app.core import redis as redis_module
from app.core.config import settings


@pytest.fixture(autouse=True)
def reset_client() -> Generator[None, None, None]:
    """Drop any cached client around each test."""
    redis_module._redis_client = None
    yield
    redis_module._redis_client = None


@pytest.fixture
def mock_redis_class() -> Generator[MagicMock, None, None]:
    """Patch the Redis class used to open connections."""
    with patch("app.core.redis.Redis") as mock_class:
        yield mock_class


class TestRedisConnection:
    """Test Redis connection management."""

    def test_lazy_single_connection(self, mock_redis_class: MagicMock) -> None:
        """Test the connection is created once on first use and then reused."""
        assert redis_module._redis_client is None

        first = redis_module.get_redis()
        second = redis_module.get_redis()

        assert first is second is mock_redis_class.from_url.return_value
        assert mock_redis_class.from_url.call_count == 1

    def test_uses_settings_url_with_byte_responses(self, mock_redis_class: MagicMock) -> None:
        """Test the configured URL is used and responses are left as bytes for RQ."""
        redis_module.get_redis()

        args, kwargs = mock_redis_class.from_url.call_args
        assert args == (settings.redis_url,)
        assert "decode_responses" not in kwargs

    def test_close_then_reconnect(self, mock_redis_class: MagicMock) -> None:
        """Test closing drops the client so the next call reconnects."""
        old_client, new_client = MagicMock(), MagicMock()
        mock_redis_class.from_url.side_effect = [old_client, new_client]

        redis_module.get_redis()
        redis_module.close_redis()

        old_client.close.assert_called_once()
        assert redis_module._redis_client is None
        assert redis_module.get_redis() is new_client

    def test_close_without_connection(self) -> None:
        """Test closing when nothing was opened is a no-op."""
        redis_module.close_redis()
        assert redis_module._redis_client is None


class TestPingRedis:
    """Test Redis ping functionality."""

    def test_ping_success(self, mock_redis_class: MagicMock) -> None:
        """Test ping_redis reports a responsive server."""
        mock_redis_class.from_url.return_value.ping.return_value = True

        assert redis_module.ping_redis() is True

    def test_ping_failure(self, mock_redis_class: MagicMock) -> None:
        """Test ping_redis reports a failing server."""
        mock_redis_class.from_url.return_value.ping.side_effect = ConnectionError("Connection refused")

        assert redis_module.ping_redis() is False

    def test_ping_connect_failure(self, mock_redis_class: MagicMock) -> None:
        """Test ping_redis reports a connection that cannot be opened."""
        mock_redis_class.from_url.side_effect = ValueError("bad URL")

        assert redis_module.ping_redis() is False
