"""
Tests for Redis client.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from shared.errors import CacheError, ConfigError
from shared.redis_client import RedisClient


@pytest.fixture
def mock_redis_client():
    """Create a mock Redis async client."""
    return AsyncMock()


@pytest.fixture
def redis_client(mock_redis_client):
    """Create a Redis client with mocked Redis."""
    client = RedisClient.__new__(RedisClient)
    client.client = mock_redis_client
    client.prefix = "roastme:cache:"
    return client


def test_redis_client_initialization(settings):
    """Test that Redis client initializes correctly."""
    mock_client = Mock()
    redis_settings = settings.model_copy(update={"redis_url": "redis://localhost:6379"})

    with patch("shared.redis_client.redis.from_url", return_value=mock_client) as from_url:
        client = RedisClient(redis_settings)

    from_url.assert_called_once_with("redis://localhost:6379")
    assert client.client is mock_client
    assert client.prefix == "roastme:cache:"


def test_redis_client_requires_url(settings):
    with pytest.raises(ConfigError, match="REDIS_URL is not configured"):
        RedisClient(settings)


def test_redis_client_initialization_failure(settings):
    """Test that ConfigError is raised on initialization failure."""
    redis_settings = settings.model_copy(update={"redis_url": "redis://localhost:6379"})
    with patch("shared.redis_client.redis.from_url", side_effect=Exception("Connection failed")):
        with pytest.raises(ConfigError, match="Failed to initialize Redis client"):
            RedisClient(redis_settings)


@pytest.mark.asyncio
async def test_redis_set(redis_client):
    """Test setting a string value."""
    redis_client.client.set = AsyncMock(return_value=True)

    result = await redis_client.set("jwt_valid:abc", "value", ex=300)

    assert result is True
    redis_client.client.set.assert_called_once_with("roastme:cache:jwt_valid:abc", b"value", ex=300)


@pytest.mark.asyncio
async def test_redis_get(redis_client):
    """Test getting a string value."""
    redis_client.client.get = AsyncMock(return_value=b"value")
    assert await redis_client.get("key") == "value"

    redis_client.client.get = AsyncMock(return_value=None)
    assert await redis_client.get("missing") is None


@pytest.mark.asyncio
async def test_redis_json_round_trip(redis_client):
    redis_client.client.set = AsyncMock(return_value=True)
    await redis_client.set_json("key", {"user_id": "user-1"}, ttl=60)
    stored = redis_client.client.set.call_args.args[1]

    redis_client.client.get = AsyncMock(return_value=stored)
    assert await redis_client.get_json("key") == {"user_id": "user-1"}


@pytest.mark.asyncio
async def test_redis_get_json_invalid(redis_client):
    redis_client.client.get = AsyncMock(return_value=b"{not json")
    with pytest.raises(CacheError, match="Failed to decode JSON"):
        await redis_client.get_json("key")


@pytest.mark.asyncio
async def test_redis_errors_raise_cache_error(redis_client):
    redis_client.client.get = AsyncMock(side_effect=Exception("Connection refused"))
    with pytest.raises(CacheError, match="Failed to get Redis key"):
        await redis_client.get("key")


@pytest.mark.asyncio
async def test_redis_health_check(redis_client):
    redis_client.client.ping = AsyncMock(return_value=True)
    assert await redis_client.health_check() is True

    redis_client.client.ping = AsyncMock(side_effect=Exception("down"))
    assert await redis_client.health_check() is False


@pytest.mark.asyncio
async def test_redis_close(redis_client):
    await redis_client.close()
    redis_client.client.aclose.assert_awaited_once()
