"""Shared pytest fixtures for MemeRadar tests.

This module provides fixtures for:
- Test environment and settings isolation
- Test data factories
- Mocked cache, repository, registry and upstream clients

Usage:
    @pytest.mark.unit
    def test_something(token_factory):
        record = token_factory(volume_24h=100)
        assert record.volume == 100
"""

import os
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from memeradar.config.settings import get_settings
from memeradar.data.cache.client import RedisCache
from memeradar.data.cache.token_cache import TokenCacheRepository
from memeradar.services.realtime.registry import SubscriberRegistry
from tests.factories.token import TokenRecordFactory

# =============================================================================
# Environment Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Pin environment variables and reset the cached settings per test."""
    original_env = os.environ.copy()

    os.environ["REDIS_URL"] = "redis://localhost:6379/15"
    os.environ["REFRESH_SCHEDULER_ENABLED"] = "false"
    os.environ["DEBUG"] = "false"
    get_settings.cache_clear()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    get_settings.cache_clear()


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def token_factory() -> type[TokenRecordFactory]:
    """Provide token record factory."""
    return TokenRecordFactory


# =============================================================================
# Mocked Collaborators
# =============================================================================


@pytest.fixture
def mock_redis() -> MagicMock:
    """Mock redis.asyncio.Redis client with async commands."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.mget = AsyncMock(return_value=[])
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def redis_cache(mock_redis: MagicMock) -> RedisCache:
    """RedisCache wired to the mock Redis client."""
    return RedisCache(url="redis://localhost:6379/15", ttl_seconds=30, client=mock_redis)


@pytest.fixture
def mock_repository() -> MagicMock:
    """Mock TokenCacheRepository; reads miss and writes succeed by default."""
    mock = MagicMock(spec=TokenCacheRepository)
    mock.get_all = AsyncMock(return_value=None)
    mock.get_all_raw = AsyncMock(return_value=None)
    mock.get_record = AsyncMock(return_value=None)
    mock.get_records_raw = AsyncMock(return_value=[])
    mock.get_filtered = AsyncMock(return_value=None)
    mock.set_all = AsyncMock(return_value=True)
    mock.set_record = AsyncMock(return_value=True)
    mock.set_records = AsyncMock(return_value=True)
    mock.set_filtered = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_registry() -> MagicMock:
    """Mock SubscriberRegistry."""
    mock = MagicMock(spec=SubscriberRegistry)
    mock.publish_changes = AsyncMock(return_value=0)
    mock.subscriber_count = 0
    return mock


@pytest.fixture
def mock_primary_client() -> MagicMock:
    """Mock DexScreener client returning no pairs."""
    mock = MagicMock()
    mock.search_pairs = AsyncMock(return_value={"pairs": []})
    mock.fetch_token_pairs = AsyncMock(return_value={"pairs": []})
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_secondary_client() -> MagicMock:
    """Mock GeckoTerminal client returning no entities."""
    mock = MagicMock()
    mock.fetch_tokens = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock
