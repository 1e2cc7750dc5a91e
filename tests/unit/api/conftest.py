"""Fixtures for API tests.

The app is built without running its lifespan; long-lived components are
swapped in through dependency overrides.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from memeradar.api.dependencies import get_cache, get_subscriber_registry, get_token_service
from memeradar.data.cache.client import RedisCache
from memeradar.main import create_app
from memeradar.services.realtime.registry import SubscriberRegistry
from memeradar.services.token.aggregator import RefreshResult, TokenAggregator
from memeradar.services.token.service import TokenService


@pytest.fixture
def mock_aggregator() -> MagicMock:
    mock = MagicMock(spec=TokenAggregator)
    mock.collect = AsyncMock(return_value=[])
    mock.fetch_single = AsyncMock(return_value=None)
    mock.refresh = AsyncMock(return_value=RefreshResult())
    return mock


@pytest.fixture
def registry() -> SubscriberRegistry:
    return SubscriberRegistry()


@pytest.fixture
def healthy_cache() -> MagicMock:
    mock = MagicMock(spec=RedisCache)
    mock.health_check = AsyncMock(
        return_value={"status": "connected", "healthy": True, "latency_ms": 0.4}
    )
    return mock


@pytest.fixture
def app(mock_aggregator, mock_repository, registry, healthy_cache) -> FastAPI:
    application = create_app()
    service = TokenService(mock_aggregator, mock_repository, registry)
    application.dependency_overrides[get_token_service] = lambda: service
    application.dependency_overrides[get_subscriber_registry] = lambda: registry
    application.dependency_overrides[get_cache] = lambda: healthy_cache
    return application


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
