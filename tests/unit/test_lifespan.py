"""Tests for FastAPI lifespan management."""

import os
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from memeradar.core.exceptions import CacheError
from memeradar.data.cache.client import RedisCache
from memeradar.services.realtime.registry import SubscriberRegistry
from memeradar.services.token.service import TokenService


@pytest.fixture
def mock_cache() -> MagicMock:
    cache = MagicMock(spec=RedisCache)
    cache.connect = AsyncMock()
    cache.disconnect = AsyncMock()
    cache.health_check = AsyncMock(
        return_value={"status": "connected", "healthy": True, "latency_ms": 0.3}
    )
    return cache


@pytest.fixture
def patched_components(mock_cache) -> Generator[dict[str, MagicMock], None, None]:
    primary = MagicMock(close=AsyncMock())
    secondary = MagicMock(close=AsyncMock())
    with (
        patch("memeradar.main.RedisCache", return_value=mock_cache),
        patch("memeradar.main.DexScreenerClient", return_value=primary),
        patch("memeradar.main.GeckoTerminalClient", return_value=secondary),
        patch("memeradar.main.schedule_refresh_job") as schedule,
        patch("memeradar.main.unschedule_refresh_job") as unschedule,
        patch("memeradar.main.start_scheduler", new_callable=AsyncMock) as start,
        patch("memeradar.main.shutdown_scheduler", new_callable=AsyncMock) as shutdown,
    ):
        yield {
            "primary": primary,
            "secondary": secondary,
            "schedule": schedule,
            "unschedule": unschedule,
            "start": start,
            "shutdown": shutdown,
        }


class TestLifespan:
    """Tests for application startup and shutdown."""

    def test_startup_builds_components(self, patched_components, mock_cache) -> None:
        """
        Given: the scheduler is disabled
        When: the app starts and stops
        Then: components land on app.state and everything is closed on exit
        """
        from memeradar.main import create_app

        app = create_app()
        with TestClient(app):
            assert isinstance(app.state.token_service, TokenService)
            assert isinstance(app.state.registry, SubscriberRegistry)
            assert app.state.cache is mock_cache
            mock_cache.connect.assert_awaited_once()
            patched_components["schedule"].assert_not_called()

        patched_components["shutdown"].assert_awaited_once()
        patched_components["unschedule"].assert_not_called()
        patched_components["primary"].close.assert_awaited_once()
        patched_components["secondary"].close.assert_awaited_once()
        mock_cache.disconnect.assert_awaited_once()

    def test_cache_failure_does_not_block_startup(self, patched_components, mock_cache) -> None:
        mock_cache.connect.side_effect = CacheError("Redis: refused")
        from memeradar.main import create_app

        app = create_app()
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200

    def test_scheduler_enabled(self, patched_components) -> None:
        os.environ["REFRESH_SCHEDULER_ENABLED"] = "true"
        os.environ["REFRESH_INTERVAL_SECONDS"] = "15"
        from memeradar.config.settings import get_settings
        from memeradar.main import create_app

        get_settings.cache_clear()
        app = create_app()
        with TestClient(app):
            patched_components["schedule"].assert_called_once_with(app.state.token_service, 15)
            patched_components["start"].assert_awaited_once()
            patched_components["unschedule"].assert_not_called()

        patched_components["unschedule"].assert_called_once_with()
        patched_components["shutdown"].assert_awaited_once()
