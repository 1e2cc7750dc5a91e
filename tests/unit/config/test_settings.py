"""Unit tests for application settings."""

import os

import pytest
from pydantic import ValidationError

from memeradar.config.settings import Settings, get_settings
from memeradar.core.exceptions import ConfigurationError


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        env_vars_to_clear = ["DEBUG", "LOG_LEVEL", "PORT", "REDIS_URL", "REFRESH_SCHEDULER_ENABLED"]
        for key in env_vars_to_clear:
            os.environ.pop(key, None)

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.port == 3000
        assert settings.redis_url == "redis://localhost:6379"
        assert settings.cache_ttl_seconds == 30
        assert settings.refresh_interval_seconds == 10
        assert settings.refresh_scheduler_enabled is True
        assert settings.dexscreener_rate_limit_per_minute == 300
        assert settings.geckoterminal_rate_limit_per_minute == 30
        assert settings.retry_max_attempts == 3
        assert settings.heartbeat_interval_seconds == 30.0

    def test_environment_overrides(self) -> None:
        os.environ["CACHE_TTL_SECONDS"] = "60"
        os.environ["REFRESH_INTERVAL_SECONDS"] = "5"

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.cache_ttl_seconds == 60
        assert settings.refresh_interval_seconds == 5
        assert settings.refresh_scheduler_enabled is False

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_get_settings_wraps_invalid_environment(self) -> None:
        os.environ["PORT"] = "0"
        os.environ["REDIS_URL"] = "http://localhost:6379"
        get_settings.cache_clear()

        with pytest.raises(ConfigurationError, match="Invalid settings: port, redis_url"):
            get_settings()


class TestSettingsValidation:
    """Tests for field validation."""

    def test_port_must_be_valid_range(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings(port=0)
        assert "greater than or equal to 1" in str(exc_info.value)

        with pytest.raises(ValidationError) as exc_info:
            Settings(port=70000)
        assert "less than or equal to 65535" in str(exc_info.value)

    def test_log_level_must_be_valid(self) -> None:
        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            assert Settings(log_level=level).log_level == level  # type: ignore[arg-type]

        with pytest.raises(ValidationError):
            Settings(log_level="INVALID")  # type: ignore[arg-type]

    def test_redis_url_scheme(self) -> None:
        Settings(redis_url="rediss://cache.internal:6380/0")
        Settings(redis_url="unix:///tmp/redis.sock")

        with pytest.raises(ValidationError, match="Redis URL must start with"):
            Settings(redis_url="http://localhost:6379")

    def test_api_base_urls_are_normalized(self) -> None:
        settings = Settings(dexscreener_base_url="https://api.dexscreener.com/latest/dex/")

        assert settings.dexscreener_base_url == "https://api.dexscreener.com/latest/dex"

        with pytest.raises(ValidationError, match="must start with http"):
            Settings(geckoterminal_base_url="ftp://example.com")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cache_ttl_seconds": 0},
            {"refresh_interval_seconds": 0},
            {"retry_max_attempts": 0},
            {"retry_backoff_multiplier": 0.5},
            {"heartbeat_interval_seconds": 0},
        ],
    )
    def test_rejects_out_of_range(self, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            Settings(**kwargs)
