"""Configuration module for MemeRadar.

Usage:
    from memeradar.config import get_settings

    settings = get_settings()  # Cached singleton
    print(settings.redis_url)

Note:
    We intentionally don't export a module-level `settings` instance.
    Use `get_settings()` to get the cached instance at runtime.
"""

from memeradar.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
