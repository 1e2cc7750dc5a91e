"""FastAPI dependencies for dependency injection.

Long-lived components are built once by the application lifespan and kept
on ``app.state``; these dependencies hand them to routes.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from memeradar.config.settings import Settings, get_settings
from memeradar.data.cache.client import RedisCache
from memeradar.services.realtime.registry import SubscriberRegistry
from memeradar.services.token.service import TokenService

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_token_service(connection: HTTPConnection) -> TokenService:
    """Get token service dependency."""
    return connection.app.state.token_service  # type: ignore[no-any-return]


def get_subscriber_registry(connection: HTTPConnection) -> SubscriberRegistry:
    """Get subscriber registry dependency (works for HTTP and WebSocket)."""
    return connection.app.state.registry  # type: ignore[no-any-return]


def get_cache(connection: HTTPConnection) -> RedisCache | None:
    """Get cache client dependency; None before the lifespan has run."""
    return getattr(connection.app.state, "cache", None)


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
RegistryDep = Annotated[SubscriberRegistry, Depends(get_subscriber_registry)]
CacheDep = Annotated[RedisCache | None, Depends(get_cache)]
