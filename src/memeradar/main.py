"""MemeRadar - Main application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from memeradar.api.routes import health, tokens, websocket
from memeradar.config import get_settings
from memeradar.config.logging import configure_logging
from memeradar.core.exceptions import CacheError, ValidationError
from memeradar.data.cache.client import RedisCache
from memeradar.data.cache.token_cache import TokenCacheRepository
from memeradar.scheduler.jobs import schedule_refresh_job, unschedule_refresh_job
from memeradar.scheduler.scheduler import shutdown_scheduler, start_scheduler
from memeradar.services.dexscreener.client import DexScreenerClient
from memeradar.services.geckoterminal.client import GeckoTerminalClient
from memeradar.services.realtime.registry import SubscriberRegistry
from memeradar.services.token.aggregator import TokenAggregator
from memeradar.services.token.service import TokenService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle.

    On startup: connect the cache (a failure only degrades reads), build the
    service graph, start the heartbeat and the refresh scheduler.
    On shutdown: stop background work, close connections.
    """
    configure_logging()
    settings = get_settings()

    cache = RedisCache(url=settings.redis_url, ttl_seconds=settings.cache_ttl_seconds)
    try:
        await cache.connect()
        log.info("startup_cache_connected")
    except CacheError as e:
        log.warning("startup_cache_failed", error=str(e))

    repository = TokenCacheRepository(cache)
    aggregator = TokenAggregator(
        primary=DexScreenerClient(settings),
        secondary=GeckoTerminalClient(settings),
        repository=repository,
    )
    registry = SubscriberRegistry(heartbeat_interval=settings.heartbeat_interval_seconds)
    service = TokenService(aggregator, repository, registry)

    app.state.cache = cache
    app.state.registry = registry
    app.state.token_service = service

    registry.start_heartbeat()
    if settings.refresh_scheduler_enabled:
        schedule_refresh_job(service, settings.refresh_interval_seconds)
        await start_scheduler()
    else:
        log.info("refresh_scheduler_disabled")

    yield

    # Shutdown
    if settings.refresh_scheduler_enabled:
        unschedule_refresh_job()
    await shutdown_scheduler()
    await registry.stop_heartbeat()
    await registry.close_all()
    await service.close()
    await cache.disconnect()
    log.info("shutdown_complete")


async def _validation_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_request_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="Real-time Solana meme token aggregator",
        version=settings.app_version,
        lifespan=lifespan,
    )

    application.add_exception_handler(ValidationError, _validation_error_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)

    # Register routes
    application.include_router(tokens.router, prefix="/api")
    application.include_router(websocket.router)
    application.include_router(health.router)

    return application


# Create the app instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "memeradar.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
