"""Health check endpoint with cache, subscriber and scheduler status."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from memeradar.api.dependencies import CacheDep, RegistryDep, SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    settings: SettingsDep,
    cache: CacheDep,
    registry: RegistryDep,
) -> JSONResponse:
    """
    Health check endpoint.

    Returns:
        Overall status, version, cache health, subscriber count and
        scheduler info. HTTP 503 when the cache is unreachable.
    """
    if cache is None:
        cache_health: dict[str, Any] = {"status": "disconnected", "healthy": False}
    else:
        cache_health = await cache.health_check()

    overall_status = "ok" if cache_health["healthy"] else "degraded"
    body = {
        "status": overall_status,
        "version": settings.app_version,
        "cache": cache_health,
        "subscribers": registry.subscriber_count,
        "scheduler": _get_scheduler_status(settings.refresh_scheduler_enabled),
    }
    return JSONResponse(status_code=200 if cache_health["healthy"] else 503, content=body)


def _get_scheduler_status(enabled: bool) -> dict[str, Any]:
    """Get scheduler status information.

    Returns:
        dict with scheduler enabled, running, and next_run info.
    """
    from memeradar.scheduler.jobs import get_next_run_time  # noqa: PLC0415
    from memeradar.scheduler.scheduler import is_scheduler_running  # noqa: PLC0415

    running = is_scheduler_running()
    return {
        "enabled": enabled,
        "running": running,
        "next_run": get_next_run_time() if running else None,
    }
