"""structlog setup for MemeRadar.

Every event carries the service name and version so refresh-cycle logs from
several instances can be told apart. Third-party loggers that fire on every
cycle (httpx request lines, APScheduler job runs) are held at WARNING unless
the app runs at DEBUG.

Usage:
    from memeradar.config.logging import configure_logging

    configure_logging()  # once, at lifespan startup
"""

import logging
import sys
from typing import Any

import structlog

from memeradar.config.settings import Settings, get_settings

# Loggers that emit one line per upstream request or scheduler tick
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "websockets")


def _service_context(settings: Settings) -> structlog.types.Processor:
    def add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", settings.app_name.lower())
        event_dict.setdefault("version", settings.app_version)
        return event_dict

    return add_service


def build_processors(settings: Settings) -> list[structlog.types.Processor]:
    """Processor chain: JSON lines in production, console output in debug."""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _service_context(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.dev.set_exc_info,
    ]
    if settings.debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    quiet_level = log_level if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def short_address(address: str) -> str:
    """Truncate a token address for log context."""
    return address[:8] + "..." if len(address) > 8 else address
