"""Scheduled jobs for MemeRadar.

- token_refresh: runs a refresh cycle and pushes changed records to
  subscribers with ``sourceOfUpdate = scheduler``.

Usage:
    from memeradar.scheduler.jobs import schedule_refresh_job

    schedule_refresh_job(token_service, interval_seconds=10)
"""

import structlog
from apscheduler.triggers.interval import IntervalTrigger

from memeradar.models.token import UpdateSource
from memeradar.scheduler.scheduler import get_scheduler
from memeradar.services.token.service import TokenService

log = structlog.get_logger(__name__)

JOB_ID_TOKEN_REFRESH = "token_refresh"


async def refresh_tokens_job(service: TokenService) -> None:
    """Run one scheduled refresh-and-publish cycle.

    Note:
        Errors are logged, never raised, so one bad cycle does not
        unschedule the job.
    """
    try:
        outcome = await service.refresh(UpdateSource.SCHEDULER)
    except Exception as e:
        log.error("token_refresh_job_failed", error=str(e))
        return

    if outcome.result.failed:
        log.warning("token_refresh_job_no_update", reason="primary source unavailable")
        return

    log.info(
        "token_refresh_job_completed",
        total=len(outcome.result.records),
        changed=len(outcome.result.changed),
        delivered=outcome.delivered,
        duration_ms=outcome.result.duration_ms,
    )


def schedule_refresh_job(service: TokenService, interval_seconds: int) -> None:
    """Schedule (or reschedule) the refresh job.

    Args:
        service: Token service the job refreshes through.
        interval_seconds: Seconds between runs.

    Raises:
        ValueError: If interval_seconds is not positive.
    """
    if interval_seconds <= 0:
        raise ValueError(f"Invalid interval: {interval_seconds}. Must be positive")

    get_scheduler().add_job(
        refresh_tokens_job,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[service],
        id=JOB_ID_TOKEN_REFRESH,
        name="Token Refresh",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    log.info(
        "token_refresh_job_scheduled",
        job_id=JOB_ID_TOKEN_REFRESH,
        interval_seconds=interval_seconds,
    )


def unschedule_refresh_job() -> None:
    """Remove the refresh job. Safe to call when it is not scheduled."""
    scheduler = get_scheduler()
    if scheduler.get_job(JOB_ID_TOKEN_REFRESH):
        scheduler.remove_job(JOB_ID_TOKEN_REFRESH)
        log.info("token_refresh_job_unscheduled", job_id=JOB_ID_TOKEN_REFRESH)


def get_next_run_time() -> str | None:
    """Next refresh run as an ISO string, or None if not scheduled."""
    job = get_scheduler().get_job(JOB_ID_TOKEN_REFRESH)
    if job and job.next_run_time:
        return job.next_run_time.isoformat()
    return None
