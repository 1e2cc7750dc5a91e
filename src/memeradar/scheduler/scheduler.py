"""Process-wide APScheduler instance.

The refresh job is short and frequent, so the scheduler is created with
job defaults that never stack runs: a late tick is merged into one run and
a tick that arrives while the previous run is active is skipped.

Usage:
    from memeradar.scheduler.scheduler import start_scheduler, shutdown_scheduler

    await start_scheduler()     # lifespan startup
    await shutdown_scheduler()  # lifespan shutdown
"""

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

log = structlog.get_logger(__name__)

JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 5,
}

_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Return the scheduler, creating it (stopped) on first use."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(job_defaults=JOB_DEFAULTS, timezone="UTC")
        log.debug("scheduler_created", job_defaults=JOB_DEFAULTS)
    return _scheduler


def is_scheduler_running() -> bool:
    """Whether a scheduler exists and is running. Never creates one."""
    return _scheduler is not None and _scheduler.running


async def start_scheduler() -> None:
    """Start the scheduler if it is not already running.

    Must be awaited from inside the event loop the jobs should run on.
    """
    scheduler = get_scheduler()
    if scheduler.running:
        return
    scheduler.start()
    log.info("scheduler_started", jobs=[job.id for job in scheduler.get_jobs()])


async def shutdown_scheduler() -> None:
    """Stop the scheduler and drop the instance so a restart gets a fresh one."""
    global _scheduler
    if _scheduler is None:
        return
    if _scheduler.running:
        # Do not block shutdown on an in-flight refresh cycle
        _scheduler.shutdown(wait=False)
        log.info("scheduler_shutdown")
    _scheduler = None
