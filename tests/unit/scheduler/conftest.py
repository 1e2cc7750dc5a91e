"""Scheduler test fixtures."""

from collections.abc import Generator

import pytest

from memeradar.scheduler import scheduler as scheduler_module


@pytest.fixture(autouse=True)
def reset_scheduler() -> Generator[None, None, None]:
    """Give every test a fresh scheduler singleton."""
    scheduler_module._scheduler = None
    yield
    if scheduler_module._scheduler is not None and scheduler_module._scheduler.running:
        scheduler_module._scheduler.shutdown(wait=False)
    scheduler_module._scheduler = None
