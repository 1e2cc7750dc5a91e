"""Shared fixtures for upstream client tests."""

import pytest

from memeradar.services.retry import RetryPolicy


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy that backs off without actually sleeping."""
    return RetryPolicy(max_attempts=3, base_delay=1.0, multiplier=2.0, sleep=_no_sleep)
