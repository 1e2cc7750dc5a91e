"""Tests for RetryPolicy."""

import pytest

from memeradar.services.retry import RetryableError, RetryPolicy


class TestBackoff:
    """Tests for the backoff schedule."""

    def test_exponential_schedule(self) -> None:
        policy = RetryPolicy(base_delay=1.0, multiplier=2.0)

        assert [policy.backoff(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self) -> None:
        policy = RetryPolicy(base_delay=2.0, multiplier=2.0, max_delay=30.0)

        assert policy.backoff(10) == 30.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1.0}, {"multiplier": 0.5}],
    )
    def test_invalid_policy_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestRun:
    """Tests for RetryPolicy.run."""

    @pytest.fixture
    def delays(self) -> list[float]:
        return []

    @pytest.fixture
    def policy(self, delays: list[float]) -> RetryPolicy:
        async def record_sleep(seconds: float) -> None:
            delays.append(seconds)

        return RetryPolicy(max_attempts=3, base_delay=1.0, multiplier=2.0, sleep=record_sleep)

    @pytest.mark.asyncio
    async def test_succeeds_after_retryable_failures(self, policy, delays) -> None:
        """
        Given: an operation that is rate limited twice
        When: run through a 3-attempt policy
        Then: it succeeds on the third attempt after 1s and 2s waits
        """
        calls = 0

        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise RetryableError("rate limited", status_code=429)
            return "ok"

        assert await policy.run(flaky) == "ok"
        assert calls == 3
        assert delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self, policy, delays) -> None:
        async def always_down() -> None:
            raise RetryableError("server error", status_code=500)

        with pytest.raises(RetryableError, match="server error"):
            await policy.run(always_down)

        assert delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_non_retryable_raised_immediately(self, policy, delays) -> None:
        calls = 0

        async def broken() -> None:
            nonlocal calls
            calls += 1
            raise KeyError("bad payload")

        with pytest.raises(KeyError):
            await policy.run(broken)

        assert calls == 1
        assert delays == []


class TestRetryableError:
    """Tests for RetryableError."""

    @pytest.mark.parametrize(("status", "expected"), [(429, True), (503, True), (500, False), (None, False)])
    def test_is_rate_limited(self, status, expected) -> None:
        assert RetryableError("x", status_code=status).is_rate_limited is expected
