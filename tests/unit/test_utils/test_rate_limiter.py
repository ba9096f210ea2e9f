"""Tests for the concurrency limiter and retry helper."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from pr_reviewer.utils.rate_limiter import (
    ConcurrencyLimiter,
    is_retriable_error,
    with_exponential_backoff,
)


class TestConcurrencyLimiter:
    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self):
        limiter = ConcurrencyLimiter(3)
        active = 0
        peak = 0

        async def work():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        await asyncio.gather(*(limiter.run(work) for _ in range(10)))

        assert peak == 3
        assert limiter.peak_in_flight == 3
        assert limiter.in_flight == 0

    @pytest.mark.asyncio
    async def test_slot_released_on_error(self):
        limiter = ConcurrencyLimiter(1)

        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await limiter.run(fail)

        assert limiter.in_flight == 0
        # A second caller can still get the only slot
        assert await asyncio.wait_for(limiter.run(AsyncMock(return_value=1)), 1) == 1

    @pytest.mark.asyncio
    async def test_waiters_admitted_in_arrival_order(self):
        limiter = ConcurrencyLimiter(1)
        gate = asyncio.Event()
        order: list[int] = []

        async def blocker():
            await gate.wait()

        async def record(i: int):
            order.append(i)

        first = asyncio.create_task(limiter.run(blocker))
        await asyncio.sleep(0)
        waiters = []
        for i in range(5):
            waiters.append(asyncio.create_task(limiter.run(record, i)))
            await asyncio.sleep(0)

        gate.set()
        await asyncio.gather(first, *waiters)

        assert order == [0, 1, 2, 3, 4]


class TestIsRetriableError:
    def test_status_code_attribute(self):
        error = Exception("Too many requests")
        error.status_code = 429
        assert is_retriable_error(error)

    def test_timeout(self):
        assert is_retriable_error(TimeoutError())
        assert is_retriable_error(Exception("Request timeout"))

    def test_other_errors(self):
        assert not is_retriable_error(ValueError("bad input"))


class TestWithExponentialBackoff:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        func = AsyncMock(return_value="ok")

        assert await with_exponential_backoff(func, 1, key="v") == "ok"
        func.assert_awaited_once_with(1, key="v")

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        func = AsyncMock(side_effect=[Exception("rate limit exceeded"), "ok"])

        with patch("pr_reviewer.utils.rate_limiter.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_exponential_backoff(func, max_retries=3, initial_delay=0.5)

        assert result == "ok"
        assert func.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_non_retriable_raises_immediately(self):
        func = AsyncMock(side_effect=ValueError("bad request"))

        with pytest.raises(ValueError):
            await with_exponential_backoff(func, max_retries=5)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self):
        func = AsyncMock(side_effect=Exception("503 Service Unavailable"))

        with patch("pr_reviewer.utils.rate_limiter.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(Exception, match="503"):
                await with_exponential_backoff(func, max_retries=3)

        assert func.await_count == 3
