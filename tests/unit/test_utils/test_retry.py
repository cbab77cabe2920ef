"""
test_retry.py - retry_with_exponential_backoff

asyncio.sleep is patched; delays are checked through its calls.
"""

from unittest.mock import AsyncMock, patch

import pytest

from src.utils.retry import RetryableError, retry_with_exponential_backoff


@pytest.fixture
def sleep():
    with patch("src.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


class TestRetryWithExponentialBackoff:
    async def test_success_first_try(self, sleep):
        func = AsyncMock(return_value="ok")

        assert await retry_with_exponential_backoff(func) == "ok"
        assert func.await_count == 1
        sleep.assert_not_awaited()

    async def test_retries_then_succeeds(self, sleep):
        func = AsyncMock(side_effect=[RetryableError("503"), RetryableError("503"), "ok"])

        result = await retry_with_exponential_backoff(
            func, max_retries=3, initial_delay=1.0, exceptions=(RetryableError,)
        )

        assert result == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_delay_capped(self, sleep):
        func = AsyncMock(side_effect=[RetryableError()] * 4 + ["ok"])

        await retry_with_exponential_backoff(
            func, max_retries=4, initial_delay=2.0, max_delay=5.0, exceptions=(RetryableError,)
        )

        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0, 5.0, 5.0]

    async def test_raises_last_error(self, sleep):
        func = AsyncMock(side_effect=RetryableError("still down"))

        with pytest.raises(RetryableError, match="still down"):
            await retry_with_exponential_backoff(func, max_retries=2, exceptions=(RetryableError,))

        assert func.await_count == 3

    async def test_other_exceptions_not_retried(self, sleep):
        func = AsyncMock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError):
            await retry_with_exponential_backoff(func, exceptions=(RetryableError,))

        assert func.await_count == 1
        sleep.assert_not_awaited()
