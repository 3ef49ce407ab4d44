import pytest

from src.utils.retry import RetryExhaustedError, RetryPolicy, retry_async


class RateLimited(Exception):
    code = 429


def test_delay_grows_and_caps():
    policy = RetryPolicy(base_delay=2, multiplier=2, max_delay=5, jitter=0)
    assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [2, 4, 5, 5]


@pytest.mark.asyncio
async def test_retries_until_success(vtime):
    attempts = []

    async def flaky():
        attempts.append(vtime.now)
        if len(attempts) < 3:
            raise RateLimited("429 Too Many Requests")
        return "ok"

    policy = RetryPolicy(max_attempts=3, base_delay=1, multiplier=2, jitter=0)
    result = await retry_async(flaky, policy=policy, should_retry=lambda e: isinstance(e, RateLimited), sleep=vtime.sleep)

    assert result == "ok"
    assert vtime.sleeps == [1, 2]


@pytest.mark.asyncio
async def test_exhaustion_wraps_last_error(vtime):
    async def always_limited():
        raise RateLimited("quota")

    with pytest.raises(RetryExhaustedError) as exc_info:
        await retry_async(
            always_limited,
            policy=RetryPolicy(max_attempts=2, jitter=0),
            should_retry=lambda e: True,
            sleep=vtime.sleep,
        )
    assert exc_info.value.attempts == 2
    assert isinstance(exc_info.value.last_error, RateLimited)


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(vtime):
    calls = []

    async def broken():
        calls.append(1)
        raise KeyError("bad")

    with pytest.raises(KeyError):
        await retry_async(broken, policy=RetryPolicy(), should_retry=lambda e: False, sleep=vtime.sleep)
    assert calls == [1]
    assert vtime.sleeps == []
