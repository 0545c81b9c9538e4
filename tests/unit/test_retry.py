# tests/unit/test_retry.py
"""测试指数退避重试的调用次数、等待时间与错误分类。"""

import time
from unittest.mock import AsyncMock

import httpx
import pytest

from localize_hub.exceptions import (
    DeadlineExceededError,
    TerminalProviderError,
    TransientProviderError,
)
from localize_hub.retry import compute_backoff, is_retryable, retry_with_backoff


def _failing(*errors: BaseException, result: str = "ok") -> AsyncMock:
    return AsyncMock(side_effect=[*errors, result])


@pytest.mark.asyncio
async def test_success_on_first_attempt_calls_once(no_sleep: AsyncMock) -> None:
    operation = AsyncMock(return_value="ok")
    assert await retry_with_backoff(operation, 3, 1.0) == "ok"
    assert operation.await_count == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_transient_failures_are_retried_with_doubling_delay(
    no_sleep: AsyncMock,
) -> None:
    operation = _failing(
        TransientProviderError("503", status_code=503),
        TransientProviderError("429", status_code=429),
    )
    result = await retry_with_backoff(operation, 3, 1.0, jitter=False)

    assert result == "ok"
    assert operation.await_count == 3
    assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_always_failing_operation_raises_last_error_after_max_attempts(
    no_sleep: AsyncMock,
) -> None:
    errors = [TransientProviderError(f"fail {i}", status_code=500) for i in range(3)]
    operation = AsyncMock(side_effect=errors)

    with pytest.raises(TransientProviderError, match="fail 2"):
        await retry_with_backoff(operation, 3, 0.5, jitter=False)
    assert operation.await_count == 3
    assert no_sleep.await_count == 2


@pytest.mark.asyncio
async def test_client_error_is_not_retried(no_sleep: AsyncMock) -> None:
    operation = AsyncMock(side_effect=TerminalProviderError("bad", status_code=400))

    with pytest.raises(TerminalProviderError):
        await retry_with_backoff(operation, 3, 1.0)
    assert operation.await_count == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_network_errors_without_status_are_retried(no_sleep: AsyncMock) -> None:
    operation = _failing(httpx.ConnectError("refused"))
    assert await retry_with_backoff(operation, 2, 0.1) == "ok"
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_deadline_aborts_before_sleeping_past_it(no_sleep: AsyncMock) -> None:
    operation = AsyncMock(side_effect=TransientProviderError("503", status_code=503))

    with pytest.raises(DeadlineExceededError):
        await retry_with_backoff(
            operation, 5, 10.0, jitter=False, deadline=time.monotonic() + 1.0
        )
    assert operation.await_count == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_max_attempts() -> None:
    with pytest.raises(ValueError):
        await retry_with_backoff(AsyncMock(), 0, 1.0)


@pytest.mark.parametrize(
    "status, expected",
    [(400, False), (403, False), (404, False), (429, True), (500, True), (503, True)],
)
def test_is_retryable_by_status(status: int, expected: bool) -> None:
    assert is_retryable(TransientProviderError("x", status_code=status)) is expected


def test_is_retryable_for_http_status_error() -> None:
    request = httpx.Request("GET", "https://api.deepl.com/v2/usage")
    response = httpx.Response(456, request=request)
    error = httpx.HTTPStatusError("quota", request=request, response=response)
    assert is_retryable(error) is False


def test_compute_backoff_respects_cap_and_jitter_bounds() -> None:
    assert compute_backoff(0, 1.0, jitter=False) == 1.0
    assert compute_backoff(3, 1.0, jitter=False) == 8.0
    assert compute_backoff(10, 1.0, max_delay=30.0, jitter=False) == 30.0
    for attempt in range(5):
        assert 0 <= compute_backoff(attempt, 1.0, max_delay=4.0) <= 4.0
