# localize_hub/retry.py
"""
本模块实现调用 DeepL API 时使用的指数退避重试。

分类规则：
- 除 429 以外的 4xx 是终止性错误，立即重新抛出；
- 5xx、429 与网络层错误可重试，第 n 次失败后等待 `initial_delay * 2**n` 秒。
退避时间默认加入 full jitter。
"""

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import httpx
import structlog

from localize_hub.exceptions import DeadlineExceededError, ProviderError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def get_status_code(error: BaseException) -> Optional[int]:
    """从异常中提取 HTTP 状态码；没有时返回 None。"""
    if isinstance(error, ProviderError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def is_retryable(error: BaseException) -> bool:
    """判断一次失败是否值得重试。"""
    status = get_status_code(error)
    if status is not None and 400 <= status < 500 and status != 429:
        return False
    return True


def compute_backoff(
    attempt: int,
    initial_delay: float,
    max_delay: Optional[float] = None,
    jitter: bool = True,
) -> float:
    """计算第 `attempt` 次（从 0 开始）失败后的等待秒数。"""
    delay = initial_delay * (2**attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    if jitter:
        delay = random.uniform(0, delay)
    return delay


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    *,
    max_delay: Optional[float] = None,
    jitter: bool = True,
    deadline: Optional[float] = None,
) -> T:
    """
    执行 `operation`，在可重试的失败上按指数退避重试。

    Args:
        operation: 无参的异步可调用对象，每次尝试调用一次。
        max_attempts: 最多尝试次数（包含第一次）。
        initial_delay: 第一次重试前的基础等待秒数。
        max_delay: 单次等待的上限。
        jitter: 是否在 [0, delay] 区间内随机化等待时间。
        deadline: `time.monotonic()` 下的绝对截止时间；下一次等待会越过它时
            抛出 `DeadlineExceededError`。

    Returns:
        `operation` 第一次成功时的返回值。
    """
    if max_attempts < 1:
        raise ValueError("max_attempts 必须为正数")

    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as e:
            status = get_status_code(e)
            if not is_retryable(e):
                logger.warning("DeepL API 客户端错误，不再重试", status=status, error=str(e))
                raise

            if attempt == max_attempts - 1:
                logger.error(
                    "DeepL API 请求在多次尝试后仍然失败",
                    attempts=max_attempts,
                    status=status,
                    error=str(e),
                )
                raise

            delay = compute_backoff(attempt, initial_delay, max_delay, jitter)
            if deadline is not None and time.monotonic() + delay > deadline:
                logger.error("重试等待将超过调用时限，提前中止", attempt=attempt + 1)
                raise DeadlineExceededError(
                    f"在第 {attempt + 1} 次尝试后超过调用时限: {e}"
                ) from e

            logger.warning(
                "DeepL API 请求失败，准备重试",
                attempt=f"{attempt + 1}/{max_attempts}",
                retrying_in=round(delay, 3),
                status=status,
                error=str(e),
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
