from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .errors import RecoveryHint
from .result import Result, with_context

_LOGGER = logging.getLogger("mac_chrome.engine.retry")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 0.3
    backoff: float = 1.5
    max_delay: float = 5.0
    jitter: bool = False


def should_retry(result: Result[Any]) -> bool:
    return result.failed and result.recovery_hint in {RecoveryHint.RETRY, RecoveryHint.RETRY_WITH_DELAY}


async def retry_result(
    operation: Callable[[], Awaitable[Result[Any]]],
    policy: RetryPolicy | None = None,
    *,
    label: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Result[Any]:
    """Re-run `operation` while its failures are hinted as transient.

    `retry` retries immediately; `retry_with_delay` waits with exponential
    backoff. Any other hint stops the loop and returns the failure as-is.
    """
    policy = policy or RetryPolicy()
    attempts = max(1, int(policy.max_attempts))
    current_delay = policy.delay
    result = await operation()
    attempt = 1
    while attempt < attempts and should_retry(result):
        if result.recovery_hint == RecoveryHint.RETRY_WITH_DELAY:
            wait = min(current_delay, policy.max_delay)
            if policy.jitter:
                wait *= random.uniform(0.5, 1.0)
            await sleep(wait)
            current_delay *= policy.backoff
        _LOGGER.debug("%s failed (%s), retry %d/%d", label, result.code.name, attempt, attempts - 1)
        result = await operation()
        attempt += 1
    if attempt > 1:
        return with_context(result, retryAttempts=attempt - 1)
    return result


__all__ = ["RetryPolicy", "retry_result", "should_retry"]
