"""
METAMEDIA CORE — Rate-Limit Retry Policy
Exponential backoff around any awaitable operation. Only rate-limit failures
are retried; everything else propagates on the first attempt.
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from metamedia_core.config.settings import get_settings
from metamedia_core.data.errors import ErrorKind, classify_error
from metamedia_core.utils.logger import get_logger

logger = get_logger("retry")

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    initial_delay: Optional[float] = None,
    multiplier: Optional[float] = None,
    max_delay: Optional[float] = None,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """
    Run ``operation`` and retry it while it fails with a rate-limit error.

    Each retry waits ``delay`` seconds and then multiplies the delay by
    ``multiplier`` (2.5 by default: 4s, 10s, 25s). Non rate-limit errors and
    the error that exhausts the budget are re-raised unchanged.
    """
    settings = get_settings().retry
    retries = settings.max_retries if max_retries is None else max_retries
    delay = settings.initial_delay_seconds if initial_delay is None else initial_delay
    factor = settings.backoff_multiplier if multiplier is None else multiplier
    cap = settings.max_delay_seconds if max_delay is None else max_delay

    while True:
        try:
            return await operation()
        except Exception as e:
            kind = classify_error(e)
            if kind is not ErrorKind.RATE_LIMITED or retries <= 0:
                raise

            wait = delay if cap is None else min(delay, cap)
            logger.warning(
                "uplink_congested_retrying",
                delay_seconds=wait,
                attempts_left=retries,
                error=str(e),
            )
            await sleep(wait)
            retries -= 1
            delay *= factor
