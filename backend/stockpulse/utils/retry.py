# backend/stockpulse/utils/retry.py
"""Bounded-attempt retry wrapper with linear backoff for coroutine operations."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from stockpulse.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 2,
    base_delay: float = 1.0,
    timeout: Optional[float] = None,
    label: str = "operation",
) -> T:
    """
    Await ``operation()`` up to ``attempts`` times.

    Each attempt is bounded by ``timeout`` seconds (if given). Before attempt
    ``n`` (1-based, n > 1) the helper sleeps ``base_delay * (n - 1)`` seconds.
    The last error is re-raised once every attempt has failed.
    """
    attempts = max(1, int(attempts))
    last_err: Optional[BaseException] = None

    for attempt in range(attempts):
        if attempt > 0:
            delay = base_delay * attempt
            log.warning("%s: retry %d/%d in %.1fs after: %s", label, attempt, attempts - 1, delay, last_err)
            await asyncio.sleep(delay)
        try:
            if timeout is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            last_err = TimeoutError(f"{label} timed out after {timeout}s")
            last_err.__cause__ = e
        except Exception as e:
            last_err = e

    log.error("%s failed after %d attempts: %s", label, attempts, last_err)
    if last_err is None:
        raise RuntimeError(f"{label} failed without an error")
    raise last_err
