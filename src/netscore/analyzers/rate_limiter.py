"""Serialises outbound GitHub calls with a minimum spacing between them."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Single-slot semaphore plus a minimum-interval timer.

    At most one scheduled task runs at a time, and consecutive task starts are
    at least ``min_interval`` seconds apart. Waiters are served in FIFO order.
    A task's own exception propagates to whoever scheduled it; the limiter
    never retries.

    Usage:
        limiter = RateLimiter.from_hourly_quota(5000)
        data = await limiter.schedule(lambda: client.get(url))
    """

    def __init__(self, min_interval: float) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._slot = asyncio.Semaphore(1)
        self._last_start: float | None = None

    @classmethod
    def from_hourly_quota(cls, quota: int) -> RateLimiter:
        """Build a limiter that keeps the request rate under ``quota`` per hour."""
        if quota <= 0:
            raise ValueError("quota must be positive")
        return cls(min_interval=3600 / quota)

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run ``task`` once the slot is free and the spacing has elapsed."""
        async with self._slot:
            if self._last_start is not None:
                wait = self.min_interval - (time.monotonic() - self._last_start)
                if wait > 0:
                    logger.debug(f"Rate limiter sleeping {wait:.3f}s")
                    await asyncio.sleep(wait)
            self._last_start = time.monotonic()
            return await task()
