"""Timing wrapper for scorer functions."""

import asyncio
import inspect
import time
from collections.abc import Callable
from typing import Any

from netscore.models.schemas import MetricResult


async def measure_latency(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> MetricResult:
    """Run ``fn`` and return its value with the elapsed wall time in seconds.

    Coroutine functions are awaited directly. Plain functions run in a worker
    thread so that several file-system scorers can make progress together.
    """
    start = time.perf_counter()
    if inspect.iscoroutinefunction(fn):
        value = await fn(*args, **kwargs)
    else:
        value = await asyncio.to_thread(fn, *args, **kwargs)
    latency = time.perf_counter() - start
    return MetricResult(value=value, latency=latency)
