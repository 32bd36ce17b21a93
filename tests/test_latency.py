"""Tests for measure_latency (analyzers/latency.py)."""

from __future__ import annotations

import asyncio
import time

import pytest

from netscore.analyzers.latency import measure_latency


class TestMeasureLatency:
    async def test_sync_function(self):
        def slow_score(x, scale=1.0):
            time.sleep(0.02)
            return x * scale

        result = await measure_latency(slow_score, 0.5, scale=2.0)
        assert result.value == pytest.approx(1.0)
        assert result.latency >= 0.015

    async def test_async_function(self):
        async def slow_score():
            await asyncio.sleep(0.02)
            return 0.25

        result = await measure_latency(slow_score)
        assert result.value == 0.25
        assert result.latency >= 0.015

    async def test_exception_propagates(self):
        def broken():
            raise RuntimeError("scorer failed")

        with pytest.raises(RuntimeError, match="scorer failed"):
            await measure_latency(broken)

    async def test_sync_functions_run_concurrently(self):
        def slow():
            time.sleep(0.1)
            return 1.0

        start = time.perf_counter()
        await asyncio.gather(*(measure_latency(slow) for _ in range(3)))
        assert time.perf_counter() - start < 0.28
