"""Tests for the outbound provider limiter."""

from __future__ import annotations

import asyncio

from parcelmatch.core.limiter import ProviderLimiter


class TestProviderLimiter:
    async def test_caps_concurrency(self):
        limiter = ProviderLimiter(max_concurrency=2)
        active = 0
        peak = 0

        async def call():
            nonlocal active, peak
            async with limiter.slot():
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(call() for _ in range(6)))
        assert peak == 2

    async def test_spaces_call_starts(self):
        now = [100.0]
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            now[0] += seconds

        limiter = ProviderLimiter(max_concurrency=3, min_interval=0.5,
                                  clock=lambda: now[0], sleep=fake_sleep)

        async def call():
            async with limiter.slot():
                pass

        await asyncio.gather(*(call() for _ in range(3)))
        assert sleeps == [0.5, 0.5]

    async def test_no_spacing_by_default(self):
        limiter = ProviderLimiter()
        assert limiter.min_interval == 0.0
        async with limiter.slot():
            pass
