"""Outbound call limiter shared by all workers talking to one provider.

Caps the number of in-flight calls and enforces a minimum spacing between
call starts, so "how many photos at once" is independent of "how fast we
may call the provider".
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable


class ProviderLimiter:
    """Semaphore plus minimum call interval.

    Usage::

        limiter = ProviderLimiter(max_concurrency=2, min_interval=0.1)
        async with limiter.slot():
            await client.get(...)
    """

    def __init__(
        self,
        max_concurrency: int = 1,
        min_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._spacing = asyncio.Lock()
        self._min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._last_start: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._semaphore:
            await self._wait_turn()
            yield

    async def _wait_turn(self) -> None:
        if self._min_interval <= 0:
            return
        async with self._spacing:
            if self._last_start is not None:
                delay = self._last_start + self._min_interval - self._clock()
                if delay > 0:
                    await self._sleep(delay)
            self._last_start = self._clock()
