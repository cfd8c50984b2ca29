import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar


T = TypeVar("T")

DEFAULT_LIMIT = 5


class ValidationLimiter:
    """Runs submitted coroutines with at most ``limit`` in flight.

    ``submit`` never waits for a free slot; queued work starts in submission
    order as running work finishes. The limiter keeps no per-session state
    beyond its counters, so one instance can serve several sessions.
    """

    def __init__(self, limit: int = DEFAULT_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self.limit = limit
        self.active = 0
        self.peak_active = 0
        self._semaphore = asyncio.Semaphore(limit)

    def submit(self, fn: Callable[[], Awaitable[T]]) -> asyncio.Task[T]:
        return asyncio.create_task(self._run(fn))

    async def _run(self, fn: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
            try:
                return await fn()
            finally:
                self.active -= 1
