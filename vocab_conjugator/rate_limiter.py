"""Sliding-window rate limiter for generator calls."""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque

import structlog

from .config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS

log = structlog.get_logger()


class SlidingWindowRateLimiter:
    """Admit at most ``max_requests`` calls within any trailing ``window`` seconds.

    Waiters are admitted in arrival order: the caller at the head holds the
    lock while it sleeps, and ``asyncio.Lock`` wakes the others FIFO.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _prune(self, now: float):
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    async def acquire(self):
        """Wait until one more call fits in the window, then record it."""
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)
                if len(self._timestamps) < self.max_requests:
                    self._timestamps.append(now)
                    return
                wait_time = self.window - (now - self._timestamps[0])
                log.debug("Rate limit reached, waiting", wait_s=round(wait_time, 3))
                await self._sleep(wait_time)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    @property
    def in_window(self) -> int:
        """Number of admissions currently counted against the window."""
        self._prune(self._clock())
        return len(self._timestamps)
