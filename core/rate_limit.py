"""
Token-bucket rate limiting for outbound calls (geocoder, notification sends).
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class TokenBucket:
    """
    Async token bucket. `acquire()` waits until a token is available.

    With capacity=1 this degrades to "at most one call per 1/rate seconds",
    which is what third-party geocoders and mail relays ask for.
    """

    def __init__(
        self,
        rate: float,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if rate < 0:
            raise ValueError("rate must be >= 0")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._updated = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def every(cls, seconds: float, **kwargs) -> "TokenBucket":
        """One token per `seconds`; 0 means unlimited."""
        if seconds <= 0:
            return cls(rate=0, **kwargs)
        return cls(rate=1.0 / seconds, **kwargs)

    @property
    def unlimited(self) -> bool:
        return self.rate == 0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._updated = now
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)

    async def acquire(self) -> float:
        """Take one token. Returns the total seconds spent waiting."""
        if self.unlimited:
            return 0.0
        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited
                delay = (1 - self._tokens) / self.rate
                waited += delay
                await self._sleep(delay)


__all__ = ["TokenBucket"]
