from __future__ import annotations

import asyncio
import time
from typing import Optional


class AsyncRateLimiter:
    """Hands out evenly spaced call slots for a third-party API.

    Each caller reserves the next free slot under the lock and then sleeps
    until it arrives, so ``max_per_minute`` is never exceeded in any window.
    """

    def __init__(self, max_per_minute: int) -> None:
        self.max_per_minute = max(1, max_per_minute)
        self.interval = 60.0 / self.max_per_minute
        self._lock = asyncio.Lock()
        self._last_slot: Optional[float] = None

    def _reserve(self, now: float) -> float:
        if self._last_slot is None:
            slot = now
        else:
            slot = max(now, self._last_slot + self.interval)
        self._last_slot = slot
        return slot - now

    async def wait(self) -> None:
        async with self._lock:
            delay = self._reserve(time.monotonic())
            if delay > 0:
                await asyncio.sleep(delay)
