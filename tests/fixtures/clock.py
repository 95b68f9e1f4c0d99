"""Manual clock for timing tests without real timers."""

from __future__ import annotations

import asyncio
import heapq
import itertools


class ManualClock:
    """Clock whose time only moves when the test says so.

    With `auto_advance=True` every sleep completes at once and moves time
    forward by its duration, which is enough to measure total elapsed time.
    Otherwise sleepers wait until `advance()` reaches their deadline.
    """

    def __init__(self, auto_advance: bool = False):
        self.now = 0.0
        self.auto_advance = auto_advance
        self.sleeps: list[float] = []
        self._waiters: list[tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.auto_advance:
            self.now += seconds
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + seconds, next(self._seq), future))
        await future

    @property
    def pending(self) -> int:
        return sum(1 for _, _, f in self._waiters if not f.done())

    @property
    def elapsed_ms(self) -> int:
        return round(self.now * 1000)

    async def settle(self, rounds: int = 100) -> None:
        """Let every runnable task make progress."""
        for _ in range(rounds):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking sleepers in deadline order."""
        target = self.now + seconds
        await self.settle()
        while self._waiters and self._waiters[0][0] <= target:
            deadline, _, future = heapq.heappop(self._waiters)
            self.now = max(self.now, deadline)
            if not future.done():
                future.set_result(None)
            await self.settle()
        self.now = target
