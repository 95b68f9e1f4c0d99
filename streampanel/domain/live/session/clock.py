"""Time and cancellation primitives for session controllers."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    def monotonic(self) -> float:
        """Seconds on a monotonic timeline."""

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task without blocking the loop."""


class AsyncioClock:
    """Clock backed by the running event loop."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class CancellationToken:
    """One-shot cancellation flag owned by a single acquisition run.

    A new run always gets a new token, so cancelling one run can never be
    undone by starting the next.
    """

    __slots__ = ("_cancelled", "label")

    def __init__(self, label: str = ""):
        self._cancelled = False
        self.label = label

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return f"CancellationToken({self.label!r}, cancelled={self._cancelled})"
