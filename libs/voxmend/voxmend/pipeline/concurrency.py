from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass


@dataclass(frozen=True)
class ConcurrencyState:
    active: int
    max: int
    peak: int = 0


class ConcurrencyGate:
    """Semaphore-gated slot pool with active/peak counters.

    One gate per pipeline (or per stage run); never shared process-wide.
    """

    def __init__(self, name: str, limit: int) -> None:
        self.name = name
        self.limit = max(1, int(limit))
        self._semaphore = asyncio.Semaphore(self.limit)
        self._active = 0
        self._peak = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def peak(self) -> int:
        return self._peak

    def snapshot(self) -> ConcurrencyState:
        return ConcurrencyState(active=int(self._active), max=int(self.limit), peak=int(self._peak))

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[ConcurrencyState]:
        async with self._semaphore:
            # Single event loop: counter updates need no lock between awaits.
            self._active += 1
            self._peak = max(self._peak, self._active)
            try:
                yield self.snapshot()
            finally:
                self._active -= 1
