"""Time source used by every timer in the controller."""
from __future__ import annotations

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time plus a cancellable sleep.

    All scheduled delays (shuffle ticks, settle hold, idle window, view
    timers) go through ``sleep`` so tests can drive them with a virtual clock.
    """

    def monotonic_ms(self) -> int: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall-clock implementation backed by the running event loop."""

    def monotonic_ms(self) -> int:
        return int(time.monotonic() * 1000)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


__all__ = ["Clock", "SystemClock"]
