"""Idle attention timer: a repeating debounce that nudges the user after a quiet period."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from .clock import Clock, SystemClock
from .state import InteractionContext

logger = logging.getLogger(__name__)

IdleCallback = Callable[[], Awaitable[None]]


class IdleAttentionTimer:
    """
    Fires ``on_idle`` after ``quiet_period_ms`` without ``on_activity()``.

    The fire is swallowed while the interaction context reports an open
    modal or running session; either way the countdown re-arms.
    """

    def __init__(
        self,
        *,
        quiet_period_ms: int,
        context: Callable[[], InteractionContext],
        on_idle: IdleCallback,
        clock: Optional[Clock] = None,
    ) -> None:
        self.quiet_period_ms = quiet_period_ms
        self._context = context
        self._on_idle = on_idle
        self._clock = clock or SystemClock()
        self._task: Optional[asyncio.Task[None]] = None
        self._fired_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def fired_count(self) -> int:
        return self._fired_count

    def start(self) -> None:
        if self.running:
            return
        self._arm()

    def on_activity(self) -> None:
        """Restart the countdown from now."""
        if self._task is None:
            return
        self._task.cancel()
        self._arm()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _arm(self) -> None:
        self._task = asyncio.create_task(self._countdown(), name="idle-attention-timer")

    async def _countdown(self) -> None:
        while True:
            await self._clock.sleep(self.quiet_period_ms / 1000)
            if self._context().suppresses_idle:
                logger.debug("💤 Idle hint suppressed (modal or session active)")
                continue
            self._fired_count += 1
            logger.info("💤 No activity for %dms - showing idle hint", self.quiet_period_ms)
            try:
                await self._on_idle()
            except Exception:
                logger.exception("Idle callback failed")


__all__ = ["IdleAttentionTimer"]
