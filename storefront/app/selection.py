"""Chef-decides shuffle: a stepped random reveal that settles on one menu item."""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Optional

from .clock import Clock, SystemClock
from .config import SelectionSettings
from .models import MenuItem
from .state import InteractionContext, SelectionStatus

logger = logging.getLogger(__name__)

DisplayCallback = Callable[["SelectionSession"], Awaitable[None]]
WinnerCallback = Callable[[MenuItem], Awaitable[None]]


@dataclass
class SelectionSession:
    status: SelectionStatus = SelectionStatus.IDLE
    pool: tuple[MenuItem, ...] = ()
    ticks_elapsed: int = 0
    current_displayed: Optional[MenuItem] = None
    winner: Optional[MenuItem] = None
    started_at_ms: Optional[int] = None


class SelectionAnimator:
    """
    Runs one shuffle session at a time.

    IDLE → RUNNING (N ticks, one uniform draw each) → SETTLING (independent
    winner draw, held) → DONE (winner handed to ``on_done``) → IDLE.
    """

    def __init__(
        self,
        *,
        settings: Optional[SelectionSettings] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        on_display: Optional[DisplayCallback] = None,
    ) -> None:
        self.settings = settings or SelectionSettings()
        self._rng = rng or random.Random(self.settings.seed)
        self._clock = clock or SystemClock()
        self._on_display = on_display
        self._session = SelectionSession()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def session(self) -> SelectionSession:
        return self._session

    @property
    def status(self) -> SelectionStatus:
        return self._session.status

    @property
    def is_active(self) -> bool:
        return self._session.status in {SelectionStatus.RUNNING, SelectionStatus.SETTLING}

    def can_start(self, context: InteractionContext) -> bool:
        if self.is_active or (self._task and not self._task.done()):
            return False
        return not (context.detail_open or context.cart_open)

    def start(
        self,
        pool: Sequence[MenuItem],
        context: InteractionContext,
        on_done: WinnerCallback,
    ) -> bool:
        """Begin a session; returns False when the entry guard refuses it."""
        if not self.can_start(context):
            logger.debug("🎲 Selection refused (status=%s, context=%s)", self.status.value, context)
            return False
        if not pool:
            logger.warning("🎲 Selection refused: candidate pool is empty")
            return False

        self._session = SelectionSession(
            status=SelectionStatus.RUNNING,
            pool=tuple(pool),
            started_at_ms=self._clock.monotonic_ms(),
        )
        self._task = asyncio.create_task(self._run(on_done), name="chef-selection")
        return True

    async def cancel(self) -> None:
        """Abort a running session without delivering a winner."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._session = SelectionSession()

    async def wait(self) -> None:
        if self._task:
            await asyncio.shield(self._task)

    async def _run(self, on_done: WinnerCallback) -> None:
        session = self._session
        pool = session.pool
        tick_seconds = self.settings.tick_interval_ms / 1000
        logger.info("🎲 [SELECTION] Chef is deciding among %d items", len(pool))
        try:
            for _ in range(self.settings.ticks):
                session.current_displayed = self._rng.choice(pool)
                session.ticks_elapsed += 1
                await self._display(session)
                await self._clock.sleep(tick_seconds)

            session.status = SelectionStatus.SETTLING
            session.winner = self._rng.choice(pool)
            session.current_displayed = session.winner
            await self._display(session)
            await self._clock.sleep(self.settings.settle_ms / 1000)

            session.status = SelectionStatus.DONE
            winner = session.winner
            logger.info("🎲 [SELECTION] Chef picked %s (%s)", winner.name, winner.id)
        except asyncio.CancelledError:
            logger.info("🎲 [SELECTION] Session cancelled")
            self._session = SelectionSession()
            raise

        self._session = SelectionSession()
        try:
            await on_done(winner)
        except Exception:
            logger.exception("Selection winner callback failed")

    async def _display(self, session: SelectionSession) -> None:
        if self._on_display is None:
            return
        try:
            await self._on_display(session)
        except Exception:
            logger.exception("Selection display callback failed")


__all__ = ["SelectionAnimator", "SelectionSession"]
