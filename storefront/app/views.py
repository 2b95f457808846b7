"""View state the controller tracks for the host: item detail modal and cart drawer.

Both own their timers and cancel them on every exit path.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from .cart import CartLedger
from .clock import Clock, SystemClock
from .config import ViewSettings
from .feedback import FeedbackCue, FeedbackSink, emit_cue
from .models import MenuItem

logger = logging.getLogger(__name__)

ViewChangedCallback = Callable[[], None]


async def _cancel_task(task: Optional[asyncio.Task[None]]) -> None:
    if task is None or task.done() or task is asyncio.current_task():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


class DetailView:
    """Item detail modal. Opened by a long-press browse or by a chef recommendation."""

    def __init__(
        self,
        *,
        cart: CartLedger,
        settings: Optional[ViewSettings] = None,
        clock: Optional[Clock] = None,
        feedback: Optional[FeedbackSink] = None,
        on_change: Optional[ViewChangedCallback] = None,
    ) -> None:
        self.settings = settings or ViewSettings()
        self._cart = cart
        self._clock = clock or SystemClock()
        self._feedback = feedback
        self._on_change = on_change
        self.item: Optional[MenuItem] = None
        self.recommendation = False
        self.added = False
        self._close_task: Optional[asyncio.Task[None]] = None

    @property
    def is_open(self) -> bool:
        return self.item is not None

    def open(self, item: MenuItem, *, recommendation: bool = False) -> None:
        if self._close_task and not self._close_task.done():
            self._close_task.cancel()
        self._close_task = None
        self.item = item
        self.recommendation = recommendation
        self.added = False
        logger.info("📖 Detail opened: %s%s", item.name, " (chef's pick)" if recommendation else "")
        self._notify()

    async def close(self) -> None:
        task, self._close_task = self._close_task, None
        await _cancel_task(task)
        if self.item is None:
            return
        self.item = None
        self.recommendation = False
        self.added = False
        self._notify()

    def dismiss(self, item_id: str) -> bool:
        """Close immediately if ``item_id`` is the item on show (it left the menu)."""
        if self.item is None or self.item.id != item_id:
            return False
        if self._close_task and not self._close_task.done():
            self._close_task.cancel()
        self._close_task = None
        logger.info("📖 Detail dismissed: %s is no longer on the menu", item_id)
        self.item = None
        self.recommendation = False
        self.added = False
        self._notify()
        return True

    def add_to_order(self) -> bool:
        """Add the shown item once; the view closes itself after the confirmation delay."""
        if self.item is None or self.added:
            return False
        self.added = True
        self._cart.add(self.item)
        emit_cue(self._feedback, FeedbackCue.ADDED_TO_ORDER)
        self._close_task = asyncio.create_task(self._close_after_confirm(), name="detail-auto-close")
        self._notify()
        return True

    async def _close_after_confirm(self) -> None:
        await self._clock.sleep(self.settings.add_confirm_ms / 1000)
        await self.close()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception:
            logger.exception("Detail view change callback failed")


class CartDrawer:
    """Cart drawer visibility plus the local-only 'order placed' state."""

    def __init__(
        self,
        *,
        cart: CartLedger,
        settings: Optional[ViewSettings] = None,
        clock: Optional[Clock] = None,
        feedback: Optional[FeedbackSink] = None,
        on_change: Optional[ViewChangedCallback] = None,
    ) -> None:
        self.settings = settings or ViewSettings()
        self._cart = cart
        self._clock = clock or SystemClock()
        self._feedback = feedback
        self._on_change = on_change
        self.is_open = False
        self.placed = False
        self._reset_task: Optional[asyncio.Task[None]] = None

    def open(self) -> None:
        if self._reset_task and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None
        self.is_open = True
        self.placed = False
        self._notify()

    def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        if self.placed:
            self._reset_task = asyncio.create_task(self._reset_after_close(), name="cart-order-reset")
        self._notify()

    def place_order(self) -> bool:
        """Local notification only: the ledger is left untouched."""
        if not self.is_open or self._cart.is_empty or self.placed:
            return False
        self.placed = True
        totals = self._cart.totals
        logger.info("🔔 Order placed (%d items, total %d)", totals.total_items, totals.total_price)
        emit_cue(self._feedback, FeedbackCue.ORDER_PLACED)
        self._notify()
        return True

    async def stop(self) -> None:
        task, self._reset_task = self._reset_task, None
        await _cancel_task(task)

    async def _reset_after_close(self) -> None:
        await self._clock.sleep(self.settings.order_reset_ms / 1000)
        self.placed = False
        self._notify()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception:
            logger.exception("Cart drawer change callback failed")


__all__ = ["DetailView", "CartDrawer"]
