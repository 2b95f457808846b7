"""Storefront controller orchestration: wires the gesture core to the UI event stream."""
from __future__ import annotations

import asyncio
from asyncio import QueueEmpty
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .admin import AdminGate
from .cart import CartLedger
from .clock import Clock, SystemClock
from .config import Settings, get_settings
from .feedback import CUE_PATTERNS, FeedbackCue
from .gesture_controller import SessionGestureController
from .menu import MenuCatalog, MenuCategory, load_catalog
from .models import CartLine, CartTotals, MenuItem, MotionSample
from .selection import SelectionAnimator, SelectionSession
from .sensors.motion import MotionSignalClassifier
from .sensors.source import MotionSource, PushMotionSource
from .state import ControllerEvent, InteractionContext, SelectionStatus
from .storage import JsonFileStore, KeyValueStore
from .views import CartDrawer, DetailView

logger = logging.getLogger(__name__)


class StorefrontManager:
    """Owns every core component plus the UI subscriber queues."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        store: Optional[KeyValueStore] = None,
        motion_source: Optional[MotionSource] = None,
        categories: Optional[Sequence[MenuCategory]] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._clock = clock or SystemClock()
        self._ui_subscribers: List[asyncio.Queue[ControllerEvent]] = []
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._started = False

        self.cart = CartLedger(on_changed=self._on_cart_changed)
        self.admin = AdminGate(
            store=store if store is not None else JsonFileStore(self.settings.store_path),
            cart=self.cart,
            settings=self.settings.admin,
            feedback=self,
            on_authenticated=self._on_admin_authenticated,
            on_specials_changed=self._on_specials_changed,
            on_item_deleted=self._on_special_deleted,
        )
        if categories is None:
            categories = load_catalog(self.settings.menu_catalog_path)
        self.catalog = MenuCatalog(categories, specials=lambda: self.admin.custom_items)

        self.motion_source: MotionSource = motion_source or PushMotionSource(
            requires_permission=self.settings.motion.requires_permission,
            permission_timeout_s=self.settings.motion.permission_timeout_s,
        )
        self.animator = SelectionAnimator(
            settings=self.settings.selection,
            rng=rng,
            clock=self._clock,
            on_display=self._on_selection_display,
        )
        self.detail = DetailView(
            cart=self.cart,
            settings=self.settings.views,
            clock=self._clock,
            feedback=self,
            on_change=self._on_detail_changed,
        )
        self.drawer = CartDrawer(
            cart=self.cart,
            settings=self.settings.views,
            clock=self._clock,
            feedback=self,
            on_change=self._on_drawer_changed,
        )
        self.controller = SessionGestureController(
            motion_source=self.motion_source,
            classifier=MotionSignalClassifier(self.settings.motion),
            animator=self.animator,
            context=self.interaction_context,
            pool=self.catalog.pool,
            on_winner=self._on_winner_selected,
            on_idle_hint=self._on_idle_hint,
            on_permission_denied=self._on_permission_denied,
            idle_settings=self.settings.idle,
            clock=self._clock,
            feedback=self,
        )

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def status(self) -> SelectionStatus:
        return self.animator.status

    def interaction_context(self) -> InteractionContext:
        return InteractionContext(
            detail_open=self.detail.is_open,
            cart_open=self.drawer.is_open,
            session_active=self.animator.is_active,
        )

    async def start(self) -> None:
        if self._started:
            return
        logger.info("Starting storefront manager")
        await self.controller.start()
        self._started = True
        logger.info(
            "Storefront manager started (%d menu items, motion=%s)",
            len(self.catalog.pool()),
            "available" if self.motion_source.available else "unavailable",
        )

    async def stop(self) -> None:
        logger.info("Stopping storefront manager")
        for task in list(self._background_tasks):
            task.cancel()
        for task in list(self._background_tasks):
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Error stopping background task: %s", e)
        self._background_tasks.clear()

        await self.controller.stop()
        await self.detail.close()
        await self.drawer.stop()
        self._started = False
        logger.info("Storefront manager stopped")

    # ============================================================
    # UI subscribers
    # ============================================================

    def register_ui(self) -> asyncio.Queue[ControllerEvent]:
        queue: asyncio.Queue[ControllerEvent] = asyncio.Queue(maxsize=self.settings.performance.ui_event_queue_size)
        self._ui_subscribers.append(queue)
        return queue

    def unregister_ui(self, queue: asyncio.Queue[ControllerEvent]) -> None:
        if queue in self._ui_subscribers:
            self._ui_subscribers.remove(queue)

    def _publish(self, type_: str, data: Dict[str, Any], *, error: Optional[str] = None) -> None:
        """Broadcast event to all UI subscribers, dropping the oldest event when a queue is full."""
        event = ControllerEvent(type=type_, data=data, status=self.status, error=error)
        for queue in list(self._ui_subscribers):
            try:
                if queue.full():
                    try:
                        queue.get_nowait()
                    except QueueEmpty:
                        pass
                queue.put_nowait(event)
            except Exception as e:
                logger.warning("Failed to broadcast event to subscriber: %s", e)

    # FeedbackSink
    def emit(self, cue: FeedbackCue) -> None:
        self._publish("feedback", {"cue": cue.value, **CUE_PATTERNS[cue]})

    # ============================================================
    # Host actions
    # ============================================================

    async def push_sample(self, sample: MotionSample) -> None:
        if isinstance(self.motion_source, PushMotionSource):
            await self.motion_source.push(sample)
        else:
            logger.debug("Ignoring pushed sample: motion source is not push-fed")

    async def trigger_selection(self) -> bool:
        await self.controller.note_activity()
        return await self.controller.trigger_manual()

    def request_motion_permission(self) -> None:
        """Start the permission step; the outcome arrives as UI events."""
        self._publish("permission", {"state": "requested"})
        self._spawn(self.controller.request_motion_permission(), name="motion-permission")

    def resolve_motion_permission(self, granted: bool) -> bool:
        if isinstance(self.motion_source, PushMotionSource):
            return self.motion_source.resolve_permission(granted)
        return False

    async def note_activity(self) -> None:
        await self.controller.note_activity()

    async def open_detail(self, item_id: str) -> Optional[MenuItem]:
        await self.note_activity()
        item = self.catalog.find(item_id)
        if item is None or self.animator.is_active:
            return None
        self.detail.open(item, recommendation=False)
        return item

    async def close_detail(self) -> None:
        await self.note_activity()
        await self.detail.close()

    async def add_detail_to_order(self) -> bool:
        await self.note_activity()
        shown = self.detail.item
        if shown is not None and self.catalog.find(shown.id) is None:
            logger.warning("Refusing to add %s: no longer on the menu", shown.id)
            self.detail.dismiss(shown.id)
            return False
        return self.detail.add_to_order()

    async def add_to_cart(self, item_id: str) -> Optional[CartLine]:
        await self.note_activity()
        item = self.catalog.find(item_id)
        if item is None:
            return None
        return self.cart.add(item)

    async def adjust_cart(self, item_id: str, delta: int) -> Optional[CartLine]:
        await self.note_activity()
        return self.cart.adjust_quantity(item_id, delta)

    async def open_cart(self) -> bool:
        await self.note_activity()
        if self.animator.is_active:
            return False
        self.drawer.open()
        return True

    async def close_cart(self) -> None:
        await self.note_activity()
        self.drawer.close()

    async def place_order(self) -> bool:
        await self.note_activity()
        return self.drawer.place_order()

    # ============================================================
    # Callbacks from the core
    # ============================================================

    async def _on_selection_display(self, session: SelectionSession) -> None:
        shown = session.current_displayed
        self._publish(
            "selection",
            {
                "tick": session.ticks_elapsed,
                "settling": session.status is SelectionStatus.SETTLING,
                "item": shown.model_dump() if shown else None,
            },
        )

    async def _on_winner_selected(self, item: MenuItem) -> None:
        if self.catalog.find(item.id) is None:
            logger.warning("Chef picked %s but it left the menu mid-shuffle - dropped", item.id)
            return
        self._publish("winner", {"item": item.model_dump(), "recommendation": True})
        self.detail.open(item, recommendation=True)

    async def _on_idle_hint(self, shown: bool) -> None:
        self._publish("idle_hint", {"shown": shown})

    async def _on_permission_denied(self, message: str) -> None:
        self._publish("permission", {"state": "denied"}, error=message)

    async def _on_admin_authenticated(self) -> None:
        self._publish("admin", {"authenticated": True})

    def _on_specials_changed(self, specials: Sequence[MenuItem]) -> None:
        self._publish("menu", {"specials": [item.model_dump() for item in specials]})

    def _on_special_deleted(self, item_id: str) -> None:
        self.detail.dismiss(item_id)

    def _on_cart_changed(self, lines: Sequence[CartLine], totals: CartTotals) -> None:
        self._publish("cart", cart_payload(lines, totals))

    def _on_detail_changed(self) -> None:
        item = self.detail.item
        self._publish(
            "detail",
            {
                "open": item is not None,
                "item": item.model_dump() if item else None,
                "recommendation": self.detail.recommendation,
                "added": self.detail.added,
            },
        )

    def _on_drawer_changed(self) -> None:
        self._publish("order", {"open": self.drawer.is_open, "placed": self.drawer.placed})

    def _spawn(self, coro: Any, *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task


def cart_payload(lines: Sequence[CartLine], totals: CartTotals) -> Dict[str, Any]:
    return {
        "lines": [
            {"item": line.item.model_dump(), "quantity": line.quantity, "line_total": line.line_total}
            for line in lines
        ],
        "total_items": totals.total_items,
        "total_price": totals.total_price,
    }


__all__ = ["StorefrontManager", "cart_payload"]
