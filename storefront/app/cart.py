"""Order aggregate: one line per menu item id, quantities always ≥ 1."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Dict, Optional, Tuple

from .models import CartLine, CartTotals, MenuItem

logger = logging.getLogger(__name__)

CartChangedCallback = Callable[[Tuple[CartLine, ...], CartTotals], None]


class CartLedger:
    """Insertion-ordered cart lines keyed by item id.

    Totals are derived from the lines on every read.
    """

    def __init__(self, on_changed: Optional[CartChangedCallback] = None) -> None:
        self._lines: Dict[str, CartLine] = {}
        self._on_changed = on_changed

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines.values())

    @property
    def totals(self) -> CartTotals:
        return CartTotals(
            total_items=sum(line.quantity for line in self._lines.values()),
            total_price=sum(line.line_total for line in self._lines.values()),
        )

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get(self, item_id: str) -> Optional[CartLine]:
        return self._lines.get(item_id)

    def add(self, item: MenuItem) -> CartLine:
        existing = self._lines.get(item.id)
        if existing:
            line = CartLine(item=existing.item, quantity=existing.quantity + 1)
        else:
            line = CartLine(item=item, quantity=1)
        self._lines[item.id] = line
        logger.info("🛒 Added %s (qty=%d)", item.name, line.quantity)
        self._notify()
        return line

    def adjust_quantity(self, item_id: str, delta: int) -> Optional[CartLine]:
        """Apply ``delta``; the line is removed once it reaches zero. Unknown ids are ignored."""
        existing = self._lines.get(item_id)
        if existing is None:
            logger.debug("🛒 Ignoring quantity change for unknown item %s", item_id)
            return None
        quantity = existing.quantity + delta
        if quantity <= 0:
            del self._lines[item_id]
            logger.info("🛒 Removed %s", existing.item.name)
            self._notify()
            return None
        line = CartLine(item=existing.item, quantity=quantity)
        self._lines[item_id] = line
        self._notify()
        return line

    def remove_all_of(self, item_id: str) -> bool:
        """Drop every line for ``item_id`` (used when the menu item itself is deleted)."""
        if self._lines.pop(item_id, None) is None:
            return False
        logger.info("🛒 Removed deleted item %s from cart", item_id)
        self._notify()
        return True

    def _notify(self) -> None:
        if self._on_changed is None:
            return
        try:
            self._on_changed(self.lines, self.totals)
        except Exception:
            logger.exception("Cart change callback failed")


__all__ = ["CartLedger"]
