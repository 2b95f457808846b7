"""Owner mode: PIN gate plus CRUD over the persisted 'Today's Special' items."""
from __future__ import annotations

import hmac
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from .cart import CartLedger
from .config import AdminSettings
from .feedback import FeedbackCue, FeedbackSink, emit_cue
from .models import MenuItem, MenuItemDraft
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

_ITEM_LIST = TypeAdapter(List[MenuItem])

AuthenticatedCallback = Callable[[], Awaitable[None]]
SpecialsChangedCallback = Callable[[Tuple[MenuItem, ...]], None]
ItemDeletedCallback = Callable[[str], None]


@dataclass
class AdminSession:
    authenticated: bool = False
    pin_buffer: str = ""
    prompt_open: bool = False


class AdminGate:
    """Owns the admin session and the custom-item list; nothing else writes either."""

    def __init__(
        self,
        *,
        store: KeyValueStore,
        cart: CartLedger,
        settings: Optional[AdminSettings] = None,
        feedback: Optional[FeedbackSink] = None,
        on_authenticated: Optional[AuthenticatedCallback] = None,
        on_specials_changed: Optional[SpecialsChangedCallback] = None,
        on_item_deleted: Optional[ItemDeletedCallback] = None,
    ) -> None:
        self.settings = settings or AdminSettings()
        self.session = AdminSession()
        self._store = store
        self._cart = cart
        self._feedback = feedback
        self._on_authenticated = on_authenticated
        self._on_specials_changed = on_specials_changed
        self._on_item_deleted = on_item_deleted
        self._items: List[MenuItem] = self._load()

    @property
    def custom_items(self) -> Tuple[MenuItem, ...]:
        return tuple(self._items)

    # ============================================================
    # PIN entry
    # ============================================================

    def open_prompt(self) -> None:
        """Owner long-pressed the logo; show the keypad."""
        self.session.prompt_open = True
        self.session.pin_buffer = ""
        emit_cue(self._feedback, FeedbackCue.PIN_PROMPT)

    async def submit_digit(self, digit: str) -> Optional[bool]:
        """
        Append one digit. Returns None while the buffer is still filling,
        True when the full PIN authenticated, False when it was rejected.
        """
        if not self.session.prompt_open:
            logger.debug("Ignoring PIN input: keypad not open")
            return None
        if len(digit) != 1 or not digit.isdigit():
            logger.debug("Ignoring non-digit PIN input")
            return None
        if len(self.session.pin_buffer) >= self.settings.pin_length:
            return None

        self.session.pin_buffer += digit
        if len(self.session.pin_buffer) < self.settings.pin_length:
            return None

        attempt, self.session.pin_buffer = self.session.pin_buffer, ""
        expected = self.settings.pin.get_secret_value()
        if not hmac.compare_digest(attempt.encode(), expected.encode()):
            logger.info("🔒 Owner PIN rejected")
            emit_cue(self._feedback, FeedbackCue.PIN_REJECTED)
            return False

        self.session.authenticated = True
        self.session.prompt_open = False
        logger.info("🔓 Owner mode unlocked")
        if self._on_authenticated:
            try:
                await self._on_authenticated()
            except Exception:
                logger.exception("Admin authenticated callback failed")
        return True

    def clear_pin(self) -> None:
        self.session.pin_buffer = ""

    def cancel(self) -> None:
        self.session.pin_buffer = ""
        self.session.prompt_open = False

    def logout(self) -> None:
        self.session = AdminSession()
        logger.info("🔒 Owner mode closed")

    # ============================================================
    # Custom item CRUD
    # ============================================================

    def add_item(self, draft: MenuItemDraft) -> MenuItem:
        item = MenuItem.from_draft(self._new_id(), draft)
        self._items.insert(0, item)
        logger.info("⭐ Added special %s (%s)", item.name, item.id)
        self._persist()
        return item

    def update_item(self, item_id: str, draft: MenuItemDraft) -> Optional[MenuItem]:
        for index, existing in enumerate(self._items):
            if existing.id == item_id:
                item = MenuItem.from_draft(item_id, draft)
                self._items[index] = item
                logger.info("⭐ Updated special %s", item_id)
                self._persist()
                return item
        logger.debug("Update ignored: no special with id %s", item_id)
        return None

    def delete_item(self, item_id: str) -> bool:
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            logger.debug("Delete ignored: no special with id %s", item_id)
            return False
        self._items = remaining
        logger.info("⭐ Deleted special %s", item_id)
        self._persist()
        self._cart.remove_all_of(item_id)
        if self._on_item_deleted:
            try:
                self._on_item_deleted(item_id)
            except Exception:
                logger.exception("Item deleted callback failed")
        return True

    def _new_id(self) -> str:
        existing = {item.id for item in self._items}
        candidate = f"custom-{int(time.time() * 1000)}"
        while candidate in existing:
            candidate = f"custom-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
        return candidate

    def _load(self) -> List[MenuItem]:
        raw = self._store.get(self.settings.storage_key)
        if not raw:
            return []
        try:
            items = _ITEM_LIST.validate_json(raw)
        except (ValidationError, ValueError) as exc:
            logger.warning("Persisted specials unreadable, starting with none: %s", exc)
            return []
        seen: set[str] = set()
        unique = []
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            unique.append(item)
        logger.info("⭐ Loaded %d persisted specials", len(unique))
        return unique

    def _persist(self) -> None:
        try:
            self._store.set(self.settings.storage_key, _ITEM_LIST.dump_json(self._items).decode("utf-8"))
        except Exception:
            logger.exception("Failed to persist specials")
        if self._on_specials_changed:
            try:
                self._on_specials_changed(self.custom_items)
            except Exception:
                logger.exception("Specials changed callback failed")


__all__ = ["AdminGate", "AdminSession"]
