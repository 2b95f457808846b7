"""Shared controller state definitions for the storefront kiosk."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class SelectionStatus(str, enum.Enum):
    """
    Chef-decides session states in chronological order:

    1. IDLE      - No session; shakes and taps are accepted
    2. RUNNING   - 20 shuffle displays, 80ms apart
    3. SETTLING  - Winner drawn and held for 800ms
    4. DONE      - Winner delivered to the host → IDLE
    """
    IDLE = "idle"
    RUNNING = "running"
    SETTLING = "settling"
    DONE = "done"


class Decision(str, enum.Enum):
    """Outcome of classifying a single motion sample."""
    NONE = "none"
    SHAKE = "shake"


@dataclass(frozen=True)
class InteractionContext:
    """Snapshot of the modal UI state consulted by the gesture gate and idle timer."""

    detail_open: bool = False
    cart_open: bool = False
    session_active: bool = False

    @property
    def blocks_selection(self) -> bool:
        return self.detail_open or self.cart_open or self.session_active

    @property
    def suppresses_idle(self) -> bool:
        return self.detail_open or self.cart_open or self.session_active


@dataclass
class ControllerEvent:
    """Event payload distributed to UI clients over the local WebSocket."""

    type: str
    data: Dict[str, Any]
    status: SelectionStatus
    error: Optional[str] = None


__all__ = ["SelectionStatus", "Decision", "InteractionContext", "ControllerEvent"]
