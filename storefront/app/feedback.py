"""Haptic and audio cues. Fire-and-forget: a failing sink never affects the caller."""
from __future__ import annotations

import enum
import logging
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class FeedbackCue(str, enum.Enum):
    SHAKE_ACCEPTED = "shake_accepted"
    PIN_PROMPT = "pin_prompt"
    PIN_REJECTED = "pin_rejected"
    ADDED_TO_ORDER = "added_to_order"
    ORDER_PLACED = "order_placed"


# Vibration pattern (ms) and optional sound for each cue.
CUE_PATTERNS: Dict[FeedbackCue, Dict[str, Any]] = {
    FeedbackCue.SHAKE_ACCEPTED: {"vibrate": [50], "sound": None},
    FeedbackCue.PIN_PROMPT: {"vibrate": [100, 50, 100], "sound": None},
    FeedbackCue.PIN_REJECTED: {"vibrate": [300], "sound": None},
    FeedbackCue.ADDED_TO_ORDER: {"vibrate": [200], "sound": None},
    FeedbackCue.ORDER_PLACED: {"vibrate": [100, 50, 100], "sound": "service_bell"},
}


class FeedbackSink(Protocol):
    def emit(self, cue: FeedbackCue) -> None: ...


def emit_cue(sink: Optional[FeedbackSink], cue: FeedbackCue) -> None:
    if sink is None:
        return
    try:
        sink.emit(cue)
    except Exception as exc:
        logger.warning("Feedback cue %s failed (ignored): %s", cue.value, exc)


__all__ = ["FeedbackCue", "CUE_PATTERNS", "FeedbackSink", "emit_cue"]
