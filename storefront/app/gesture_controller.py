"""Gesture orchestration: shake/tap gating, chef selection and the idle hint."""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional

from .clock import Clock, SystemClock
from .config import IdleSettings
from .feedback import FeedbackCue, FeedbackSink, emit_cue
from .idle import IdleAttentionTimer
from .models import MenuItem, MotionSample, ShakeEvent
from .selection import SelectionAnimator
from .sensors.motion import ClassifierState, MotionSignalClassifier
from .sensors.source import MotionSource, Unsubscribe
from .state import Decision, InteractionContext

logger = logging.getLogger(__name__)

WinnerCallback = Callable[[MenuItem], Awaitable[None]]
IdleHintCallback = Callable[[bool], Awaitable[None]]
PermissionDeniedCallback = Callable[[str], Awaitable[None]]

MOTION_UNAVAILABLE_MESSAGE = "Shake isn't available on this device. Tap \"Chef decides\" instead."
MOTION_DENIED_MESSAGE = (
    "Motion access was denied. Allow motion & orientation access in your browser settings, "
    "or tap \"Chef decides\" instead."
)


class SessionGestureController:
    """
    Feeds physical shakes and manual taps through one gate into the animator.

    Gate: no session active, no detail view open, no cart drawer open.
    Events failing the gate are dropped, never queued.
    """

    def __init__(
        self,
        *,
        motion_source: MotionSource,
        classifier: MotionSignalClassifier,
        animator: SelectionAnimator,
        context: Callable[[], InteractionContext],
        pool: Callable[[], Sequence[MenuItem]],
        on_winner: WinnerCallback,
        on_idle_hint: Optional[IdleHintCallback] = None,
        on_permission_denied: Optional[PermissionDeniedCallback] = None,
        idle_settings: Optional[IdleSettings] = None,
        clock: Optional[Clock] = None,
        feedback: Optional[FeedbackSink] = None,
    ) -> None:
        self._source = motion_source
        self._classifier = classifier
        self._animator = animator
        self._context = context
        self._pool = pool
        self._on_winner = on_winner
        self._on_idle_hint = on_idle_hint
        self._on_permission_denied = on_permission_denied
        self._clock = clock or SystemClock()
        self._feedback = feedback
        idle_settings = idle_settings or IdleSettings()
        self._idle = IdleAttentionTimer(
            quiet_period_ms=idle_settings.quiet_period_ms,
            context=context,
            on_idle=self._show_idle_hint,
            clock=self._clock,
        )
        self._classifier_state: ClassifierState = classifier.initial_state(self._clock.monotonic_ms())
        self._unsubscribe: Optional[Unsubscribe] = None
        self._idle_hint_shown = False
        self._session_seq = 0
        self._delivered_seq = 0

    @property
    def idle_hint_shown(self) -> bool:
        return self._idle_hint_shown

    @property
    def idle_timer(self) -> IdleAttentionTimer:
        return self._idle

    async def start(self) -> None:
        self._classifier_state = self._classifier.initial_state(self._clock.monotonic_ms())
        if self._source.available and self._unsubscribe is None:
            self._unsubscribe = self._source.subscribe(self.handle_sample)
        elif not self._source.available:
            logger.info("📳 No motion capability - manual trigger only")
        self._idle.start()
        logger.info("Gesture controller started")

    async def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        await self._animator.cancel()
        await self._idle.stop()
        self._idle_hint_shown = False
        logger.info("Gesture controller stopped")

    # ============================================================
    # Event sources
    # ============================================================

    async def handle_sample(self, sample: MotionSample) -> None:
        decision, self._classifier_state = self._classifier.classify(sample, self._classifier_state)
        if decision is Decision.SHAKE:
            await self.handle_shake(ShakeEvent(timestamp_ms=sample.timestamp_ms, source="shake"))

    async def trigger_manual(self) -> bool:
        """Tap-to-decide: identical gate and session path to a physical shake."""
        return await self.handle_shake(ShakeEvent(timestamp_ms=self._clock.monotonic_ms(), source="manual"))

    async def handle_shake(self, event: ShakeEvent) -> bool:
        context = self._context()
        if context.blocks_selection or self._animator.is_active:
            logger.debug("📳 %s dropped by gate (%s)", event.source, context)
            return False
        pool = tuple(self._pool())
        if not pool:
            logger.info("📳 %s ignored: no menu items to choose from", event.source)
            return False

        await self._hide_idle_hint()
        self._idle.on_activity()

        # The hint callback may have suspended; the gate must hold as of now.
        context = self._context()
        seq = self._session_seq + 1

        async def _on_done(winner: MenuItem) -> None:
            await self._deliver(seq, winner)

        if not self._animator.start(pool, context, on_done=_on_done):
            logger.debug("📳 %s refused by animator (%s)", event.source, context)
            return False
        self._session_seq = seq
        logger.info("📳 %s accepted - chef is deciding", event.source.capitalize())
        emit_cue(self._feedback, FeedbackCue.SHAKE_ACCEPTED)
        return True

    async def request_motion_permission(self) -> bool:
        """
        Ask the host for motion access.

        Denied: a user-visible message is surfaced and no session starts.
        Granted: proceeds exactly as if a shake had just been detected.
        """
        if not self._source.available:
            await self._permission_denied(MOTION_UNAVAILABLE_MESSAGE)
            return False
        try:
            granted = await self._source.request_permission()
        except Exception as exc:
            logger.warning("Motion permission request failed: %s", exc)
            granted = False
        if not granted:
            await self._permission_denied(MOTION_DENIED_MESSAGE)
            return False
        await self.handle_shake(ShakeEvent(timestamp_ms=self._clock.monotonic_ms(), source="permission"))
        return True

    async def note_activity(self) -> None:
        self._idle.on_activity()
        await self._hide_idle_hint()

    # ============================================================
    # Internals
    # ============================================================

    async def _deliver(self, seq: int, winner: MenuItem) -> None:
        if seq != self._session_seq or seq <= self._delivered_seq:
            logger.warning("Stale selection result for session %d ignored", seq)
            return
        self._delivered_seq = seq
        await self._on_winner(winner)

    async def _permission_denied(self, message: str) -> None:
        logger.warning("🔐 %s", message)
        if self._on_permission_denied:
            await self._on_permission_denied(message)

    async def _show_idle_hint(self) -> None:
        if self._idle_hint_shown:
            return
        self._idle_hint_shown = True
        if self._on_idle_hint:
            await self._on_idle_hint(True)

    async def _hide_idle_hint(self) -> None:
        if not self._idle_hint_shown:
            return
        self._idle_hint_shown = False
        if self._on_idle_hint:
            await self._on_idle_hint(False)


__all__ = ["SessionGestureController", "MOTION_DENIED_MESSAGE", "MOTION_UNAVAILABLE_MESSAGE"]
