"""Shake classification for raw accelerometer samples."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from ..config import MotionSettings
from ..models import MotionSample
from ..state import Decision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierState:
    """History threaded through ``classify`` by the caller."""

    created_at_ms: int
    last_eval_ms: Optional[int] = None
    last_x: float = 0.0
    last_y: float = 0.0
    last_z: float = 0.0


class MotionSignalClassifier:
    """
    Turns accelerometer samples into shake / no-shake decisions.

    Two paths:
    - Linear acceleration (gravity excluded): shake when |a| > acc_threshold.
      Stateless, tilt has no effect.
    - Gravity-inclusive fallback: throttled to one evaluation per throttle_ms,
      shake when (|Δx|+|Δy|+|Δz|) / Δt × speed_scale > gravity_threshold.
      The first evaluation only seeds history.

    Nothing is classified during the startup guard window.
    """

    def __init__(self, settings: Optional[MotionSettings] = None) -> None:
        self.settings = settings or MotionSettings()

    def initial_state(self, now_ms: int) -> ClassifierState:
        return ClassifierState(created_at_ms=now_ms)

    def classify(self, sample: MotionSample, state: ClassifierState) -> Tuple[Decision, ClassifierState]:
        vector = np.array([sample.x, sample.y, sample.z], dtype=float)
        if not np.isfinite(vector).all():
            logger.debug("Ignoring malformed motion sample: %s", sample)
            return Decision.NONE, state

        if sample.timestamp_ms - state.created_at_ms < self.settings.startup_guard_ms:
            return Decision.NONE, state

        if sample.has_linear_acceleration:
            magnitude = float(np.linalg.norm(vector))
            if magnitude > self.settings.acc_threshold:
                logger.debug("📳 Linear shake detected (|a|=%.1f)", magnitude)
                return Decision.SHAKE, state
            return Decision.NONE, state

        return self._classify_fallback(sample, vector, state)

    def _classify_fallback(
        self,
        sample: MotionSample,
        vector: np.ndarray,
        state: ClassifierState,
    ) -> Tuple[Decision, ClassifierState]:
        if state.last_eval_ms is not None:
            elapsed_ms = sample.timestamp_ms - state.last_eval_ms
            if elapsed_ms < max(self.settings.throttle_ms, 1):
                return Decision.NONE, state

        seeded = replace(
            state,
            last_eval_ms=sample.timestamp_ms,
            last_x=float(vector[0]),
            last_y=float(vector[1]),
            last_z=float(vector[2]),
        )
        if state.last_eval_ms is None:
            return Decision.NONE, seeded

        previous = np.array([state.last_x, state.last_y, state.last_z], dtype=float)
        elapsed_ms = sample.timestamp_ms - state.last_eval_ms
        speed = float(np.abs(vector - previous).sum()) / elapsed_ms * self.settings.speed_scale
        if speed > self.settings.gravity_threshold:
            logger.debug("📳 Fallback shake detected (speed=%.0f)", speed)
            return Decision.SHAKE, seeded
        return Decision.NONE, seeded


__all__ = ["ClassifierState", "MotionSignalClassifier"]
