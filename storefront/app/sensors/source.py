"""Motion capability abstraction: sample subscription plus optional permission step."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, Protocol

from ..models import MotionSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[MotionSample], Awaitable[None]]
Unsubscribe = Callable[[], None]


class MotionSource(Protocol):
    """Host-agnostic accelerometer feed."""

    available: bool
    requires_permission: bool

    def subscribe(self, callback: SampleCallback) -> Unsubscribe: ...

    async def request_permission(self) -> bool: ...


class NullMotionSource:
    """Device without motion capability: never produces samples."""

    available = False
    requires_permission = False

    def subscribe(self, callback: SampleCallback) -> Unsubscribe:
        return lambda: None

    async def request_permission(self) -> bool:
        return False


class PushMotionSource:
    """Feed populated by the UI client posting samples to the controller.

    When ``requires_permission`` is set, samples are dropped until the client
    reports that the device granted motion access (iOS-style prompt).
    """

    available = True

    def __init__(self, *, requires_permission: bool = False, permission_timeout_s: float = 30.0) -> None:
        self.requires_permission = requires_permission
        self.permission_timeout_s = permission_timeout_s
        self._callbacks: list[SampleCallback] = []
        self._granted: Optional[bool] = None if requires_permission else True
        self._pending: Optional[asyncio.Future[bool]] = None

    @property
    def permission_state(self) -> str:
        if self._granted is None:
            return "pending" if self._pending and not self._pending.done() else "prompt"
        return "granted" if self._granted else "denied"

    def subscribe(self, callback: SampleCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    async def push(self, sample: MotionSample) -> None:
        if not self._granted:
            logger.debug("Motion sample dropped (permission %s)", self.permission_state)
            return
        for callback in list(self._callbacks):
            try:
                await callback(sample)
            except Exception:
                logger.exception("Motion sample callback failed")

    async def request_permission(self) -> bool:
        if self._granted:
            return True
        if self._pending is None or self._pending.done():
            self._pending = asyncio.get_running_loop().create_future()
        logger.info("🔐 Waiting for motion permission (timeout=%.0fs)", self.permission_timeout_s)
        try:
            return await asyncio.wait_for(asyncio.shield(self._pending), timeout=self.permission_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("🔐 Motion permission request timed out - treating as denied")
            self._granted = False
            return False

    def resolve_permission(self, granted: bool) -> bool:
        """Record the device's answer; returns True if a request was waiting on it."""
        self._granted = granted
        logger.info("🔐 Motion permission %s", "granted" if granted else "denied")
        if self._pending and not self._pending.done():
            self._pending.set_result(granted)
            return True
        return False


__all__ = ["MotionSource", "NullMotionSource", "PushMotionSource", "SampleCallback", "Unsubscribe"]
