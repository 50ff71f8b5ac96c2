"""Repeating tick timer on the asyncio event loop."""

import asyncio
from typing import Callable, Optional


class RepeatingTimer:
    """One repeating timer. start() cancels any armed handle before arming."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._active = False
        self.interval_ms: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self, interval_ms: int):
        self.cancel()
        self.interval_ms = interval_ms
        self._active = True
        self._arm()

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._active = False

    def _arm(self):
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval_ms / 1000, self._fire)

    def _fire(self):
        self._handle = None
        self._callback()
        # The callback may have cancelled or restarted us.
        if self._active and self._handle is None:
            self._arm()
