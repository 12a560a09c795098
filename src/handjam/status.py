from __future__ import annotations

import logging
from typing import Optional, Protocol

from .timers import Scheduler, TimerHandle
from .utils import clamp_int

logger = logging.getLogger(__name__)


class StatusSink(Protocol):
    def set_status(self, text: str) -> None: ...


class StatusText:
    """Single status slot; logs whenever the text changes."""

    def __init__(self, initial: str = "") -> None:
        self.text = initial

    def set_status(self, text: str) -> None:
        if text != self.text:
            logger.info("Gesture status: %s", text)
        self.text = text


class VolumeIndicator:
    """
    On-screen volume readout that hides itself a fixed time after the last update.

    Every `show()` re-arms the hide timer, so the readout stays up while the
    volume gesture is held.
    """

    def __init__(self, scheduler: Scheduler, hide_after_s: float = 3.0, initial_percent: int = 50) -> None:
        if hide_after_s <= 0:
            raise ValueError(f"hide_after_s must be positive, got {hide_after_s}")
        self._scheduler = scheduler
        self._hide_after_s = hide_after_s
        self._hide_timer: Optional[TimerHandle] = None
        self.visible = False
        self.percent = clamp_int(initial_percent, 0, 100)

    def show(self, percent: int) -> None:
        self.percent = clamp_int(int(percent), 0, 100)
        self.visible = True
        if self._hide_timer is not None:
            self._hide_timer.cancel()
        self._hide_timer = self._scheduler.call_later(self._hide_after_s, self._hide)

    def _hide(self) -> None:
        self.visible = False
        self._hide_timer = None
