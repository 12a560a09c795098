"""Lifecycle of the external landmark recognizer: bounded-retry init and readiness."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from .errors import RecognizerNotReadyError
from .types import DetectionFrame

logger = logging.getLogger(__name__)


class Recognizer(Protocol):
    def recognize_for_video(self, frame: Any, timestamp_ms: int) -> DetectionFrame: ...


class RegionHost(Protocol):
    def add_regions(self) -> Any: ...


class RegionOwner(Protocol):
    def has_regions_attached(self) -> bool: ...
    def attach_regions(self, regions: Any) -> None: ...


class RecognizerSession:
    """
    Builds the recognizer with up to `max_attempts` sequential attempts.

    After the last failed attempt the session stays unready for good; callers
    poll `ready` instead of handling an error. Initialization also attaches the
    audio engine's loop regions to the gesture model, once.
    """

    def __init__(
        self,
        factory: Callable[[], Recognizer],
        *,
        max_attempts: int = 3,
        fsm: Optional[RegionOwner] = None,
        audio: Optional[RegionHost] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._factory = factory
        self._max_attempts = max_attempts
        self._fsm = fsm
        self._audio = audio
        self._recognizer: Optional[Recognizer] = None
        self._failed = False
        self._last_timestamp_ms = -1

    @property
    def ready(self) -> bool:
        return self._recognizer is not None

    @property
    def failed(self) -> bool:
        return self._failed

    async def initialize(self) -> Optional[Recognizer]:
        if self._recognizer is not None:
            return self._recognizer

        loop = asyncio.get_running_loop()
        recognizer: Optional[Recognizer] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                logger.debug("Loading model, attempt #%d", attempt)
                recognizer = await loop.run_in_executor(None, self._factory)
                break
            except Exception as e:
                logger.error("Error on attempt #%d: %s", attempt, e)
                if attempt >= self._max_attempts:
                    logger.error("Maximum retry attempts reached. Model loading failed.")

        logger.info("Model loading completed with status: %s", "Success" if recognizer else "Failed")
        if recognizer is None:
            self._failed = True
            logger.error("Gesture recognizer creation failed.")
        self._recognizer = recognizer

        self._attach_regions()
        return recognizer

    def _attach_regions(self) -> None:
        if self._fsm is None or self._audio is None:
            return
        if not self._fsm.has_regions_attached():
            self._fsm.attach_regions(self._audio.add_regions())
            logger.debug("Loop regions attached to gesture model")

    def next_timestamp(self, timestamp_ms: int) -> int:
        """VIDEO mode rejects non-increasing timestamps; nudge repeats forward."""
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts
        return ts

    async def recognize(self, frame: Any, timestamp_ms: int) -> DetectionFrame:
        if self._recognizer is None:
            raise RecognizerNotReadyError("gesture recognizer is not initialized")
        return self._recognizer.recognize_for_video(frame, self.next_timestamp(timestamp_ms))

    def close(self) -> None:
        close = getattr(self._recognizer, "close", None)
        if close is not None:
            close()
        self._recognizer = None
