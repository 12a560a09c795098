"""
Single-threaded, cooperatively scheduled per-frame driver.

Each iteration pulls one frame, awaits one recognition and fans the result out
to the recorder, the predictor, the renderer and the dispatcher. Iterations are
strictly serialized: the next recognition is only issued after the previous
frame's handling has finished, whether it succeeded or failed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Protocol, Tuple

from .dispatcher import Action, ActionDispatcher
from .recorder import GestureRecorder
from .types import DetectionFrame
from .utils import now_ms

logger = logging.getLogger(__name__)

Renderer = Callable[[Any, DetectionFrame], None]


class FrameSource(Protocol):
    def frame_size(self) -> Tuple[int, int]: ...
    def read(self) -> Any: ...


class RecognitionSession(Protocol):
    @property
    def ready(self) -> bool: ...
    @property
    def failed(self) -> bool: ...
    async def recognize(self, frame: Any, timestamp_ms: int) -> DetectionFrame: ...


class Predictor(Protocol):
    @property
    def has_classifier(self) -> bool: ...
    def observe(self, frame: DetectionFrame) -> Any: ...


class FrameLoop:
    def __init__(
        self,
        session: RecognitionSession,
        source: FrameSource,
        dispatcher: ActionDispatcher,
        recorder: Optional[GestureRecorder] = None,
        predictor: Optional[Predictor] = None,
        renderer: Optional[Renderer] = None,
        refresh_interval_s: float = 1.0 / 60.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if refresh_interval_s < 0:
            raise ValueError(f"refresh_interval_s must be >= 0, got {refresh_interval_s}")
        self._session = session
        self._source = source
        self._dispatcher = dispatcher
        self._recorder = recorder
        self._predictor = predictor
        self._renderer = renderer
        self._refresh_interval_s = refresh_interval_s
        self._clock = clock
        self._running = False
        self._degraded_logged = False
        self.frames_processed = 0
        self.last_frame: Optional[DetectionFrame] = None
        self.last_actions: List[Action] = []

    @property
    def recognizer_ready(self) -> bool:
        return self._session.ready

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    async def step(self) -> Optional[DetectionFrame]:
        """Run one iteration. Never raises."""

        if not self._session.ready:
            if self._session.failed and not self._degraded_logged:
                logger.warning("Gesture recognizer unavailable; frames will be skipped.")
                self._degraded_logged = True
            else:
                logger.debug("Gesture recognizer not initialized.")
            return None

        w, h = self._source.frame_size()
        if w <= 0 or h <= 0:
            logger.debug("Video not ready or dimensions not available.")
            return None

        try:
            image = self._source.read()
            if image is None:
                logger.debug("No frame available from video source.")
                return None

            frame = await self._session.recognize(image, self._clock())

            if self._recorder is not None and self._recorder.is_recording:
                self._recorder.capture(frame)
            if self._predictor is not None and self._predictor.has_classifier:
                self._predictor.observe(frame)
            if self._renderer is not None:
                self._renderer(image, frame)
            self.last_actions = self._dispatcher.dispatch(frame)
        except Exception:
            logger.exception("Error during gesture recognition")
            return None

        self.last_frame = frame
        self.frames_processed += 1
        return frame

    async def run(self, max_frames: Optional[int] = None) -> None:
        """
        Iterate until `stop()` is called, or `max_frames` iterations have run.

        Each iteration re-arms after one refresh interval regardless of outcome.
        """

        self._running = True
        iterations = 0
        try:
            while self._running:
                await self.step()
                iterations += 1
                if max_frames is not None and iterations >= max_frames:
                    break
                await asyncio.sleep(self._refresh_interval_s)
        finally:
            self._running = False
