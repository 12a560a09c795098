"""Timed recording of custom gestures into a labeled example set."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Tuple

from .config import RecordingConfig
from .features import frame_features
from .timers import Scheduler, TimerHandle
from .types import DetectionFrame, HandLandmarkIndex, LabeledExample, RecordingSession
from .utils import now_ms

logger = logging.getLogger(__name__)


class ExampleSet:
    """Insertion-ordered, append-only collection of recorded gestures."""

    def __init__(self) -> None:
        self._examples: List[LabeledExample] = []

    def append(self, example: LabeledExample) -> None:
        self._examples.append(example)

    def snapshot(self) -> Tuple[LabeledExample, ...]:
        return tuple(self._examples)

    def __len__(self) -> int:
        return len(self._examples)

    def __iter__(self) -> Iterator[LabeledExample]:
        return iter(self.snapshot())

    def __getitem__(self, i: int) -> LabeledExample:
        return self._examples[i]


class GestureRecorder:
    """
    Two-state (idle / recording) session manager.

    `toggle()` is the single command that starts and stops a session, whether it
    comes from the user or from the auto-stop deadline. A session that captured
    no frames is dropped on stop.
    """

    def __init__(
        self,
        examples: ExampleSet,
        scheduler: Scheduler,
        config: RecordingConfig = RecordingConfig(),
        clock: Callable[[], int] = now_ms,
        keypoint_index: int = HandLandmarkIndex.INDEX_FINGER_TIP,
    ) -> None:
        if config.max_duration_ms <= 0:
            raise ValueError(f"max_duration_ms must be positive, got {config.max_duration_ms}")
        self._examples = examples
        self._scheduler = scheduler
        self._config = config
        self._clock = clock
        self._keypoint_index = keypoint_index
        self._session = RecordingSession()
        self._auto_stop: Optional[TimerHandle] = None
        self._label = config.default_label

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value: str) -> None:
        self._label = value.strip() or self._config.default_label

    @property
    def is_recording(self) -> bool:
        return self._session.active

    @property
    def buffered_frames(self) -> int:
        return len(self._session.frame_buffer)

    def toggle(self) -> Optional[LabeledExample]:
        if self._session.active:
            logger.info("Stopped Recording")
            return self.stop()
        logger.info("Started Recording")
        self.start()
        return None

    def start(self) -> None:
        if self._session.active:
            return
        self._session.frame_buffer = []
        self._session.start_time_ms = self._clock()
        self._session.active = True
        self._auto_stop = self._scheduler.call_later(
            self._config.max_duration_ms / 1000.0, self._on_deadline
        )
        logger.info("Recording started (label=%r)", self._label)

    def stop(self) -> Optional[LabeledExample]:
        if not self._session.active:
            return None
        if self._auto_stop is not None:
            self._auto_stop.cancel()
            self._auto_stop = None

        duration = self._clock() - (self._session.start_time_ms or 0)
        example: Optional[LabeledExample] = None
        if self._session.frame_buffer:
            example = LabeledExample(
                features=tuple(self._session.frame_buffer),
                label=self._label,
                duration_ms=duration,
            )
            self._examples.append(example)
            logger.info(
                "Gesture recorded: label=%r frames=%d duration=%dms (examples=%d)",
                example.label,
                len(example.features),
                duration,
                len(self._examples),
            )
        else:
            logger.info("No frames to capture")
        self._session.reset()
        return example

    def capture(self, frame: DetectionFrame) -> None:
        """Append the first hand's per-frame feature while a session is active."""
        if not self._session.active or frame.primary_hand is None:
            return
        features = frame_features(frame.primary_hand.landmarks, index=self._keypoint_index)
        self._session.frame_buffer.append(features)
        logger.debug("Captured frame: %s", features)

    def _on_deadline(self) -> None:
        self._auto_stop = None
        if self._session.active:
            logger.info("Recording deadline reached after %dms", self._config.max_duration_ms)
            self.toggle()
