"""
MediaPipe Tasks GestureRecognizer backend.

Input frames are expected as **BGR** images (OpenCV default).
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import cv2

from .config import RecognizerConfig
from .errors import RecognizerInitError
from .model_assets import ensure_gesture_recognizer_task
from .types import DetectionFrame, GestureCategory, Hand, Handedness, Landmark

logger = logging.getLogger(__name__)


def _top_category(categories) -> Optional[Any]:
    if not categories:
        return None
    return categories[0]


def detection_frame_from_result(result, timestamp_ms: int = 0) -> DetectionFrame:
    """Convert a `GestureRecognizerResult` into a DetectionFrame."""

    landmarks_list = getattr(result, "hand_landmarks", None) or []
    gestures_list = getattr(result, "gestures", None) or []
    handedness_list = getattr(result, "handedness", None) or []

    hands: List[Hand] = []
    for i, landmarks in enumerate(landmarks_list):
        gesture = _top_category(gestures_list[i]) if i < len(gestures_list) else None
        side = _top_category(handedness_list[i]) if i < len(handedness_list) else None

        side_label = None
        side_score = None
        if side is not None:
            side_label = getattr(side, "category_name", None) or getattr(side, "display_name", None)
            side_score = float(getattr(side, "score", 0.0))

        hands.append(
            Hand(
                landmarks=tuple(
                    Landmark(x=float(lm.x), y=float(lm.y), z=getattr(lm, "z", None)) for lm in landmarks
                ),
                category=GestureCategory.from_label(getattr(gesture, "category_name", None)),
                handedness=Handedness.from_label(side_label),
                category_score=float(getattr(gesture, "score", 0.0)) if gesture is not None else None,
                handedness_score=side_score,
            )
        )
    return DetectionFrame(hands=tuple(hands), timestamp_ms=timestamp_ms)


class MediaPipeGestureRecognizer:
    """Two-hand, VIDEO-mode gesture recognizer returning DetectionFrames."""

    def __init__(self, config: RecognizerConfig = RecognizerConfig()) -> None:
        import mediapipe as mp  # type: ignore
        from mediapipe.tasks.python import BaseOptions  # type: ignore
        from mediapipe.tasks.python.vision import (  # type: ignore
            GestureRecognizer,
            GestureRecognizerOptions,
            RunningMode,
        )

        try:
            model_path = ensure_gesture_recognizer_task(config.model_path, url=config.model_url)
        except FileNotFoundError as e:
            raise RecognizerInitError(
                "The MediaPipe gesture recognizer needs a model file on disk:\n"
                f"  {config.model_path}\n\n"
                f"{e}"
            ) from e

        options = GestureRecognizerOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            running_mode=RunningMode.VIDEO,
            num_hands=config.num_hands,
            min_hand_detection_confidence=config.min_detection_confidence,
            min_tracking_confidence=config.min_tracking_confidence,
        )
        self._mp = mp
        self._recognizer = GestureRecognizer.create_from_options(options)
        logger.info("Gesture recognizer created from %s", model_path)

    def recognize_for_video(self, frame_bgr, timestamp_ms: int) -> DetectionFrame:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._recognizer.recognize_for_video(mp_image, timestamp_ms)
        return detection_frame_from_result(result, timestamp_ms)

    def close(self) -> None:
        self._recognizer.close()

    def __enter__(self) -> "MediaPipeGestureRecognizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
