from __future__ import annotations

import logging
import platform
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CameraSource:
    """OpenCV webcam capture, mirrored by default (selfie mode)."""

    def __init__(self, camera: int = 0, width: int = 1280, height: int = 720, mirror: bool = True) -> None:
        if platform.system() == "Darwin":
            self._cap = cv2.VideoCapture(camera, cv2.CAP_AVFOUNDATION)
        else:
            self._cap = cv2.VideoCapture(camera)
        if not self._cap.isOpened():
            raise RuntimeError(
                f"Could not open camera index {camera}. "
                "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
            )
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._mirror = mirror

    def frame_size(self) -> Tuple[int, int]:
        """(width, height); zero until the device delivers frames."""
        if not self._cap.isOpened():
            return (0, 0)
        return (int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._cap.read()
        if not ok:
            logger.debug("Camera read failed")
            return None
        if self._mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def close(self) -> None:
        self._cap.release()

    def __enter__(self) -> "CameraSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
