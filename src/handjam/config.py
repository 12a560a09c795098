"""Tunable constants for the gesture pipeline, grouped per component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


GESTURE_RECOGNIZER_TASK_URL = (
    "https://storage.googleapis.com/mediapipe-models/gesture_recognizer/gesture_recognizer/float16/1/gesture_recognizer.task"
)

DEFAULT_GESTURE_LABEL = "gestureLabel"


@dataclass(frozen=True)
class RecognizerConfig:
    model_path: str = "models/gesture_recognizer.task"
    model_url: str = GESTURE_RECOGNIZER_TASK_URL
    num_hands: int = 2
    max_attempts: int = 3
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class RecordingConfig:
    max_duration_ms: int = 2000
    default_label: str = DEFAULT_GESTURE_LABEL


@dataclass(frozen=True)
class FeatureConfig:
    keypoint_index: int = 8  # index fingertip
    feats_per_t: int = 3
    normal_seq_len: int = 10

    @property
    def window_size(self) -> int:
        return self.feats_per_t * self.normal_seq_len


@dataclass(frozen=True)
class TrainingConfig:
    epochs: int = 20
    hidden_units: Tuple[int, ...] = (64, 32)
    num_classes: int = 4
    learning_rate: float = 1e-3
    batch_size: int = 32
    positive_label: str = DEFAULT_GESTURE_LABEL
    seed: int = 0


@dataclass(frozen=True)
class UIConfig:
    volume_hide_s: float = 3.0
    idle_status: str = "🙌"
    drum_status: str = "🥁 ✅"


@dataclass(frozen=True)
class AppConfig:
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)
    recording: RecordingConfig = field(default_factory=RecordingConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    refresh_hz: float = 60.0

    def __post_init__(self) -> None:
        if self.refresh_hz <= 0:
            raise ValueError(f"refresh_hz must be positive, got {self.refresh_hz}")
        if self.recognizer.max_attempts < 1:
            raise ValueError("recognizer.max_attempts must be at least 1")

    @property
    def refresh_interval_s(self) -> float:
        return 1.0 / self.refresh_hz
