from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Tuple


FeatureVector = Tuple[float, ...]


class HandLandmarkIndex(IntEnum):
    """MediaPipe hand landmark indices (21 points)."""

    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = 21


class GestureCategory(str, Enum):
    """Canned gesture categories produced by the MediaPipe gesture recognizer."""

    NONE = "None"
    CLOSED_FIST = "Closed_Fist"
    OPEN_PALM = "Open_Palm"
    POINTING_UP = "Pointing_Up"
    THUMB_DOWN = "Thumb_Down"
    THUMB_UP = "Thumb_Up"
    VICTORY = "Victory"
    I_LOVE_YOU = "ILoveYou"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "GestureCategory":
        if not label:
            return cls.NONE
        try:
            return cls(label)
        except ValueError:
            return cls.NONE


class Handedness(str, Enum):
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["Handedness"]:
        if not label:
            return None
        try:
            return cls(label)
        except ValueError:
            return None


@dataclass(frozen=True)
class Landmark:
    """A single hand landmark in normalized image coordinates."""

    x: float
    y: float
    z: Optional[float] = None  # relative depth, may be absent


@dataclass(frozen=True)
class Hand:
    """One detected hand with its recognized gesture."""

    landmarks: Tuple[Landmark, ...]  # length 21
    category: GestureCategory = GestureCategory.NONE
    handedness: Optional[Handedness] = None
    category_score: Optional[float] = None
    handedness_score: Optional[float] = None


@dataclass(frozen=True)
class DetectionFrame:
    """All hands recognized in a single video frame, in detection order."""

    hands: Tuple[Hand, ...] = ()
    timestamp_ms: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.hands

    @property
    def primary_hand(self) -> Optional[Hand]:
        return self.hands[0] if self.hands else None


@dataclass
class RecordingSession:
    active: bool = False
    start_time_ms: Optional[int] = None
    frame_buffer: List[FeatureVector] = field(default_factory=list)

    def reset(self) -> None:
        self.active = False
        self.start_time_ms = None
        self.frame_buffer = []


@dataclass(frozen=True)
class LabeledExample:
    """A recorded gesture: per-frame feature vectors plus its label."""

    features: Tuple[FeatureVector, ...]
    label: str
    duration_ms: int
