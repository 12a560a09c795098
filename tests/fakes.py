"""Hand builders and fake collaborators shared by the test modules."""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from handjam.types import (
    DetectionFrame,
    GestureCategory,
    Hand,
    Handedness,
    HandLandmarkIndex,
    Landmark,
)


def make_landmarks(overrides: Optional[Dict[int, Tuple[float, float, float]]] = None, base=(0.5, 0.6, 0.0)):
    """21 landmarks at `base`, with selected points moved."""
    points = [list(base) for _ in range(21)]
    for idx, xyz in (overrides or {}).items():
        points[int(idx)] = list(xyz)
    return tuple(Landmark(x=p[0], y=p[1], z=p[2]) for p in points)


def open_hand_landmarks(index_tip=(0.48, 0.20, 0.0)):
    """All four fingers extended (tips above their PIP joints)."""
    return make_landmarks(
        {
            HandLandmarkIndex.WRIST: (0.5, 0.6, 0.0),
            HandLandmarkIndex.INDEX_FINGER_PIP: (0.48, 0.40, 0.0),
            HandLandmarkIndex.INDEX_FINGER_TIP: index_tip,
            HandLandmarkIndex.MIDDLE_FINGER_PIP: (0.50, 0.38, 0.0),
            HandLandmarkIndex.MIDDLE_FINGER_TIP: (0.50, 0.18, 0.0),
            HandLandmarkIndex.RING_FINGER_PIP: (0.52, 0.40, 0.0),
            HandLandmarkIndex.RING_FINGER_TIP: (0.52, 0.22, 0.0),
            HandLandmarkIndex.PINKY_PIP: (0.54, 0.44, 0.0),
            HandLandmarkIndex.PINKY_TIP: (0.54, 0.30, 0.0),
        }
    )


def fold(landmarks, tip: int, pip: int):
    """Move a fingertip below its PIP joint."""
    pts = list(landmarks)
    p = pts[pip]
    pts[tip] = Landmark(x=p.x, y=p.y + 0.1, z=p.z)
    return tuple(pts)


def make_hand(category=GestureCategory.NONE, handedness=Handedness.RIGHT, landmarks=None) -> Hand:
    return Hand(
        landmarks=landmarks if landmarks is not None else open_hand_landmarks(),
        category=category,
        handedness=handedness,
        category_score=0.9,
        handedness_score=0.9,
    )


def make_frame(*hands: Hand, timestamp_ms: int = 0) -> DetectionFrame:
    return DetectionFrame(hands=tuple(hands), timestamp_ms=timestamp_ms)


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler; time only moves on `advance()`."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay_s, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = max(self.now, target)


class FakeClock:
    """Millisecond clock driven by a ManualScheduler."""

    def __init__(self, scheduler: ManualScheduler, offset_ms: int = 1_000_000):
        self._scheduler = scheduler
        self._offset_ms = offset_ms

    def __call__(self) -> int:
        return self._offset_ms + int(round(self._scheduler.now * 1000))


class FakeAudio:
    def __init__(self, current_time: float = 0.0):
        self.current_time = current_time
        self.calls: List[Tuple] = []
        self.regions = None

    def play_pause(self) -> None:
        self.calls.append(("play_pause",))

    def set_playback_rate(self, rate: float) -> None:
        self.calls.append(("set_playback_rate", rate))

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))

    def get_current_time(self) -> float:
        return self.current_time

    def play_sample(self, sound_id: str) -> None:
        self.calls.append(("play_sample", sound_id))

    def add_regions(self):
        from handjam.regions import LoopRegions

        self.calls.append(("add_regions",))
        self.regions = LoopRegions()
        return self.regions

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]


class ScriptedFSM:
    """State machine double: returns canned answers and records every call."""

    def __init__(
        self,
        status: Optional[str] = None,
        drum: Optional[str] = None,
        toggle: bool = False,
        speed_text: Optional[str] = None,
        speed: float = 1.0,
        volume_active: bool = False,
    ):
        self.status = status
        self.drum = drum
        self.toggle = toggle
        self.speed_text = speed_text
        self.speed = speed
        self.volume_active = volume_active
        self.calls: List[str] = []
        self.loop_times: List[float] = []
        self.regions = None

    def update_state(self, category, handedness, landmarks):
        self.calls.append("update_state")
        return self.status

    def drum_sound_for(self, landmarks):
        self.calls.append("drum_sound_for")
        return self.drum

    def should_toggle_playback(self):
        self.calls.append("should_toggle_playback")
        return self.toggle

    def speed_change_text(self, landmarks, handedness):
        self.calls.append("speed_change_text")
        return self.speed_text

    def current_speed(self):
        return self.speed

    def manage_loop_regions(self, current_time):
        self.calls.append("manage_loop_regions")
        self.loop_times.append(current_time)

    def is_volume_gesture_active(self):
        self.calls.append("is_volume_gesture_active")
        return self.volume_active

    def has_regions_attached(self):
        return self.regions is not None

    def attach_regions(self, regions):
        self.regions = regions


class RecordingStatus:
    def __init__(self):
        self.history: List[str] = []

    @property
    def text(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def set_status(self, text: str) -> None:
        self.history.append(text)


class FakeRecognizer:
    def __init__(self, frames: Optional[Sequence[DetectionFrame]] = None, error: Optional[Exception] = None):
        self._frames = list(frames or [])
        self._error = error
        self.timestamps: List[int] = []
        self.closed = False

    def recognize_for_video(self, frame, timestamp_ms: int) -> DetectionFrame:
        self.timestamps.append(timestamp_ms)
        if self._error is not None:
            raise self._error
        if self._frames:
            return self._frames.pop(0)
        return DetectionFrame(timestamp_ms=timestamp_ms)

    def close(self) -> None:
        self.closed = True


class FakeSource:
    def __init__(self, size=(640, 480), image=None):
        self.size = size
        self.image = image if image is not None else np.zeros((480, 640, 3), dtype=np.uint8)
        self.reads = 0

    def frame_size(self):
        return self.size

    def read(self):
        self.reads += 1
        return self.image
