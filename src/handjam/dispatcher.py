"""Per-frame mapping of detected hands to audio and status actions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from .config import UIConfig
from .status import StatusSink, VolumeIndicator
from .types import DetectionFrame, GestureCategory, Hand, Handedness, HandLandmarkIndex, Landmark
from .utils import clamp_int

logger = logging.getLogger(__name__)


class GestureStateMachine(Protocol):
    def update_state(self, category: GestureCategory, handedness: Optional[Handedness], landmarks: Sequence[Landmark]) -> Optional[str]: ...
    def drum_sound_for(self, landmarks: Sequence[Landmark]) -> Optional[str]: ...
    def should_toggle_playback(self) -> bool: ...
    def speed_change_text(self, landmarks: Sequence[Landmark], handedness: Optional[Handedness]) -> Optional[str]: ...
    def current_speed(self) -> float: ...
    def manage_loop_regions(self, current_time: float) -> None: ...
    def is_volume_gesture_active(self) -> bool: ...


class AudioControls(Protocol):
    def play_pause(self) -> None: ...
    def set_playback_rate(self, rate: float) -> None: ...
    def set_volume(self, volume: float) -> None: ...
    def get_current_time(self) -> float: ...
    def play_sample(self, sound_id: str) -> None: ...


class ActionKind(Enum):
    IDLE = "idle"
    STATUS = "status"
    DRUM = "drum"
    TOGGLE_PLAYBACK = "toggle_playback"
    SPEED = "speed"
    VOLUME = "volume"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    hand_index: Optional[int] = None
    text: Optional[str] = None
    sound_id: Optional[str] = None
    value: Optional[float] = None


def volume_from_landmarks(landmarks: Sequence[Landmark]) -> float:
    """Raw volume from the horizontal position of the index fingertip (unclamped)."""
    return 1.0 - landmarks[HandLandmarkIndex.INDEX_FINGER_TIP].x


def volume_percent(volume: float) -> int:
    return clamp_int(int(math.floor(volume * 100 + 0.5)), 0, 100)


class ActionDispatcher:
    """
    Routes every hand of a DetectionFrame through the gesture state machine and
    applies the resulting actions, in detection order.

    Later hands overwrite status text set by earlier ones in the same frame.
    """

    def __init__(
        self,
        fsm: GestureStateMachine,
        audio: AudioControls,
        status: StatusSink,
        volume_indicator: VolumeIndicator,
        ui: UIConfig = UIConfig(),
    ) -> None:
        self._fsm = fsm
        self._audio = audio
        self._status = status
        self._volume = volume_indicator
        self._ui = ui

    def dispatch(self, frame: DetectionFrame) -> List[Action]:
        if frame.is_empty:
            self._status.set_status(self._ui.idle_status)
            return [Action(ActionKind.IDLE, text=self._ui.idle_status)]

        actions: List[Action] = []
        for i, hand in enumerate(frame.hands):
            actions.extend(self._dispatch_hand(i, hand))
        return actions

    def _dispatch_hand(self, i: int, hand: Hand) -> List[Action]:
        actions: List[Action] = []
        landmarks = hand.landmarks

        text = self._fsm.update_state(hand.category, hand.handedness, landmarks)
        if text:
            self._status.set_status(text)
            actions.append(Action(ActionKind.STATUS, i, text=text))

        if hand.handedness is Handedness.LEFT:
            sound = self._fsm.drum_sound_for(landmarks)
            if sound:
                logger.debug("Drum hit: %s", sound)
                self._audio.play_sample(sound)
                self._status.set_status(self._ui.drum_status)
                actions.append(Action(ActionKind.DRUM, i, text=self._ui.drum_status, sound_id=sound))

        if self._fsm.should_toggle_playback():
            self._audio.play_pause()
            actions.append(Action(ActionKind.TOGGLE_PLAYBACK, i))

        speed_text = self._fsm.speed_change_text(landmarks, hand.handedness)
        if speed_text:
            speed = self._fsm.current_speed()
            self._status.set_status(speed_text)
            self._audio.set_playback_rate(speed)
            actions.append(Action(ActionKind.SPEED, i, text=speed_text, value=speed))

        self._fsm.manage_loop_regions(self._audio.get_current_time())

        if self._fsm.is_volume_gesture_active():
            volume = volume_from_landmarks(landmarks)
            self._volume.show(volume_percent(volume))
            self._audio.set_volume(volume)
            actions.append(Action(ActionKind.VOLUME, i, value=volume))

        return actions
