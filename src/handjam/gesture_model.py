"""
Gesture-interpretation state machine.

Turns per-hand recognizer categories into transport actions over time. The
right hand drives playback, looping, speed and volume through an explicit
transition table; the left hand plays the drum pads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

from .regions import LoopRegions
from .types import GestureCategory, Handedness, HandLandmarkIndex, Landmark
from .utils import clamp

logger = logging.getLogger(__name__)


MIN_SPEED = 0.5
MAX_SPEED = 2.0
SPEED_STEP = 0.05
MIN_LOOP_S = 0.05

# (sound id, fingertip, PIP joint)
DRUM_PADS: Tuple[Tuple[str, int, int], ...] = (
    ("kick", HandLandmarkIndex.INDEX_FINGER_TIP, HandLandmarkIndex.INDEX_FINGER_PIP),
    ("snare", HandLandmarkIndex.MIDDLE_FINGER_TIP, HandLandmarkIndex.MIDDLE_FINGER_PIP),
    ("hihat", HandLandmarkIndex.RING_FINGER_TIP, HandLandmarkIndex.RING_FINGER_PIP),
    ("clap", HandLandmarkIndex.PINKY_TIP, HandLandmarkIndex.PINKY_PIP),
)


class ControlState(Enum):
    IDLE = "idle"
    LOOP_MARKING = "loop_marking"
    LOOPING = "looping"
    SPEED = "speed"
    VOLUME = "volume"


RESTING_STATES = (ControlState.IDLE, ControlState.LOOP_MARKING, ControlState.LOOPING)


class Effect(Enum):
    NONE = "none"
    TOGGLE_PLAYBACK = "toggle_playback"
    MARK_LOOP_START = "mark_loop_start"
    MARK_LOOP_END = "mark_loop_end"
    CANCEL_LOOP_MARK = "cancel_loop_mark"
    CLEAR_LOOPS = "clear_loops"


@dataclass(frozen=True)
class Transition:
    target: Optional[ControlState]  # None: back to the last resting state
    effect: Effect = Effect.NONE
    status: Optional[str] = None


TransitionKey = Tuple[ControlState, GestureCategory, Handedness]


def build_transition_table() -> Dict[TransitionKey, Transition]:
    R = Handedness.RIGHT
    table: Dict[TransitionKey, Transition] = {}

    for s in RESTING_STATES:
        table[(s, GestureCategory.THUMB_UP, R)] = Transition(s, Effect.TOGGLE_PLAYBACK, "⏯️")
        table[(s, GestureCategory.POINTING_UP, R)] = Transition(ControlState.SPEED, status="⏩ speed")
        table[(s, GestureCategory.I_LOVE_YOU, R)] = Transition(ControlState.VOLUME, status="🔊 volume")

    table[(ControlState.IDLE, GestureCategory.VICTORY, R)] = Transition(
        ControlState.LOOP_MARKING, Effect.MARK_LOOP_START, "✂️ loop start"
    )
    table[(ControlState.LOOPING, GestureCategory.VICTORY, R)] = Transition(
        ControlState.LOOP_MARKING, Effect.MARK_LOOP_START, "✂️ loop start"
    )
    table[(ControlState.LOOP_MARKING, GestureCategory.VICTORY, R)] = Transition(
        ControlState.LOOPING, Effect.MARK_LOOP_END, "🔁 loop"
    )
    table[(ControlState.LOOP_MARKING, GestureCategory.CLOSED_FIST, R)] = Transition(
        ControlState.IDLE, Effect.CANCEL_LOOP_MARK, "✂️ cancelled"
    )
    table[(ControlState.LOOPING, GestureCategory.CLOSED_FIST, R)] = Transition(
        ControlState.IDLE, Effect.CLEAR_LOOPS, "✂️ loop cleared"
    )

    table[(ControlState.SPEED, GestureCategory.OPEN_PALM, R)] = Transition(None, status="⏩ set")
    table[(ControlState.SPEED, GestureCategory.I_LOVE_YOU, R)] = Transition(ControlState.VOLUME, status="🔊 volume")
    table[(ControlState.VOLUME, GestureCategory.OPEN_PALM, R)] = Transition(None, status="🔊 set")
    table[(ControlState.VOLUME, GestureCategory.POINTING_UP, R)] = Transition(ControlState.SPEED, status="⏩ speed")
    return table


TRANSITIONS = build_transition_table()


class GestureModel:
    """
    Stateful interpreter consulted by the action dispatcher once per hand.

    A transition fires only on the frame where a hand's category changes, so a
    held pose acts once. Loop marks are applied in `manage_loop_regions()`, which
    receives the playhead time.
    """

    def __init__(self, transitions: Optional[Dict[TransitionKey, Transition]] = None) -> None:
        self._transitions = transitions if transitions is not None else TRANSITIONS
        self._state = ControlState.IDLE
        self._resting = ControlState.IDLE
        self._last_category: Dict[Optional[Handedness], GestureCategory] = {}
        self._toggle_requested = False
        self._pending: Optional[Effect] = None
        self._loop_start: Optional[float] = None
        self._speed = 1.0
        # Pads start folded so a hand that appears as a fist does not fire.
        self._folded: Dict[str, bool] = {name: True for name, _, _ in DRUM_PADS}
        self._regions: Optional[LoopRegions] = None

    @property
    def state(self) -> ControlState:
        return self._state

    @property
    def loop_start(self) -> Optional[float]:
        return self._loop_start

    def update_state(
        self,
        category: Union[GestureCategory, str],
        handedness: Union[Handedness, str, None],
        landmarks: Sequence[Landmark],
    ) -> Optional[str]:
        if not isinstance(category, GestureCategory):
            category = GestureCategory.from_label(category)
        if not isinstance(handedness, Handedness):
            handedness = Handedness.from_label(handedness)

        prev = self._last_category.get(handedness)
        self._last_category[handedness] = category
        if prev == category or handedness is None:
            return None

        transition = self._transitions.get((self._state, category, handedness))
        if transition is None:
            return None

        self._apply_effect(transition.effect)
        target = transition.target or self._resting
        if target in RESTING_STATES:
            self._resting = target
        logger.debug("FSM %s --%s/%s--> %s", self._state.value, category.value, handedness.value, target.value)
        self._state = target
        return transition.status

    def _apply_effect(self, effect: Effect) -> None:
        if effect is Effect.TOGGLE_PLAYBACK:
            self._toggle_requested = True
        elif effect is Effect.CANCEL_LOOP_MARK:
            self._pending = None
            self._loop_start = None
        elif effect is not Effect.NONE:
            self._pending = effect

    def drum_sound_for(self, landmarks: Sequence[Landmark]) -> Optional[str]:
        """Sound id of a pad whose finger just folded, or None."""
        if len(landmarks) <= HandLandmarkIndex.PINKY_TIP:
            return None
        sound: Optional[str] = None
        for name, tip, pip in DRUM_PADS:
            folded = landmarks[tip].y > landmarks[pip].y
            was_folded = self._folded[name]
            self._folded[name] = folded
            if folded and not was_folded and sound is None:
                sound = name
        return sound

    def should_toggle_playback(self) -> bool:
        requested = self._toggle_requested
        self._toggle_requested = False
        return requested

    def speed_change_text(
        self,
        landmarks: Sequence[Landmark],
        handedness: Union[Handedness, str, None],
    ) -> Optional[str]:
        if not isinstance(handedness, Handedness):
            handedness = Handedness.from_label(handedness)
        if self._state is not ControlState.SPEED or handedness is not Handedness.RIGHT:
            return None
        if len(landmarks) <= HandLandmarkIndex.INDEX_FINGER_TIP:
            return None
        height = 1.0 - landmarks[HandLandmarkIndex.INDEX_FINGER_TIP].y
        raw = clamp(MIN_SPEED + height * (MAX_SPEED - MIN_SPEED), MIN_SPEED, MAX_SPEED)
        self._speed = round(round(raw / SPEED_STEP) * SPEED_STEP, 2)
        return f"⏩ x{self._speed:.2f}"

    def current_speed(self) -> float:
        return self._speed

    def manage_loop_regions(self, current_time: float) -> None:
        if self._regions is None or self._pending is None:
            return
        pending, self._pending = self._pending, None

        if pending is Effect.MARK_LOOP_START:
            self._loop_start = current_time
        elif pending is Effect.MARK_LOOP_END:
            start, self._loop_start = self._loop_start, None
            if start is None:
                self._state = self._resting = ControlState.IDLE
                return
            start, end = sorted((start, current_time))
            if end - start < MIN_LOOP_S:
                logger.info("Loop shorter than %.2fs discarded", MIN_LOOP_S)
                self._state = self._resting = ControlState.IDLE
                return
            self._regions.clear()
            self._regions.add(start, end, loop=True)
        elif pending is Effect.CLEAR_LOOPS:
            self._regions.clear()

    def is_volume_gesture_active(self) -> bool:
        return self._state is ControlState.VOLUME

    def has_regions_attached(self) -> bool:
        return self._regions is not None

    def attach_regions(self, regions: LoopRegions) -> None:
        self._regions = regions
