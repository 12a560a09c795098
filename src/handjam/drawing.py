from __future__ import annotations

from typing import List, Optional, Tuple

import cv2

from .status import VolumeIndicator
from .types import DetectionFrame, Hand
from .utils import to_pixel


HAND_CONNECTIONS: List[Tuple[int, int]] = [
    # thumb
    (0, 1),
    (1, 2),
    (2, 3),
    (3, 4),
    # index
    (0, 5),
    (5, 6),
    (6, 7),
    (7, 8),
    # middle
    (5, 9),
    (9, 10),
    (10, 11),
    (11, 12),
    # ring
    (9, 13),
    (13, 14),
    (14, 15),
    (15, 16),
    # pinky
    (13, 17),
    (17, 18),
    (18, 19),
    (19, 20),
    # palm base
    (0, 17),
]

CONNECTOR_COLOR = (255, 255, 255)
LANDMARK_COLOR = (176, 30, 176)  # BGR


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    # Hershey fonts are ASCII only; status emoji are dropped.
    text = text.encode("ascii", "ignore").decode().strip()
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_hand(frame, hand: Hand):
    h, w = frame.shape[:2]
    pts = [to_pixel(lm.x, lm.y, w, h) for lm in hand.landmarks]
    for a, b in HAND_CONNECTIONS:
        if a < len(pts) and b < len(pts):
            cv2.line(frame, pts[a], pts[b], CONNECTOR_COLOR, 5, cv2.LINE_AA)
    for pt in pts:
        cv2.circle(frame, pt, 4, LANDMARK_COLOR, -1, lineType=cv2.LINE_AA)

    if pts:
        label = hand.handedness.value if hand.handedness is not None else "Hand"
        x0 = min(p[0] for p in pts)
        y0 = min(p[1] for p in pts)
        draw_text(frame, f"{label}: {hand.category.value}", (x0, max(12, y0 - 8)))
    return frame


def draw_detections(frame, detections: DetectionFrame):
    for hand in detections.hands:
        draw_hand(frame, hand)
    return frame


def draw_volume_bar(frame, indicator: VolumeIndicator, origin: Tuple[int, int] = (12, 80), size=(220, 18)):
    if not indicator.visible:
        return frame
    x, y = origin
    bw, bh = size
    filled = int(round(bw * indicator.percent / 100.0))
    cv2.rectangle(frame, (x, y), (x + bw, y + bh), (80, 80, 80), -1)
    cv2.rectangle(frame, (x, y), (x + filled, y + bh), (40, 255, 120), -1)
    draw_text(frame, f"{indicator.percent}%", (x + bw + 8, y + bh - 3))
    return frame


def draw_hud(
    frame,
    status: str,
    label: str,
    recording: bool,
    examples: int,
    volume: Optional[VolumeIndicator] = None,
    prediction: Optional[str] = None,
):
    draw_text(frame, f"gesture: {status}", (12, 28), scale=0.8)
    info = f"label: {label} | examples: {examples} | r=record t=train q=quit"
    if prediction:
        info += f" | predicted: {prediction}"
    draw_text(frame, info, (12, 56))
    if recording:
        h, w = frame.shape[:2]
        cv2.circle(frame, (w - 30, 30), 12, (0, 0, 255), -1)
        draw_text(frame, "REC", (w - 90, 36), color=(0, 0, 255))
    if volume is not None:
        draw_volume_bar(frame, volume)
    return frame
