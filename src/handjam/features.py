"""
Landmark normalization and fixed-length feature windowing.

All functions are pure. The per-frame feature is the wrist-relative position of
one keypoint (the index fingertip by default); a recorded gesture is the
sequence of those per-frame features, packed into a fixed 10 x 3 window before
it reaches the classifier.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .types import FeatureVector, HandLandmarkIndex, Landmark


FEATS_PER_T = 3  # x, y, z
NORMAL_SEQ_LEN = 10


def _z(p: Landmark) -> float:
    return float(p.z) if p.z is not None else 0.0


def normalize_landmarks(landmarks: Sequence[Landmark]) -> List[Landmark]:
    """Translate all points so the wrist (landmark 0) sits at the origin."""
    if not landmarks:
        return []
    base = landmarks[HandLandmarkIndex.WRIST]
    bz = _z(base)
    return [Landmark(x=p.x - base.x, y=p.y - base.y, z=_z(p) - bz) for p in landmarks]


def keypoint_features(
    landmarks: Sequence[Landmark],
    index: int = HandLandmarkIndex.INDEX_FINGER_TIP,
) -> FeatureVector:
    if not landmarks or index >= len(landmarks):
        return (0.0,) * FEATS_PER_T
    p = landmarks[index]
    return (float(p.x), float(p.y), _z(p))


def frame_features(
    landmarks: Sequence[Landmark],
    index: int = HandLandmarkIndex.INDEX_FINGER_TIP,
) -> FeatureVector:
    """Per-frame feature vector used both for recording and for live inference."""
    return keypoint_features(normalize_landmarks(landmarks), index=index)


def window_features(
    buffer: Sequence[Sequence[float]],
    feats_per_t: int = FEATS_PER_T,
    normal_seq_len: int = NORMAL_SEQ_LEN,
) -> np.ndarray:
    """
    Pack a variable-length sequence of per-frame features into a flat vector.

    Timesteps past `normal_seq_len` are dropped and missing ones stay zero, as do
    features past `feats_per_t` within a timestep.
    """

    features = np.zeros(feats_per_t * normal_seq_len, dtype=np.float32)
    for t, point in enumerate(buffer[:normal_seq_len]):
        for f, value in enumerate(point[:feats_per_t]):
            features[feats_per_t * t + f] = float(value)
    return features
