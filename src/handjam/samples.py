"""Drum-kit synthesis and backing-track loading."""

from __future__ import annotations

import logging
import wave
from typing import Dict, Tuple

import numpy as np

logger = logging.getLogger(__name__)


DRUM_SOUNDS = ("kick", "snare", "hihat", "clap")


def _one_pole_lowpass(x: np.ndarray, cutoff_hz: float, sample_rate: int) -> np.ndarray:
    a = float(np.exp(-2.0 * np.pi * cutoff_hz / sample_rate))
    y = np.empty_like(x)
    acc = 0.0
    for i in range(x.size):
        acc = a * acc + (1.0 - a) * x[i]
        y[i] = acc
    return y


def _times(duration_s: float, sample_rate: int) -> np.ndarray:
    n = max(1, int(sample_rate * duration_s))
    return np.arange(n, dtype=np.float64) / float(sample_rate)


def render_kick(sample_rate: int, volume: float = 0.8) -> np.ndarray:
    # Exponential pitch drop with a short click.
    tt = _times(0.28, sample_rate)
    f0, f1 = 85.0, 34.0
    f = f1 + (f0 - f1) * np.exp(-tt / 0.05)
    phase = 2.0 * np.pi * np.cumsum(f) / float(sample_rate)
    env = np.exp(-tt / 0.24) * np.clip(tt / 0.004, 0.0, 1.0)
    rng = np.random.default_rng(1)
    y = np.sin(phase) * env + np.sin(phase * 0.5) * env * 0.35
    y += rng.standard_normal(tt.size) * np.exp(-tt / 0.005) * 0.06
    return (np.tanh(y * 1.6) * volume).astype(np.float32)


def render_snare(sample_rate: int, volume: float = 0.6) -> np.ndarray:
    tt = _times(0.22, sample_rate)
    rng = np.random.default_rng(2)
    noise = rng.standard_normal(tt.size)
    hp = noise - _one_pole_lowpass(noise, 700.0, sample_rate)
    bp = _one_pole_lowpass(hp, 6500.0, sample_rate)
    tone = np.sin(2.0 * np.pi * 190.0 * tt)
    y = (0.82 * bp + 0.18 * tone) * np.exp(-tt / 0.14)
    return (np.tanh(y * 1.2) * volume).astype(np.float32)


def render_hihat(sample_rate: int, volume: float = 0.35) -> np.ndarray:
    tt = _times(0.08, sample_rate)
    rng = np.random.default_rng(3)
    noise = rng.standard_normal(tt.size)
    hp = noise - _one_pole_lowpass(noise, 7000.0, sample_rate)
    return (hp * np.exp(-tt / 0.02) * volume).astype(np.float32)


def render_clap(sample_rate: int, volume: float = 0.5) -> np.ndarray:
    tt = _times(0.18, sample_rate)
    rng = np.random.default_rng(4)
    noise = rng.standard_normal(tt.size)
    bp = _one_pole_lowpass(noise - _one_pole_lowpass(noise, 1000.0, sample_rate), 5000.0, sample_rate)
    # three quick bursts then a tail
    env = np.zeros_like(tt)
    for onset in (0.0, 0.012, 0.024):
        shifted = np.clip(tt - onset, 0.0, None)
        env = np.maximum(env, np.where(tt >= onset, np.exp(-shifted / 0.008), 0.0))
    env = np.maximum(env, np.exp(-np.clip(tt - 0.03, 0.0, None) / 0.06) * (tt >= 0.03) * 0.6)
    return (np.tanh(bp * env * 1.5) * volume).astype(np.float32)


_RENDERERS = {
    "kick": render_kick,
    "snare": render_snare,
    "hihat": render_hihat,
    "clap": render_clap,
}


def render_drum_kit(sample_rate: int) -> Dict[str, np.ndarray]:
    return {name: _RENDERERS[name](sample_rate) for name in DRUM_SOUNDS}


def load_wav(path: str) -> Tuple[np.ndarray, int]:
    """
    Read a PCM WAV file as mono float32 in [-1, 1].

    Returns (samples, sample_rate).
    """

    with wave.open(path, "rb") as w:
        n_channels = w.getnchannels()
        width = w.getsampwidth()
        rate = w.getframerate()
        raw = w.readframes(w.getnframes())

    if width == 1:
        data = (np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif width == 2:
        data = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    elif width == 4:
        data = np.frombuffer(raw, dtype="<i4").astype(np.float32) / 2147483648.0
    else:
        raise ValueError(f"Unsupported WAV sample width: {width} bytes")

    if n_channels > 1:
        data = data.reshape(-1, n_channels).mean(axis=1)
    logger.info("Loaded track %s (%.1fs @ %d Hz)", path, data.size / float(rate), rate)
    return data.astype(np.float32), rate


def resample_linear(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    if src_rate == dst_rate or samples.size == 0:
        return samples.astype(np.float32)
    n_out = max(1, int(round(samples.size * dst_rate / float(src_rate))))
    src_t = np.arange(samples.size, dtype=np.float64) / src_rate
    dst_t = np.arange(n_out, dtype=np.float64) / dst_rate
    return np.interp(dst_t, src_t, samples).astype(np.float32)
