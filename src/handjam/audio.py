from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import sounddevice as sd

from .regions import REGION_CREATED, REGION_REMOVED, LoopRegions, Region
from .samples import render_drum_kit

logger = logging.getLogger(__name__)


MIN_PLAYBACK_RATE = 0.25
MAX_PLAYBACK_RATE = 4.0


@dataclass
class _Voice:
    data: np.ndarray
    pos: int = 0

    @property
    def done(self) -> bool:
        return self.pos >= self.data.size

    def render(self, frames: int) -> np.ndarray:
        chunk = self.data[self.pos:self.pos + frames]
        self.pos += chunk.size
        if chunk.size < frames:
            out = np.zeros(frames, dtype=np.float32)
            out[:chunk.size] = chunk
            return out
        return chunk


class AudioEngine:
    """
    Real-time mixer for a backing track plus one-shot drum samples.

    The track can be paused, sped up or slowed down (resampled on the fly),
    and wraps around the active loop region while one exists.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        volume: float = 0.5,
        track: Optional[np.ndarray] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            sample_rate: Audio sample rate in Hz
            volume: Track volume level (0.0 to 1.0)
            track: Mono float32 backing track at `sample_rate`
        """
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")

        self.sample_rate = sample_rate
        self._volume = max(0.0, min(1.0, volume))
        self._track = np.zeros(0, dtype=np.float32) if track is None else np.asarray(track, dtype=np.float32)
        self._position = 0.0  # in track samples, fractional while resampling
        self._rate = 1.0
        self._playing = False
        self._samples: Dict[str, np.ndarray] = {}
        self._voices: List[_Voice] = []
        self._regions: Optional[LoopRegions] = None

        # Audio stream state
        self._stream: Optional[sd.OutputStream] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the audio stream."""
        if self._stream is not None:
            return

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            callback=self._audio_callback,
            blocksize=1024,
        )
        self._stream.start()

    def stop(self) -> None:
        """Stop the audio stream."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def load_track(self, track: np.ndarray) -> None:
        with self._lock:
            self._track = np.asarray(track, dtype=np.float32)
            self._position = 0.0

    def load_all_samples(self) -> None:
        kit = render_drum_kit(self.sample_rate)
        with self._lock:
            self._samples.update(kit)
        logger.info("Loaded %d drum samples: %s", len(kit), ", ".join(sorted(kit)))

    def play_sample(self, sound_id: str) -> None:
        data = self._samples.get(sound_id)
        if data is None:
            logger.warning("Unknown sample %r", sound_id)
            return
        with self._lock:
            self._voices.append(_Voice(data=data))

    def play(self) -> None:
        with self._lock:
            self._playing = True

    def play_pause(self) -> None:
        with self._lock:
            self._playing = not self._playing
            playing = self._playing
        logger.info("Playback %s", "started" if playing else "paused")

    def seek(self, seconds: float) -> None:
        with self._lock:
            self._position = max(0.0, min(float(self._track.size), seconds * self.sample_rate))

    def set_playback_rate(self, rate: float) -> None:
        with self._lock:
            self._rate = max(MIN_PLAYBACK_RATE, min(MAX_PLAYBACK_RATE, float(rate)))

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._volume = max(0.0, min(1.0, float(volume)))

    def get_current_time(self) -> float:
        with self._lock:
            return self._position / float(self.sample_rate)

    def add_regions(self) -> LoopRegions:
        """Attach a loop-region set to this engine (replaces any previous one)."""
        regions = LoopRegions()
        regions.on(REGION_CREATED, self._on_region_created)
        regions.on(REGION_REMOVED, self._on_region_removed)
        self._regions = regions
        return regions

    def _on_region_created(self, region: Region) -> None:
        if region.loop:
            self.seek(region.start)
            self.play()

    def _on_region_removed(self, region: Region) -> None:
        self.play()

    def _render_track(self, frames: int) -> np.ndarray:
        """Advance the playhead by `frames` output samples. Caller holds the lock."""
        out = np.zeros(frames, dtype=np.float32)
        if not self._playing or self._track.size == 0:
            return out

        loop = self._regions.active_loop() if self._regions is not None else None
        idx = self._position + np.arange(frames, dtype=np.float64) * self._rate
        end_pos = self._position + frames * self._rate

        if loop is not None:
            start = loop.start * self.sample_rate
            length = max(1.0, (loop.end - loop.start) * self.sample_rate)
            if np.any(idx >= start + length):
                self._regions.notify_out(loop)
            idx = np.where(idx >= start, start + np.mod(idx - start, length), idx)
            if end_pos >= start:
                end_pos = start + ((end_pos - start) % length)
        else:
            valid = idx < self._track.size
            idx = idx[valid]
            if end_pos >= self._track.size:
                end_pos = float(self._track.size)
                self._playing = False

        if idx.size:
            out[:idx.size] = np.interp(idx, np.arange(self._track.size), self._track) * self._volume
        self._position = end_pos
        return out

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        """
        Audio callback for sounddevice stream.

        Args:
            outdata: Output buffer to fill with audio samples
            frames: Number of frames to generate
            time_info: Timing information from the audio system
            status: Stream status flags indicating errors or warnings
        """
        with self._lock:
            mix = self._render_track(frames)
            for voice in self._voices:
                mix += voice.render(frames)
            self._voices = [v for v in self._voices if not v.done]
        outdata[:, 0] = np.clip(mix, -1.0, 1.0)

    def __enter__(self) -> "AudioEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
