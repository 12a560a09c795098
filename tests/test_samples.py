"""Tests for drum synthesis, track loading and model assets."""

import wave

import numpy as np
import pytest

from handjam.model_assets import ensure_gesture_recognizer_task
from handjam.samples import DRUM_SOUNDS, load_wav, render_drum_kit, resample_linear


class TestDrumKit:
    def test_all_pads_rendered(self):
        kit = render_drum_kit(8000)
        assert set(kit) == set(DRUM_SOUNDS)
        for name, data in kit.items():
            assert data.dtype == np.float32, name
            assert data.size > 0, name
            assert np.max(np.abs(data)) <= 1.0, name

    def test_deterministic(self):
        a = render_drum_kit(8000)
        b = render_drum_kit(8000)
        assert all(np.array_equal(a[k], b[k]) for k in DRUM_SOUNDS)


class TestTrack:
    def test_load_stereo_16bit(self, tmp_path):
        path = tmp_path / "track.wav"
        frames = np.array([[16384, -16384], [32767, 32767]], dtype="<i2")
        with wave.open(str(path), "wb") as w:
            w.setnchannels(2)
            w.setsampwidth(2)
            w.setframerate(22050)
            w.writeframes(frames.tobytes())

        data, rate = load_wav(str(path))

        assert rate == 22050
        assert data.shape == (2,)
        assert data[0] == pytest.approx(0.0)
        assert data[1] == pytest.approx(32767 / 32768.0)

    def test_resample_length(self):
        src = np.linspace(-1.0, 1.0, 100, dtype=np.float32)
        out = resample_linear(src, 100, 200)
        assert out.size == 200
        assert out.dtype == np.float32
        assert resample_linear(src, 100, 100) is not src


class TestModelAssets:
    def test_existing_model_is_kept(self, tmp_path):
        path = tmp_path / "gesture_recognizer.task"
        path.write_bytes(b"model")
        assert ensure_gesture_recognizer_task(str(path), url="http://invalid.example/none") == str(path)
        assert path.read_bytes() == b"model"
