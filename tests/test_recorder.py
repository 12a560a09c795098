"""Tests for GestureRecorder sessions and auto-stop."""

import pytest

from handjam.config import DEFAULT_GESTURE_LABEL, RecordingConfig
from handjam.recorder import ExampleSet, GestureRecorder

from fakes import make_frame, make_hand


@pytest.fixture
def examples():
    return ExampleSet()


@pytest.fixture
def recorder(examples, scheduler, clock):
    return GestureRecorder(examples, scheduler, clock=clock)


class TestRecordingSession:
    def test_toggle_starts_and_stops(self, recorder, examples, scheduler):
        recorder.toggle()
        assert recorder.is_recording
        recorder.capture(make_frame(make_hand()))
        recorder.capture(make_frame(make_hand()))
        scheduler.advance(0.5)

        example = recorder.toggle()

        assert not recorder.is_recording
        assert len(examples) == 1
        assert example is examples[0]
        assert len(example.features) == 2
        assert example.label == DEFAULT_GESTURE_LABEL
        assert example.duration_ms == 500

    def test_stop_without_frames_adds_nothing(self, recorder, examples):
        recorder.toggle()
        assert recorder.toggle() is None
        assert len(examples) == 0
        assert not recorder.is_recording

    def test_frames_without_hands_are_skipped(self, recorder):
        recorder.toggle()
        recorder.capture(make_frame())
        assert recorder.buffered_frames == 0

    def test_capture_ignored_when_idle(self, recorder):
        recorder.capture(make_frame(make_hand()))
        assert recorder.buffered_frames == 0

    def test_restart_clears_buffer(self, recorder, examples):
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        recorder.toggle()
        recorder.toggle()
        assert recorder.buffered_frames == 0
        recorder.capture(make_frame(make_hand()))
        recorder.toggle()
        assert [len(ex.features) for ex in examples] == [1, 1]


class TestAutoStop:
    def test_deadline_stops_exactly_once(self, recorder, examples, scheduler):
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))

        scheduler.advance(1.999)
        assert recorder.is_recording

        scheduler.advance(0.001)
        assert not recorder.is_recording
        assert len(examples) == 1
        assert examples[0].duration_ms == 2000

        scheduler.advance(10.0)
        assert len(examples) == 1

    def test_manual_stop_cancels_deadline(self, recorder, examples, scheduler):
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        scheduler.advance(1.999)
        recorder.toggle()
        assert scheduler.pending == []

        # A new session is not cut short by the old timer.
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        scheduler.advance(1.0)
        assert recorder.is_recording
        assert len(examples) == 1

    def test_custom_duration(self, examples, scheduler, clock):
        rec = GestureRecorder(examples, scheduler, RecordingConfig(max_duration_ms=500), clock=clock)
        rec.toggle()
        scheduler.advance(0.5)
        assert not rec.is_recording

    def test_invalid_duration(self, examples, scheduler):
        with pytest.raises(ValueError):
            GestureRecorder(examples, scheduler, RecordingConfig(max_duration_ms=0))


class TestLabel:
    def test_default(self, recorder):
        assert recorder.label == "gestureLabel"

    def test_custom_label_is_recorded(self, recorder, examples):
        recorder.label = "  wave "
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        recorder.toggle()
        assert examples[0].label == "wave"

    def test_blank_label_falls_back(self, recorder):
        recorder.label = "wave"
        recorder.label = "   "
        assert recorder.label == "gestureLabel"


class TestExampleSet:
    def test_snapshot_is_detached(self, recorder, examples):
        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        recorder.toggle()
        snap = examples.snapshot()

        recorder.toggle()
        recorder.capture(make_frame(make_hand()))
        recorder.toggle()

        assert len(snap) == 1
        assert len(examples) == 2
        assert list(examples) == [examples[0], examples[1]]
