"""Tests for the per-frame driver."""

import asyncio

import pytest

from handjam.dispatcher import ActionDispatcher, ActionKind
from handjam.frame_loop import FrameLoop
from handjam.recorder import ExampleSet, GestureRecorder
from handjam.status import VolumeIndicator

from fakes import FakeSource, ScriptedFSM, make_frame, make_hand


class FakeSession:
    def __init__(self, frames=None, ready=True, failed=False, error=None):
        self.ready = ready
        self.failed = failed
        self._frames = list(frames or [])
        self._error = error
        self.calls = 0

    async def recognize(self, frame, timestamp_ms):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._frames.pop(0) if self._frames else make_frame()


class FakePredictor:
    def __init__(self, has_classifier=True):
        self.has_classifier = has_classifier
        self.observed = []

    def observe(self, frame):
        self.observed.append(frame)


@pytest.fixture
def fsm():
    return ScriptedFSM()


@pytest.fixture
def dispatcher(fsm, audio, status, scheduler):
    return ActionDispatcher(fsm, audio, status, VolumeIndicator(scheduler))


def _step(loop):
    return asyncio.run(loop.step())


class TestSkips:
    def test_not_ready(self, dispatcher, status):
        session = FakeSession(ready=False)
        source = FakeSource()
        loop = FrameLoop(session, source, dispatcher)

        assert _step(loop) is None
        assert session.calls == 0
        assert source.reads == 0
        assert status.history == []

    def test_failed_recognizer_warns_once(self, dispatcher, caplog):
        loop = FrameLoop(FakeSession(ready=False, failed=True), FakeSource(), dispatcher)
        with caplog.at_level("WARNING", logger="handjam.frame_loop"):
            _step(loop)
            _step(loop)
        assert caplog.text.count("Gesture recognizer unavailable") == 1
        assert not loop.recognizer_ready

    def test_zero_sized_video(self, dispatcher):
        session = FakeSession()
        loop = FrameLoop(session, FakeSource(size=(0, 0)), dispatcher)
        assert _step(loop) is None
        assert session.calls == 0

    def test_no_image(self, dispatcher):
        source = FakeSource()
        session = FakeSession()
        loop = FrameLoop(session, source, dispatcher)
        source.read = lambda: None
        assert _step(loop) is None
        assert session.calls == 0


class TestStep:
    def test_dispatches_every_frame(self, dispatcher, status):
        loop = FrameLoop(FakeSession(), FakeSource(), dispatcher)
        frame = _step(loop)
        assert frame is not None and frame.is_empty
        assert [a.kind for a in loop.last_actions] == [ActionKind.IDLE]
        assert status.history == ["🙌"]
        assert loop.frames_processed == 1

    def test_recognition_error_is_absorbed(self, dispatcher, status, caplog):
        loop = FrameLoop(FakeSession(error=RuntimeError("graph error")), FakeSource(), dispatcher)
        with caplog.at_level("ERROR", logger="handjam.frame_loop"):
            assert _step(loop) is None
        assert "Error during gesture recognition" in caplog.text
        assert status.history == []
        assert loop.frames_processed == 0

    def test_capture_only_while_recording(self, dispatcher, scheduler, clock):
        examples = ExampleSet()
        recorder = GestureRecorder(examples, scheduler, clock=clock)
        hand = make_frame(make_hand())
        loop = FrameLoop(FakeSession(frames=[hand, hand, hand]), FakeSource(), dispatcher, recorder=recorder)

        _step(loop)
        assert recorder.buffered_frames == 0
        recorder.toggle()
        _step(loop)
        _step(loop)
        assert recorder.buffered_frames == 2

    def test_predictor_needs_classifier(self, dispatcher):
        idle = FakePredictor(has_classifier=False)
        _step(FrameLoop(FakeSession(), FakeSource(), dispatcher, predictor=idle))
        assert idle.observed == []

        ready = FakePredictor()
        _step(FrameLoop(FakeSession(), FakeSource(), dispatcher, predictor=ready))
        assert len(ready.observed) == 1

    def test_renderer_sees_image_and_detections(self, dispatcher):
        seen = []
        source = FakeSource()
        frame = make_frame(make_hand())
        loop = FrameLoop(FakeSession(frames=[frame]), source, dispatcher, renderer=lambda img, det: seen.append((img, det)))
        _step(loop)
        (image, detections), = seen
        assert image is source.image
        assert detections is frame


class TestRun:
    def test_max_frames(self, dispatcher):
        session = FakeSession()
        loop = FrameLoop(session, FakeSource(), dispatcher, refresh_interval_s=0.0)
        asyncio.run(loop.run(max_frames=5))
        assert session.calls == 5
        assert not loop.running

    def test_keeps_running_after_errors(self, dispatcher):
        session = FakeSession(error=ValueError("bad frame"))
        loop = FrameLoop(session, FakeSource(), dispatcher, refresh_interval_s=0.0)
        asyncio.run(loop.run(max_frames=3))
        assert session.calls == 3

    def test_stop_from_renderer(self, dispatcher):
        session = FakeSession()
        holder = {}

        def render(image, detections):
            if session.calls >= 2:
                holder["loop"].stop()

        loop = FrameLoop(session, FakeSource(), dispatcher, renderer=render, refresh_interval_s=0.0)
        holder["loop"] = loop
        asyncio.run(loop.run())
        assert session.calls == 2

    def test_negative_interval(self, dispatcher):
        with pytest.raises(ValueError):
            FrameLoop(FakeSession(), FakeSource(), dispatcher, refresh_interval_s=-1)
