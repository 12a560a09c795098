import pytest

from fakes import FakeAudio, FakeClock, ManualScheduler, RecordingStatus


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock(scheduler):
    return FakeClock(scheduler)


@pytest.fixture
def audio():
    return FakeAudio()


@pytest.fixture
def status():
    return RecordingStatus()
