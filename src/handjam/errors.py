from __future__ import annotations


class HandjamError(Exception):
    """Base class for handjam errors."""


class RecognizerInitError(HandjamError, RuntimeError):
    """The landmark recognizer could not be constructed."""


class RecognizerNotReadyError(HandjamError):
    """A recognition was requested before the recognizer became ready."""


class TrainingError(HandjamError):
    """The recorded examples cannot be turned into a training batch."""
