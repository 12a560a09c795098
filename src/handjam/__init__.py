from .classifier import ClassifierTrainer, GesturePredictor, Prediction
from .config import AppConfig
from .dispatcher import Action, ActionDispatcher, ActionKind
from .frame_loop import FrameLoop
from .gesture_model import ControlState, GestureModel
from .recognizer import RecognizerSession
from .recorder import ExampleSet, GestureRecorder
from .types import DetectionFrame, GestureCategory, Hand, Handedness, LabeledExample, Landmark

__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionKind",
    "AppConfig",
    "ClassifierTrainer",
    "ControlState",
    "DetectionFrame",
    "ExampleSet",
    "FrameLoop",
    "GestureCategory",
    "GestureModel",
    "GesturePredictor",
    "GestureRecorder",
    "Hand",
    "Handedness",
    "LabeledExample",
    "Landmark",
    "Prediction",
    "RecognizerSession",
]
