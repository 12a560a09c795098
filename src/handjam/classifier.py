"""
Runtime training and inference of the personal gesture classifier.

Training and prediction run in an executor so the frame loop is never blocked;
their results are applied from done-callbacks on the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, TensorDataset

from .config import FeatureConfig, TrainingConfig
from .errors import TrainingError
from .features import frame_features, window_features
from .types import DetectionFrame, FeatureVector, LabeledExample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    label: str
    class_index: int
    probabilities: Tuple[float, ...]


def encode_labels(
    labels: Sequence[str],
    positive_label: str,
    num_classes: int = 4,
) -> np.ndarray:
    """
    One-hot encode labels as a binary problem over `num_classes` outputs.

    `positive_label` is class 0; every other label collapses to class 1.
    """

    if num_classes < 2:
        raise ValueError(f"num_classes must be at least 2, got {num_classes}")
    out = np.zeros((len(labels), num_classes), dtype=np.float32)
    for i, label in enumerate(labels):
        out[i, 0 if label == positive_label else 1] = 1.0
    return out


def class_labels_for(positive_label: str, num_classes: int = 4) -> Tuple[str, ...]:
    names = [positive_label, "other"]
    names.extend(f"class_{i}" for i in range(2, num_classes))
    return tuple(names)


def build_network(input_size: int, hidden_units: Sequence[int] = (64, 32), num_classes: int = 4) -> nn.Sequential:
    layers: List[nn.Module] = []
    prev = input_size
    for units in hidden_units:
        layers.append(nn.Linear(prev, units))
        layers.append(nn.ReLU())
        prev = units
    layers.append(nn.Linear(prev, num_classes))
    return nn.Sequential(*layers)


def examples_to_inputs(examples: Sequence[LabeledExample], features: FeatureConfig = FeatureConfig()) -> np.ndarray:
    rows = [window_features(ex.features, features.feats_per_t, features.normal_seq_len) for ex in examples]
    lengths = {row.shape[0] for row in rows}
    if len(lengths) != 1:
        raise TrainingError(f"examples have inconsistent feature lengths: {sorted(lengths)}")
    return np.stack(rows).astype(np.float32)


class TrainedClassifier:
    """A fitted network plus the labels of its output classes."""

    def __init__(self, network: nn.Module, input_size: int, class_labels: Sequence[str]) -> None:
        self.network = network
        self.input_size = input_size
        self.class_labels = tuple(class_labels)
        self.network.eval()

    def predict_proba(self, vector: np.ndarray) -> np.ndarray:
        x = np.asarray(vector, dtype=np.float32).reshape(1, -1)
        if x.shape[1] != self.input_size:
            raise ValueError(f"expected {self.input_size} features, got {x.shape[1]}")
        with torch.no_grad():
            logits = self.network(torch.from_numpy(x))
            probs = torch.softmax(logits, dim=1)
        return probs.numpy()[0]

    def predict(self, vector: np.ndarray) -> Prediction:
        probs = self.predict_proba(vector)
        idx = int(np.argmax(probs))
        return Prediction(
            label=self.class_labels[idx],
            class_index=idx,
            probabilities=tuple(float(p) for p in probs),
        )


def fit_classifier(inputs: np.ndarray, targets: np.ndarray, config: TrainingConfig = TrainingConfig()) -> TrainedClassifier:
    """Fit the dense classifier with categorical cross-entropy. Blocking."""

    if inputs.ndim != 2 or targets.ndim != 2 or inputs.shape[0] != targets.shape[0]:
        raise TrainingError(f"bad training batch shapes: inputs={inputs.shape} targets={targets.shape}")

    torch.manual_seed(config.seed)
    network = build_network(inputs.shape[1], config.hidden_units, targets.shape[1])
    optimizer = torch.optim.Adam(network.parameters(), lr=config.learning_rate)
    loss_fn = nn.CrossEntropyLoss()

    xs = torch.from_numpy(inputs)
    ys = torch.from_numpy(np.argmax(targets, axis=1)).long()
    loader = DataLoader(TensorDataset(xs, ys), batch_size=config.batch_size, shuffle=True)

    network.train()
    for epoch in range(config.epochs):
        total_loss = 0.0
        correct = 0
        for xb, yb in loader:
            optimizer.zero_grad()
            logits = network(xb)
            loss = loss_fn(logits, yb)
            loss.backward()
            optimizer.step()
            total_loss += float(loss.item()) * xb.shape[0]
            correct += int((logits.argmax(dim=1) == yb).sum().item())
        n = xs.shape[0]
        logger.info("Epoch %d: loss = %.4f, accuracy = %.3f", epoch + 1, total_loss / n, correct / n)
    logger.info("Training complete")

    labels = class_labels_for(config.positive_label, targets.shape[1])
    return TrainedClassifier(network, inputs.shape[1], labels)


class ClassifierTrainer:
    """
    Owns the single current classifier.

    `train()` snapshots the examples it is given, fits off the event loop and
    swaps the result in when done. A failed run leaves the previous classifier.
    """

    def __init__(
        self,
        config: TrainingConfig = TrainingConfig(),
        features: FeatureConfig = FeatureConfig(),
        executor: Optional[Executor] = None,
    ) -> None:
        self._config = config
        self._features = features
        self._executor = executor
        self._classifier: Optional[TrainedClassifier] = None

    @property
    def classifier(self) -> Optional[TrainedClassifier]:
        return self._classifier

    @property
    def has_classifier(self) -> bool:
        return self._classifier is not None

    def train(self, examples: Sequence[LabeledExample]) -> Optional["asyncio.Future[TrainedClassifier]"]:
        snapshot = tuple(examples)
        if not snapshot:
            logger.info("No recorded gestures to train on.")
            return None

        try:
            inputs = examples_to_inputs(snapshot, self._features)
            targets = encode_labels(
                [ex.label for ex in snapshot], self._config.positive_label, self._config.num_classes
            )
        except (TrainingError, ValueError):
            logger.exception("Error preparing training data")
            return None
        logger.info("Training on %d examples, input shape %s", len(snapshot), inputs.shape)

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, fit_classifier, inputs, targets, self._config)
        future.add_done_callback(self._on_trained)
        return future

    def _on_trained(self, future: "asyncio.Future[TrainedClassifier]") -> None:
        if future.cancelled():
            logger.warning("Training was cancelled")
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Error during training: %s", exc, exc_info=exc)
            return
        self._classifier = future.result()
        logger.info("Model trained successfully")


class GesturePredictor:
    """
    Scores the primary hand's recent motion with the current classifier.

    Keeps a rolling window of per-frame features so live input has the same
    shape as the recorded training examples. Predictions are only logged and
    stored; no action is bound to them yet.
    """

    def __init__(
        self,
        trainer: ClassifierTrainer,
        features: FeatureConfig = FeatureConfig(),
        executor: Optional[Executor] = None,
    ) -> None:
        self._trainer = trainer
        self._features = features
        self._executor = executor
        self._window: Deque[FeatureVector] = deque(maxlen=features.normal_seq_len)
        self.last_prediction: Optional[Prediction] = None

    @property
    def has_classifier(self) -> bool:
        return self._trainer.has_classifier

    def observe(self, frame: DetectionFrame) -> Optional["asyncio.Future[Prediction]"]:
        hand = frame.primary_hand
        if hand is None:
            return None
        self._window.append(frame_features(hand.landmarks, index=self._features.keypoint_index))

        classifier = self._trainer.classifier
        if classifier is None:
            logger.debug("Classifier not available.")
            return None

        vector = window_features(list(self._window), self._features.feats_per_t, self._features.normal_seq_len)
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, classifier.predict, vector)
        future.add_done_callback(self._on_prediction)
        return future

    def _on_prediction(self, future: "asyncio.Future[Prediction]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Error during gesture prediction: %s", exc)
            return
        self.last_prediction = future.result()
        logger.info(
            "Gesture recognized: %s %s", self.last_prediction.label, self.last_prediction.probabilities
        )
