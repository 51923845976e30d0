"""One-class face recognizer training.

Every enrolled sample gets the same synthetic label (`ENROLLED_LABEL`): the
model answers "how close is this face to the one enrolled person", it does not
classify between identities.

Score convention: `Prediction.score` is a distance. Lower means a closer match,
0 for an identical sample, no upper bound.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple, Sequence

import cv2
import numpy as np

from enrollcam.config import ENROLL_TARGET
from enrollcam.errors import PreconditionError
from enrollcam.utils.log import get_logger

logger = get_logger(__name__)

ENROLLED_LABEL = 1


class Prediction(NamedTuple):
    label: int
    score: float


class RecognitionModel(ABC):
    """Trained, immutable recognizer."""

    @abstractmethod
    def predict(self, sample: np.ndarray) -> Prediction:
        pass


class RecognizerTrainer(ABC):
    """Builds a `RecognitionModel` from exactly `target` samples, once.

    Subclasses implement `_fit`; the call-order checks live here.
    """

    def __init__(self, target: int = ENROLL_TARGET):
        if int(target) < 1:
            raise ValueError(f"target must be >= 1, got {target}")
        self.target = int(target)
        self._trained = False

    @property
    def trained(self) -> bool:
        return self._trained

    def train(self, samples: Sequence[np.ndarray]) -> RecognitionModel:
        if self._trained:
            raise PreconditionError("train() may only be called once")
        if len(samples) != self.target:
            raise PreconditionError(f"train() needs exactly {self.target} samples, got {len(samples)}")

        self._trained = True
        model = self._fit(list(samples))
        logger.info(f"识别模型训练完成: {type(model).__name__}, 样本数={len(samples)}")
        return model

    @abstractmethod
    def _fit(self, samples: Sequence[np.ndarray]) -> RecognitionModel:
        pass


@dataclass
class LBPHConfig:
    radius: int = 1
    neighbors: int = 8
    grid_x: int = 8
    grid_y: int = 8


class LBPHModel(RecognitionModel):
    """Wraps a trained `cv2.face.LBPHFaceRecognizer`; score is its chi-square distance."""

    def __init__(self, recognizer):
        self._recognizer = recognizer

    def predict(self, sample: np.ndarray) -> Prediction:
        label, distance = self._recognizer.predict(np.asarray(sample, dtype=np.uint8))
        return Prediction(int(label), float(distance))


class LBPHTrainer(RecognizerTrainer):
    """Local binary pattern histogram recognizer (OpenCV contrib `face` module)."""

    def __init__(self, target: int = ENROLL_TARGET, config: LBPHConfig = LBPHConfig()):
        super().__init__(target)
        self.config = config

    def _fit(self, samples: Sequence[np.ndarray]) -> RecognitionModel:
        shapes = {np.asarray(s).shape for s in samples}
        if len(shapes) != 1 or len(next(iter(shapes))) != 2:
            raise ValueError(f"LBPH samples must share one single-channel shape, got {sorted(shapes)}")

        recognizer = cv2.face.LBPHFaceRecognizer_create(
            radius=int(self.config.radius),
            neighbors=int(self.config.neighbors),
            grid_x=int(self.config.grid_x),
            grid_y=int(self.config.grid_y),
        )
        images = [np.asarray(s, dtype=np.uint8) for s in samples]
        labels = np.full((len(images),), ENROLLED_LABEL, dtype=np.int32)
        recognizer.train(images, labels)
        return LBPHModel(recognizer)
