from __future__ import annotations

from typing import List, Tuple

import cv2
import numpy as np

from enrollcam.config import ENROLL_TARGET, SAMPLE_SIZE
from enrollcam.face.detector import FaceRegion
from enrollcam.utils.log import get_logger

logger = get_logger(__name__)


def crop_sample(gray: np.ndarray, region: FaceRegion, size: Tuple[int, int] = SAMPLE_SIZE) -> np.ndarray:
    """Copy `region` out of a grayscale frame and resize it to `size` (w, h)."""
    x1, y1, x2, y2 = region.xyxy
    crop = gray[y1:y2, x1:x2]
    if crop.size == 0:
        raise ValueError(f"Empty crop for region {region.xyxy}")
    return cv2.resize(crop, (int(size[0]), int(size[1])))


class SampleCollector:
    """Accumulates fixed-size face crops until `target` samples are held.

    Minimal enrollment collector: no de-duplication and no quality filtering.
    Once full (or once the samples are handed off with `take`), further offers
    are ignored.
    """

    def __init__(self, target: int = ENROLL_TARGET, sample_size: Tuple[int, int] = SAMPLE_SIZE):
        if int(target) < 1:
            raise ValueError(f"target must be >= 1, got {target}")
        self.target = int(target)
        self.sample_size: Tuple[int, int] = (int(sample_size[0]), int(sample_size[1]))
        self._samples: List[np.ndarray] = []
        self._sealed = False

    @property
    def remaining(self) -> int:
        if self._sealed:
            return 0
        return self.target - len(self._samples)

    @property
    def is_full(self) -> bool:
        return len(self._samples) >= self.target

    def offer(self, sample: np.ndarray) -> int:
        """Append a copy of `sample` if there is room; return how many are still needed."""
        if self._sealed or self.is_full:
            logger.debug("样本已满，忽略本帧人脸")
            return self.remaining

        w, h = self.sample_size
        arr = np.asarray(sample)
        if arr.ndim != 2:
            raise ValueError("face samples must be single-channel")
        if arr.shape != (h, w):
            arr = cv2.resize(arr, (w, h))
        else:
            arr = arr.copy()
        self._samples.append(arr)
        return self.remaining

    def status_text(self) -> str:
        return f"face frames left to train: {self.remaining}"

    def take(self) -> List[np.ndarray]:
        """Hand the samples over (to the trainer); the collector is sealed afterwards."""
        samples = self._samples
        self._samples = []
        self._sealed = True
        return samples

    def __len__(self) -> int:
        return len(self._samples)
