"""Face detection interface and the OpenCV cascade implementation.

The pipeline is single-face: it only ever looks at the first region a detector
returns (see `first_face`). Detectors themselves may return any number of
regions; an empty list is the normal "no face in this frame" outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from enrollcam.config import CASCADE_FLAGS, CASCADE_NAME, MIN_FACE_SIZE, MIN_NEIGHBORS, SCALE_FACTOR
from enrollcam.errors import DetectorLoadError
from enrollcam.utils.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FaceRegion:
    """Axis-aligned face rectangle in frame pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def tl(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def br(self) -> Tuple[int, int]:
        return (self.x + self.width, self.y + self.height)

    @property
    def xyxy(self) -> List[int]:
        return [self.x, self.y, self.x + self.width, self.y + self.height]

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    def clip(self, frame_w: int, frame_h: int) -> "FaceRegion":
        """Return the part of this region that lies inside a (frame_w, frame_h) frame."""
        x1 = min(max(0, self.x), int(frame_w))
        y1 = min(max(0, self.y), int(frame_h))
        x2 = min(max(0, self.x + self.width), int(frame_w))
        y2 = min(max(0, self.y + self.height), int(frame_h))
        return FaceRegion(x1, y1, max(0, x2 - x1), max(0, y2 - y1))


def first_face(regions: Sequence[FaceRegion]) -> Optional[FaceRegion]:
    """Single-face policy: the first region in detector scan order, no ranking."""
    if not regions:
        return None
    return regions[0]


@dataclass
class DetectorConfig:
    # None -> OpenCV bundled frontal face cascade
    cascade_path: Optional[str] = None
    scale_factor: float = SCALE_FACTOR
    min_neighbors: int = MIN_NEIGHBORS
    flags: int = CASCADE_FLAGS
    min_size: Tuple[int, int] = MIN_FACE_SIZE
    # None -> no upper bound
    max_size: Optional[Tuple[int, int]] = None


class FaceDetector(ABC):
    """Abstract face detector working on single-channel images."""

    @abstractmethod
    def detect(self, gray: np.ndarray) -> List[FaceRegion]:
        """Return candidate face regions (possibly empty) in scan order."""
        pass


def resolve_cascade_path(path_or_name: Optional[str] = None) -> Path:
    """Locate a cascade XML either as a file path or by name in `cv2.data.haarcascades`."""
    name = str(path_or_name) if path_or_name else CASCADE_NAME
    candidate = Path(name).expanduser()
    if candidate.is_file():
        return candidate

    bundled_dir = getattr(getattr(cv2, "data", None), "haarcascades", None)
    if bundled_dir:
        bundled = Path(bundled_dir) / candidate.name
        if bundled.is_file():
            return bundled

    raise DetectorLoadError(f"Cascade classifier not found: {name}")


class CascadeFaceDetector(FaceDetector):
    """Multi-scale sliding-window cascade detector (`cv2.CascadeClassifier`)."""

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()
        self.cascade_path = resolve_cascade_path(self.config.cascade_path)

        classifier = cv2.CascadeClassifier()
        try:
            # invalid XML raises cv2.error; some builds wrap it in SystemError
            classifier.load(str(self.cascade_path))
        except (cv2.error, SystemError) as e:
            raise DetectorLoadError(f"级联分类器加载失败: {self.cascade_path}") from e
        if classifier.empty():
            raise DetectorLoadError(f"级联分类器为空或格式错误: {self.cascade_path}")

        self._classifier = classifier
        logger.info(
            f"级联检测器已加载: {self.cascade_path.name}, scale={self.config.scale_factor}, "
            f"min_neighbors={self.config.min_neighbors}, min_size={tuple(self.config.min_size)}"
        )

    def detect(self, gray: np.ndarray) -> List[FaceRegion]:
        if gray is None or gray.ndim != 2:
            raise ValueError("detect() expects a single-channel image")

        kwargs = {
            "scaleFactor": float(self.config.scale_factor),
            "minNeighbors": int(self.config.min_neighbors),
            "flags": int(self.config.flags),
            "minSize": tuple(int(v) for v in self.config.min_size),
        }
        if self.config.max_size is not None:
            kwargs["maxSize"] = tuple(int(v) for v in self.config.max_size)

        rects = self._classifier.detectMultiScale(gray, **kwargs)
        # detectMultiScale returns an empty tuple when nothing is found
        if len(rects) == 0:
            return []
        return [FaceRegion(int(x), int(y), int(w), int(h)) for (x, y, w, h) in rects]
