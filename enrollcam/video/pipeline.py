from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from enrollcam.config import ENROLL_TARGET, HISTORY_CAPACITY, SAMPLE_SIZE
from enrollcam.errors import PreconditionError
from enrollcam.face.collector import SampleCollector, crop_sample
from enrollcam.face.detector import FaceDetector, FaceRegion, first_face
from enrollcam.face.history import BoundedHistory
from enrollcam.face.trainer import RecognitionModel, RecognizerTrainer
from enrollcam.utils.draw import draw_face_box, draw_score_text
from enrollcam.utils.log import get_logger

logger = get_logger(__name__)

STATUS_TRAINING = "training..."
STATUS_RECOGNIZING = "recognition..."


class PipelinePhase(Enum):
    ENROLLING = "enrolling"
    TRAINING = "training"
    RECOGNIZING = "recognizing"


@dataclass
class PipelineConfig:
    enroll_target: int = ENROLL_TARGET
    history_capacity: int = HISTORY_CAPACITY
    sample_size: Tuple[int, int] = SAMPLE_SIZE

    # Overlay text is placed this many pixels up/left of the face box (clamped to >= 0)
    text_offset: int = 10

    # Colours are BGR
    box_color: Tuple[int, int, int] = (0, 0, 255)
    box_thickness: int = 3
    text_color: Tuple[int, int, int] = (0, 255, 255)
    font_face: int = cv2.FONT_HERSHEY_TRIPLEX
    font_scale: float = 1.5
    text_thickness: int = 3


@dataclass
class FrameResult:
    frame: np.ndarray
    phase: PipelinePhase
    region: Optional[FaceRegion] = None
    samples_left: Optional[int] = None
    label: Optional[int] = None
    score: Optional[int] = None
    average: Optional[int] = None
    overlay_text: Optional[str] = None
    text_origin: Optional[Tuple[int, int]] = None


def overlay_origin(region: FaceRegion, offset: int = 10) -> Tuple[int, int]:
    """Top-left of the face box shifted up/left by `offset`, never negative."""
    return (max(int(region.x) - int(offset), 0), max(int(region.y) - int(offset), 0))


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return frame.copy()
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"Unsupported frame shape: {frame.shape}")


class RecognitionPipeline:
    """Per-frame enrollment -> training -> recognition state machine.

    Frames must be fed serially (one call in flight at a time); all state
    (samples, history, phase, model) belongs to this object.

    Args:
        detector: any `FaceDetector`; only its first region per frame is used
        trainer: a fresh `RecognizerTrainer` whose target equals `config.enroll_target`
        config: overlay and sizing parameters
        on_status: optional callback receiving status strings (fire-and-forget)
    """

    def __init__(
        self,
        detector: FaceDetector,
        trainer: RecognizerTrainer,
        config: Optional[PipelineConfig] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or PipelineConfig()
        if int(trainer.target) != int(self.config.enroll_target):
            raise ValueError(
                f"trainer target ({trainer.target}) != enroll_target ({self.config.enroll_target})"
            )
        if trainer.trained:
            raise ValueError("trainer has already been used")

        self.detector = detector
        self.trainer = trainer
        self.collector = SampleCollector(self.config.enroll_target, self.config.sample_size)
        self.history = BoundedHistory(self.config.history_capacity)
        self._on_status = on_status

        self._phase = PipelinePhase.ENROLLING
        self._model: Optional[RecognitionModel] = None

        self.frames_processed = 0
        self.faces_detected = 0

    @property
    def phase(self) -> PipelinePhase:
        return self._phase

    @property
    def model(self) -> Optional[RecognitionModel]:
        return self._model

    def _emit(self, text: str) -> None:
        if self._on_status is not None:
            self._on_status(text)

    def _train(self) -> None:
        self._phase = PipelinePhase.TRAINING
        self._emit(STATUS_TRAINING)
        logger.info(f"已采集 {self.config.enroll_target} 个人脸样本，开始训练")

        self._model = self.trainer.train(self.collector.take())

        self._phase = PipelinePhase.RECOGNIZING
        self._emit(STATUS_RECOGNIZING)
        logger.info("进入识别阶段")

    def process(self, frame: np.ndarray) -> FrameResult:
        """Analyze one frame and return an annotated copy plus what was found."""
        if frame is None or frame.size == 0:
            raise ValueError("process() expects a non-empty image")
        if self._phase is PipelinePhase.TRAINING:
            # only reachable after trainer.train() raised; the samples are gone
            raise PreconditionError("training did not complete, pipeline cannot continue")

        self.frames_processed += 1
        gray = to_grayscale(frame)
        annotated = frame.copy()

        region = first_face(self.detector.detect(gray))
        if region is not None:
            region = region.clip(gray.shape[1], gray.shape[0])
        if region is None or region.area == 0:
            return FrameResult(frame=annotated, phase=self._phase)

        self.faces_detected += 1
        cfg = self.config
        draw_face_box(annotated, region.xyxy, cfg.box_color, cfg.box_thickness)
        sample = crop_sample(gray, region, cfg.sample_size)

        result = FrameResult(frame=annotated, phase=self._phase, region=region)

        if self._phase == PipelinePhase.ENROLLING:
            left = self.collector.offer(sample)
            result.samples_left = left
            self._emit(self.collector.status_text())
            logger.debug(f"采集样本: 剩余 {left}")
            if self.collector.is_full:
                self._train()
            result.phase = self._phase
            return result

        label, distance = self._model.predict(sample)
        # truncate toward zero
        score = int(distance)
        self.history.push(score)
        average = self.history.average()

        text = f"{score}/{average}"
        origin = overlay_origin(region, cfg.text_offset)
        draw_score_text(
            annotated,
            text,
            origin,
            cfg.text_color,
            font_face=cfg.font_face,
            font_scale=cfg.font_scale,
            thickness=cfg.text_thickness,
        )
        logger.debug(f"识别: label={label}, score={score}, avg={average}")

        result.label = int(label)
        result.score = score
        result.average = average
        result.overlay_text = text
        result.text_origin = origin
        return result
