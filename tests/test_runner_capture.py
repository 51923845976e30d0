from __future__ import annotations

from pathlib import Path

import json
import sys
import time

import numpy as np
import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from enrollcam.face.detector import FaceDetector, FaceRegion
from enrollcam.face.trainer import LBPHTrainer
from enrollcam.utils.draw import draw_status_banner
from enrollcam.utils.serializer import serialize_frame_result, write_results_json
from enrollcam.video.capture import LatestFrameGrabber, is_camera_source
from enrollcam.video.display import MemoryDisplay
from enrollcam.video.pipeline import FrameResult, PipelineConfig, PipelinePhase, RecognitionPipeline
from enrollcam.video.runner import run_pipeline, summarize


class _DummyDetector(FaceDetector):
    def detect(self, gray):
        return [FaceRegion(20, 20, 100, 100)]


class _FakeCapture:
    """Mimics cv2.VideoCapture.read() over a fixed list of frames."""

    def __init__(self, frames):
        self._frames = list(frames)
        self.released = False

    def read(self):
        if not self._frames:
            return False, None
        return True, self._frames.pop(0)

    def release(self):
        self.released = True


class _QuitAfter(MemoryDisplay):
    def __init__(self, n):
        super().__init__()
        self.n = n

    def should_quit(self):
        return self.frame_count >= self.n


def _frames(n: int, seed: int = 0):
    rng = np.random.default_rng(seed)
    return [rng.integers(0, 256, size=(160, 200, 3), dtype=np.uint8) for _ in range(n)]


def _pipeline(display: MemoryDisplay, target: int = 2) -> RecognitionPipeline:
    return RecognitionPipeline(
        _DummyDetector(),
        LBPHTrainer(target=target),
        PipelineConfig(enroll_target=target, history_capacity=3),
        on_status=display.show_status,
    )


def test_run_pipeline_records_and_display(tmp_path: Path):
    display = MemoryDisplay()
    pipeline = _pipeline(display)

    records = run_pipeline(pipeline, _frames(6), display)

    assert len(records) == 6
    assert display.frame_count == 6
    assert display.last_status == "recognition..."
    assert [r["phase"] for r in records] == ["enrolling", "recognizing"] + ["recognizing"] * 4
    assert records[0]["samples_left"] == 1
    assert "score" not in records[1]
    assert all("score" in r for r in records[2:])
    assert records[2]["bbox"] == [20, 20, 120, 120]
    assert len(pipeline.history) == 3

    summary = summarize(pipeline, records)
    assert summary["frames_processed"] == 6
    assert summary["recognized_frames"] == 4
    assert summary["last_average"] == pipeline.history.average()

    out = write_results_json(str(tmp_path / "out" / "results.json"), {"source": "test"}, records, summary)
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["source"] == "test"
    assert data["summary"]["final_phase"] == "recognizing"
    assert len(data["frames"]) == 6


def test_run_pipeline_honours_max_frames_and_quit():
    display = MemoryDisplay()
    records = run_pipeline(_pipeline(display), _frames(5), display, max_frames=2)
    assert len(records) == 2

    display = _QuitAfter(3)
    records = run_pipeline(_pipeline(display), _frames(5), display)
    assert len(records) == 3


def test_serialize_frame_without_face():
    result = FrameResult(frame=np.zeros((4, 4, 3), dtype=np.uint8), phase=PipelinePhase.ENROLLING)
    rec = serialize_frame_result(result, 7)
    assert rec == {"frame": 7, "phase": "enrolling", "face": False, "bbox": None, "center": None}


def test_grabber_keeps_only_latest_frame():
    frames = [np.full((4, 4, 3), i, dtype=np.uint8) for i in range(5)]
    cap = _FakeCapture(frames)
    grabber = LatestFrameGrabber(cap).start()

    deadline = time.monotonic() + 5.0
    while not grabber.ended and time.monotonic() < deadline:
        time.sleep(0.01)
    assert grabber.ended

    latest = grabber.read(timeout=0.5)
    assert latest is not None
    assert int(latest[0, 0, 0]) == 4
    assert grabber.grabbed == 5
    assert grabber.dropped == 4
    assert grabber.read(timeout=0.1) is None

    grabber.stop()
    assert cap.released


def test_grabber_frames_iterator_ends_with_stream():
    cap = _FakeCapture([np.zeros((4, 4, 3), dtype=np.uint8)])
    with LatestFrameGrabber(cap) as grabber:
        got = list(grabber.frames(timeout=2.0))
    assert len(got) == 1


@pytest.mark.parametrize("source,expected", [("0", True), (1, True), (" 2 ", True), ("clip.mp4", False)])
def test_is_camera_source(source, expected):
    assert is_camera_source(source) is expected


def test_status_banner_draws_on_frame():
    img = np.full((120, 320, 3), 200, dtype=np.uint8)
    draw_status_banner(img, "face frames left to train: 3")
    assert int(img[1, 1].sum()) == 0
    assert int(img[-1, -1].sum()) == 600
