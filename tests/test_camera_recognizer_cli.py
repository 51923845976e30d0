from __future__ import annotations

from pathlib import Path

import json
import sys

import cv2
import numpy as np
import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from camera_recognizer import build_parser, main


def _write_clip(path: Path, n_frames: int = 8, size=(320, 240)) -> Path:
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, size)
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    try:
        for i in range(n_frames):
            writer.write(np.full((size[1], size[0], 3), 60 + i * 10, dtype=np.uint8))
    finally:
        writer.release()
    return path


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.source == "0"
    assert args.enroll_target == 10
    assert args.history == 20
    assert args.min_face == 100
    assert args.scale_factor == pytest.approx(1.1)
    assert args.min_neighbors == 5
    assert args.no_window is False
    assert args.output_json is None


def test_headless_run_on_video_writes_json(tmp_path: Path):
    clip = _write_clip(tmp_path / "clip.avi")
    out = tmp_path / "results" / "frames.json"

    rc = main(
        [
            "--source",
            str(clip),
            "--no-window",
            "--max-frames",
            "5",
            "--enroll-target",
            "3",
            "--history",
            "5",
            "-j",
            str(out),
            "--log-level",
            "WARNING",
        ]
    )

    assert rc == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["source"] == str(clip)
    assert data["enroll_target"] == 3
    assert data["history_capacity"] == 5
    assert len(data["frames"]) == 5
    # flat frames contain no face: still enrolling, nothing recognized
    assert all(f["phase"] == "enrolling" and f["face"] is False for f in data["frames"])
    assert data["summary"]["frames_processed"] == 5
    assert data["summary"]["faces_detected"] == 0
    assert data["summary"]["last_average"] is None
