from __future__ import annotations

from pathlib import Path

import sys

import numpy as np
import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from enrollcam.errors import PreconditionError
from enrollcam.face.collector import SampleCollector, crop_sample
from enrollcam.face.detector import FaceRegion
from enrollcam.face.trainer import ENROLLED_LABEL, LBPHConfig, LBPHTrainer, Prediction


def _noise_samples(n: int, seed: int = 0, size=(100, 100)):
    rng = np.random.default_rng(seed)
    return [rng.integers(0, 256, size=(size[1], size[0]), dtype=np.uint8) for _ in range(n)]


def test_crop_sample_resizes_region_copy():
    gray = np.zeros((240, 320), dtype=np.uint8)
    gray[50:150, 60:160] = 200
    sample = crop_sample(gray, FaceRegion(60, 50, 100, 100), (100, 100))
    assert sample.shape == (100, 100)
    assert int(sample.min()) == 200

    sample[:] = 0
    assert int(gray[60, 70]) == 200

    small = crop_sample(gray, FaceRegion(0, 0, 40, 30), (100, 100))
    assert small.shape == (100, 100)


def test_collector_counts_down_and_caps_at_target():
    collector = SampleCollector(target=3)
    assert collector.status_text() == "face frames left to train: 3"

    left = [collector.offer(s) for s in _noise_samples(3)]
    assert left == [2, 1, 0]
    assert collector.is_full
    assert collector.status_text() == "face frames left to train: 0"

    # extra offers are ignored, never appended
    assert collector.offer(_noise_samples(1, seed=9)[0]) == 0
    assert len(collector) == 3


def test_collector_copies_and_resizes_offers():
    collector = SampleCollector(target=2, sample_size=(100, 100))
    src = np.full((50, 80), 7, dtype=np.uint8)
    collector.offer(src)
    same = np.full((100, 100), 9, dtype=np.uint8)
    collector.offer(same)
    same[:] = 0

    samples = collector.take()
    assert [s.shape for s in samples] == [(100, 100), (100, 100)]
    assert int(samples[1][0, 0]) == 9


def test_collector_is_sealed_after_take():
    collector = SampleCollector(target=2)
    for s in _noise_samples(2):
        collector.offer(s)
    assert len(collector.take()) == 2
    assert collector.offer(_noise_samples(1)[0]) == 0
    assert len(collector) == 0


def test_collector_rejects_color_samples():
    collector = SampleCollector(target=2)
    with pytest.raises(ValueError):
        collector.offer(np.zeros((100, 100, 3), dtype=np.uint8))


def test_lbph_identical_sample_has_zero_distance():
    samples = _noise_samples(4, seed=1)
    model = LBPHTrainer(target=4).train(samples)

    pred = model.predict(samples[2])
    assert isinstance(pred, Prediction)
    label, score = pred
    assert label == ENROLLED_LABEL
    assert score == pytest.approx(0.0, abs=1e-6)

    flat = np.full((100, 100), 128, dtype=np.uint8)
    assert model.predict(flat).score > score


def test_lbph_config_is_used():
    trainer = LBPHTrainer(target=2, config=LBPHConfig(radius=2, neighbors=8, grid_x=4, grid_y=4))
    model = trainer.train(_noise_samples(2, seed=3))
    assert model.predict(_noise_samples(1, seed=4)[0]).label == ENROLLED_LABEL


def test_train_requires_exact_sample_count():
    trainer = LBPHTrainer(target=3)
    with pytest.raises(PreconditionError):
        trainer.train(_noise_samples(2))
    with pytest.raises(PreconditionError):
        trainer.train(_noise_samples(4))
    assert not trainer.trained


def test_train_twice_is_a_precondition_violation():
    trainer = LBPHTrainer(target=2)
    trainer.train(_noise_samples(2))
    assert trainer.trained
    with pytest.raises(PreconditionError):
        trainer.train(_noise_samples(2, seed=5))
