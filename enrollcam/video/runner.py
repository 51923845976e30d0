from __future__ import annotations

import time

from typing import Dict, Iterable, List, Optional

import numpy as np

from enrollcam.utils.log import get_logger
from enrollcam.utils.serializer import serialize_frame_result
from enrollcam.video.display import DisplaySurface
from enrollcam.video.pipeline import RecognitionPipeline

logger = get_logger(__name__)


def run_pipeline(
    pipeline: RecognitionPipeline,
    frames: Iterable[np.ndarray],
    display: Optional[DisplaySurface] = None,
    max_frames: Optional[int] = None,
) -> List[Dict]:
    """Drive `pipeline` serially over `frames`, handing every result to `display`.

    Returns one serialized record per processed frame.
    """
    records: List[Dict] = []
    st = time.time()

    for idx, frame in enumerate(frames):
        if max_frames is not None and idx >= int(max_frames):
            break
        result = pipeline.process(frame)
        records.append(serialize_frame_result(result, idx))
        if display is not None:
            display.show_frame(result.frame)
            if display.should_quit():
                break

    elapsed = time.time() - st
    fps = len(records) / elapsed if elapsed > 0 else 0.0
    logger.info(
        f"处理完成: {len(records)} 帧, 检测到人脸 {pipeline.faces_detected} 帧, "
        f"阶段={pipeline.phase.value}, {fps:.1f} fps"
    )
    return records


def summarize(pipeline: RecognitionPipeline, records: List[Dict]) -> Dict:
    scores = [r["score"] for r in records if r.get("score") is not None]
    return {
        "frames_processed": int(pipeline.frames_processed),
        "faces_detected": int(pipeline.faces_detected),
        "final_phase": pipeline.phase.value,
        "recognized_frames": len(scores),
        "last_average": pipeline.history.average() if len(pipeline.history) else None,
    }
