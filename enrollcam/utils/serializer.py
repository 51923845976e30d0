from __future__ import annotations

import json

from pathlib import Path
from typing import Dict, List, Optional


def serialize_frame_result(result, frame_index: int) -> Dict:
    """Serialize a pipeline `FrameResult` into JSON-safe form (the image itself is dropped).

    bbox is written as [x1, y1, x2, y2] plus its integer center.
    """
    rec: Dict = {
        "frame": int(frame_index),
        "phase": result.phase.value,
        "face": result.region is not None,
    }

    region = result.region
    if region is not None:
        x1, y1, x2, y2 = [int(v) for v in region.xyxy]
        rec["bbox"] = [x1, y1, x2, y2]
        rec["center"] = [int((x1 + x2) / 2), int((y1 + y2) / 2)]
    else:
        rec["bbox"] = None
        rec["center"] = None

    if result.samples_left is not None:
        rec["samples_left"] = int(result.samples_left)
    if result.score is not None:
        rec["label"] = int(result.label) if result.label is not None else None
        rec["score"] = int(result.score)
        rec["average"] = int(result.average) if result.average is not None else None
        rec["overlay_text"] = str(result.overlay_text)
    return rec


def write_results_json(path: str, meta: Dict, records: List[Dict], summary: Optional[Dict] = None) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    payload = dict(meta)
    if summary is not None:
        payload["summary"] = summary
    payload["frames"] = records
    with open(out, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    return out
