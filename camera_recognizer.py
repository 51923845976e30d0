"""实时人脸录入 + 识别入口。

先采集固定数量的人脸样本，训练一次 LBPH 识别器，之后在预览画面上叠加 `score/average`。
"""

from __future__ import annotations

import argparse
import time

from enrollcam.face.detector import CascadeFaceDetector, DetectorConfig
from enrollcam.face.trainer import LBPHConfig, LBPHTrainer
from enrollcam.utils.log import configure_logging, get_logger
from enrollcam.utils.serializer import write_results_json
from enrollcam.video.capture import LatestFrameGrabber, is_camera_source, iter_video_frames
from enrollcam.video.display import MemoryDisplay, OpenCVWindowDisplay
from enrollcam.video.pipeline import PipelineConfig, RecognitionPipeline
from enrollcam.video.runner import run_pipeline, summarize

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="实时人脸录入与识别（级联检测 + LBPH）")
    parser.add_argument("--source", "-s", default="0", help="摄像头编号或视频文件路径（默认 0）")
    parser.add_argument("--cascade", default=None, help="级联分类器 XML 路径或 cv2.data 中的文件名")
    parser.add_argument("--enroll-target", type=int, default=10, help="训练所需人脸样本数（默认 10）")
    parser.add_argument("--history", type=int, default=20, help="分数平滑窗口大小（默认 20）")
    parser.add_argument("--min-face", type=int, default=100, help="最小人脸尺寸（像素，默认 100）")
    parser.add_argument("--scale-factor", type=float, default=1.1, help="级联检测缩放因子（默认 1.1）")
    parser.add_argument("--min-neighbors", type=int, default=5, help="级联检测最小邻居数（默认 5）")
    parser.add_argument("--lbph-radius", type=int, default=1, help="LBPH 半径")
    parser.add_argument("--lbph-neighbors", type=int, default=8, help="LBPH 采样点数")
    parser.add_argument("--lbph-grid", type=int, default=8, help="LBPH 网格数（x 与 y 相同）")
    parser.add_argument("--no-window", action="store_true", help="不显示预览窗口（无界面运行）")
    parser.add_argument("--max-frames", type=int, default=None, help="最多处理多少帧（用于调试）")
    parser.add_argument("--output-json", "-j", default=None, help="逐帧结果 JSON 输出路径")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别（默认 INFO）",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    detector = CascadeFaceDetector(
        DetectorConfig(
            cascade_path=args.cascade,
            scale_factor=float(args.scale_factor),
            min_neighbors=int(args.min_neighbors),
            min_size=(int(args.min_face), int(args.min_face)),
        )
    )
    trainer = LBPHTrainer(
        target=int(args.enroll_target),
        config=LBPHConfig(
            radius=int(args.lbph_radius),
            neighbors=int(args.lbph_neighbors),
            grid_x=int(args.lbph_grid),
            grid_y=int(args.lbph_grid),
        ),
    )

    display = MemoryDisplay() if args.no_window else OpenCVWindowDisplay()

    def on_status(text: str) -> None:
        display.show_status(text)
        logger.info(text)

    pipeline = RecognitionPipeline(
        detector,
        trainer,
        PipelineConfig(enroll_target=int(args.enroll_target), history_capacity=int(args.history)),
        on_status=on_status,
    )

    try:
        if is_camera_source(args.source):
            with LatestFrameGrabber(args.source) as grabber:
                records = run_pipeline(pipeline, grabber.frames(), display, max_frames=args.max_frames)
        else:
            records = run_pipeline(
                pipeline, iter_video_frames(args.source), display, max_frames=args.max_frames
            )
    finally:
        display.close()

    if args.output_json:
        meta = {
            "source": str(args.source),
            "enroll_target": int(args.enroll_target),
            "history_capacity": int(args.history),
            "score": "lbph_distance_lower_is_better",
        }
        out = write_results_json(args.output_json, meta, records, summarize(pipeline, records))
        logger.info(f"结果已保存至: {out}")
    return 0


if __name__ == "__main__":
    st = time.time()
    rc = main()
    ed = time.time()
    logger.info(f"总耗时: {ed - st:.2f} 秒")
    raise SystemExit(rc)
