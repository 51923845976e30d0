"""Frame sources for the pipeline.

Live cameras go through `LatestFrameGrabber`, which keeps only the newest frame
so a slow analysis step never builds a backlog. Video files are read
sequentially with `iter_video_frames`.
"""

from __future__ import annotations

import threading
import time

from typing import Iterator, Optional, Union

import cv2
import numpy as np

from enrollcam.utils.log import get_logger

logger = get_logger(__name__)


def open_source(source: Union[str, int]) -> cv2.VideoCapture:
    """`"0"`/`0` -> camera index, anything else -> file path or stream URL."""
    if isinstance(source, str) and source.strip().isdigit():
        source = int(source.strip())
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        cap.release()
        raise RuntimeError(f"无法打开视频源: {source}")
    return cap


def is_camera_source(source: Union[str, int]) -> bool:
    return isinstance(source, int) or (isinstance(source, str) and source.strip().isdigit())


def iter_video_frames(source: Union[str, int], max_frames: Optional[int] = None) -> Iterator[np.ndarray]:
    """Yield frames in order until the stream ends (or `max_frames` is reached)."""
    cap = open_source(source)
    count = 0
    try:
        while max_frames is None or count < int(max_frames):
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            count += 1
            yield frame
    finally:
        cap.release()
        logger.debug(f"视频源已关闭: {source}, 读取 {count} 帧")


class LatestFrameGrabber:
    """Background reader that keeps a single slot holding the newest frame.

    Frames the consumer has not picked up before the next one arrives are
    discarded and counted in `dropped`.

    Example:
        >>> with LatestFrameGrabber(0) as grabber:
        ...     frame = grabber.read(timeout=1.0)
    """

    def __init__(self, source: Union[str, int, cv2.VideoCapture] = 0):
        if isinstance(source, (str, int)):
            self._cap = open_source(source)
        else:
            self._cap = source
        self._cond = threading.Condition()
        self._frame: Optional[np.ndarray] = None
        self._seq = 0
        self._consumed_seq = 0
        self._ended = False
        self._running = False
        self._thread: Optional[threading.Thread] = None

        self.grabbed = 0
        self.dropped = 0

    @property
    def ended(self) -> bool:
        with self._cond:
            return self._ended

    def start(self) -> "LatestFrameGrabber":
        if self._running:
            return self
        self._running = True
        self._thread = threading.Thread(target=self._loop, name="FrameGrabber", daemon=True)
        self._thread.start()
        return self

    def _loop(self) -> None:
        while self._running:
            ok, frame = self._cap.read()
            if not ok or frame is None:
                break
            with self._cond:
                if self._seq > self._consumed_seq:
                    self.dropped += 1
                self._frame = frame
                self._seq += 1
                self.grabbed += 1
                self._cond.notify_all()
        with self._cond:
            self._ended = True
            self._cond.notify_all()

    def read(self, timeout: Optional[float] = None) -> Optional[np.ndarray]:
        """Newest frame not yet returned; None on timeout or once the stream has ended."""
        deadline = None if timeout is None else time.monotonic() + float(timeout)
        with self._cond:
            while self._seq == self._consumed_seq:
                if self._ended:
                    return None
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None
                self._cond.wait(remaining)
            self._consumed_seq = self._seq
            return self._frame

    def frames(self, timeout: float = 2.0) -> Iterator[np.ndarray]:
        """Iterate newest frames until the stream ends or no frame arrives within `timeout`."""
        while True:
            frame = self.read(timeout=timeout)
            if frame is None:
                return
            yield frame

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._cap.release()
        if self.dropped:
            logger.info(f"采集线程已停止: 共 {self.grabbed} 帧, 丢弃 {self.dropped} 帧")

    def __enter__(self) -> "LatestFrameGrabber":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
