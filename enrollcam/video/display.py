"""Display surfaces: where annotated frames and status text end up.

Hand-off is fire-and-forget; a surface never reports back to the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

import cv2
import numpy as np

from enrollcam.utils.draw import draw_status_banner
from enrollcam.utils.log import get_logger

logger = get_logger(__name__)


class DisplaySurface(ABC):
    @abstractmethod
    def show_frame(self, frame: np.ndarray) -> None:
        pass

    @abstractmethod
    def show_status(self, text: str) -> None:
        pass

    def should_quit(self) -> bool:
        return False

    def close(self) -> None:
        pass


class MemoryDisplay(DisplaySurface):
    """Keeps the last frame and every status string (headless runs and tests)."""

    def __init__(self):
        self.last_frame: Optional[np.ndarray] = None
        self.frame_count = 0
        self.statuses: List[str] = []

    def show_frame(self, frame: np.ndarray) -> None:
        self.last_frame = frame
        self.frame_count += 1

    def show_status(self, text: str) -> None:
        self.statuses.append(str(text))

    @property
    def last_status(self) -> Optional[str]:
        return self.statuses[-1] if self.statuses else None


class OpenCVWindowDisplay(DisplaySurface):
    """`cv2.imshow` preview with the latest status text as a banner.

    Must be driven from the main thread on most platforms (HighGUI restriction).
    """

    QUIT_KEYS = (ord("q"), 27)

    def __init__(self, window_name: str = "enrollcam", font_size: int = 18):
        self.window_name = str(window_name)
        self.font_size = int(font_size)
        self._status = ""
        self._quit = False
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)

    def show_status(self, text: str) -> None:
        self._status = str(text)

    def show_frame(self, frame: np.ndarray) -> None:
        view = frame
        if self._status and frame.ndim == 3 and frame.shape[2] == 3:
            view = frame.copy()
            draw_status_banner(view, self._status, font_size=self.font_size)
        cv2.imshow(self.window_name, view)
        key = cv2.waitKey(1) & 0xFF
        if key in self.QUIT_KEYS:
            logger.info("收到退出按键")
            self._quit = True

    def should_quit(self) -> bool:
        return self._quit

    def close(self) -> None:
        cv2.destroyWindow(self.window_name)
