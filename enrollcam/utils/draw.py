from __future__ import annotations

from functools import lru_cache
from typing import Tuple

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from enrollcam.config import FONT_LIST


def _color_for(img: np.ndarray, color) -> Tuple[int, ...]:
    bgr = tuple(int(c) for c in color[:3])
    if img.ndim == 2:
        # single channel: use the colour's luminance so distinct colours stay distinct
        luma = int(cv2.cvtColor(np.uint8([[bgr]]), cv2.COLOR_BGR2GRAY)[0, 0])
        return (luma, luma, luma)
    if img.ndim == 3 and img.shape[2] == 4:
        # keep BGRA overlays opaque
        return bgr + (255,)
    return bgr


@lru_cache(maxsize=32)
def _load_font(font_path: str, font_size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(font_path, font_size)


@lru_cache(maxsize=16)
def _get_best_font(font_size: int) -> ImageFont.ImageFont:
    for p in FONT_LIST:
        try:
            return _load_font(p, int(font_size))
        except OSError:
            continue
    return ImageFont.load_default()


def draw_face_box(img: np.ndarray, xyxy, color: Tuple[int, int, int], thickness: int = 3) -> None:
    """Rectangle outline around a face, drawn in-place."""
    x1, y1, x2, y2 = [int(v) for v in xyxy]
    cv2.rectangle(img, (x1, y1), (x2, y2), _color_for(img, color), int(thickness))


def draw_score_text(
    img: np.ndarray,
    text: str,
    org: Tuple[int, int],
    color: Tuple[int, int, int],
    font_face: int = cv2.FONT_HERSHEY_TRIPLEX,
    font_scale: float = 1.5,
    thickness: int = 3,
) -> None:
    """Large Hershey text; `org` is the bottom-left corner as in cv2.putText."""
    cv2.putText(
        img,
        str(text),
        (int(org[0]), int(org[1])),
        int(font_face),
        float(font_scale),
        _color_for(img, color),
        int(thickness),
        cv2.LINE_AA,
    )


def draw_text(img: np.ndarray, text: str, org: Tuple[int, int], font_size: int = 18, color=(255, 255, 255)) -> None:
    """
    用 PIL 在 BGR 图像上绘制文本（抗锯齿 TrueType），失败则回退到 cv2.putText。

    Args:
        img: BGR 格式的 numpy 图像，原地修改
        text: 文本
        org: 文本左上角位置 (x, y)
        font_size: 字体大小（像素）
        color: BGR 颜色元组
    """
    if img is None or img.ndim != 3:
        return
    try:
        pil_img = Image.fromarray(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))
        draw = ImageDraw.Draw(pil_img)
        font = _get_best_font(int(font_size))
        # PIL uses RGB
        rgb_color = (int(color[2]), int(color[1]), int(color[0]))
        draw.text((int(org[0]), int(org[1])), str(text), font=font, fill=rgb_color)
        img[:] = cv2.cvtColor(np.array(pil_img), cv2.COLOR_RGB2BGR)
    except (OSError, ValueError):
        font_scale = max(0.3, int(font_size) / 24.0)
        baseline_y = int(org[1]) + int(font_size)
        cv2.putText(
            img,
            str(text),
            (int(org[0]), baseline_y),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (int(color[0]), int(color[1]), int(color[2])),
            1,
            cv2.LINE_AA,
        )


@lru_cache(maxsize=1024)
def measure_text(text: str, font_size: int = 18) -> Tuple[int, int]:
    """返回文本像素宽高，回退到 OpenCV 估算"""
    try:
        font = _get_best_font(int(font_size))
        dummy = Image.new("RGB", (10, 10))
        draw = ImageDraw.Draw(dummy)
        bbox = draw.textbbox((0, 0), str(text), font=font)
        return int(bbox[2] - bbox[0]), int(bbox[3] - bbox[1])
    except (OSError, ValueError):
        font_scale = max(0.3, float(font_size) / 24.0)
        (w, h), _ = cv2.getTextSize(str(text), cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)
        return int(w), int(h)


def draw_status_banner(
    img: np.ndarray,
    text: str,
    font_size: int = 18,
    bg_color=(0, 0, 0),
    text_color=(255, 255, 255),
) -> None:
    """Filled strip across the top of the frame with `text` on it, drawn in-place."""
    if img is None or img.ndim != 3 or not text:
        return
    _, text_h = measure_text(str(text), int(font_size))
    pad = max(4, int(font_size * 0.3))
    banner_h = min(int(img.shape[0]), text_h + pad * 2)
    cv2.rectangle(img, (0, 0), (int(img.shape[1]) - 1, banner_h), tuple(int(c) for c in bg_color), -1)
    draw_text(img, str(text), (pad, pad), font_size=int(font_size), color=text_color)
