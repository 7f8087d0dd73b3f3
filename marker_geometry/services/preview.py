"""Rasterise boundary and marker placements for visual inspection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import cv2
import numpy as np


@dataclass
class PreviewItem:
    center: Sequence[float]  # absolute screen pixels
    radius: float
    color3: tuple[int, int, int] = (242, 72, 72)  # RGB
    arrow_rotation: Optional[float] = None  # degrees, 0 = +x


def _bgr(color3) -> tuple[int, int, int]:
    r, g, b = color3
    return int(b), int(g), int(r)


def draw_preview(
    viewport_size: Sequence[int],
    boundary_corners: np.ndarray,
    items: Iterable[PreviewItem],
    background: tuple[int, int, int] = (24, 24, 24),
) -> np.ndarray:
    width, height = int(viewport_size[0]), int(viewport_size[1])
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = _bgr(background)

    corners = np.round(np.asarray(boundary_corners, dtype=float)).astype(np.int32).reshape(-1, 1, 2)
    cv2.polylines(image, [corners], True, (200, 200, 200), 1, cv2.LINE_AA)

    for item in items:
        cx, cy = float(item.center[0]), float(item.center[1])
        radius = max(1, int(round(item.radius)))
        color = _bgr(item.color3)
        cv2.circle(image, (int(round(cx)), int(round(cy))), radius, color, -1, cv2.LINE_AA)
        if item.arrow_rotation is not None:
            angle = math.radians(item.arrow_rotation)
            tip = (
                int(round(cx + math.cos(angle) * radius * 2)),
                int(round(cy + math.sin(angle) * radius * 2)),
            )
            cv2.arrowedLine(image, (int(round(cx)), int(round(cy))), tip, color, 2, cv2.LINE_AA, tipLength=0.4)
    return image
