from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class ShapeKind(str, Enum):
    RECTANGLE = "Rectangle"
    CIRCLE = "Circle"
    ELLIPSE = "Ellipse"
    TRUNCATED_CIRCLE = "TruncatedCircle"


class SlideType(str, Enum):
    SQUARE = "SquareSlide"
    CIRCLE = "CircleSlide"
    LERP = "LerpSlide"


class RoundedAxis(str, Enum):
    X = "X"
    Y = "Y"


@dataclass(frozen=True)
class BoundaryShape:
    kind: ShapeKind = ShapeKind.RECTANGLE
    slide_type: SlideType = SlideType.LERP  # Rectangle only
    rounded_axis: RoundedAxis = RoundedAxis.X  # TruncatedCircle only

    @property
    def implemented(self) -> bool:
        return self.kind is ShapeKind.RECTANGLE


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in screen space with ``min <= max``."""

    min: np.ndarray
    max: np.ndarray

    @classmethod
    def from_corners(cls, a, b) -> "Region":
        a = np.asarray(a, dtype=float).reshape(2)
        b = np.asarray(b, dtype=float).reshape(2)
        return cls(np.minimum(a, b), np.maximum(a, b))

    @property
    def size(self) -> np.ndarray:
        return self.max - self.min

    @property
    def width(self) -> float:
        return float(self.max[0] - self.min[0])

    @property
    def height(self) -> float:
        return float(self.max[1] - self.min[1])

    @property
    def center(self) -> np.ndarray:
        return (self.min + self.max) / 2

    def contains(self, point) -> bool:
        p = np.asarray(point, dtype=float)
        return bool(np.all(p >= self.min) and np.all(p <= self.max))
