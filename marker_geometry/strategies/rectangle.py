"""Rectangle boundary: inside test and edge snapping.

The plane around the region center is split by the two diagonals into four
sectors, one per edge. Each edge is further split into the two corner zones
and the middle zone (y grows downward):

      \\ minY /       6 7 8
    minX  .  maxX     3 . 5
      / maxY \\       0 1 2

Where the snapped point lands on the edge is driven by two slide points
computed from the angle of the target around the center.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from ..geo_types import Region, SlideType

X, Y = 0, 1


def slide_points(slide_type: SlideType, size: np.ndarray, diff: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return the primary and secondary slide points, relative to the center.

    SquareSlide places the primary point at the target's own distance,
    CircleSlide at the region's half diagonal. LerpSlide returns both: the
    half-diagonal point as primary and the target-distance point as secondary.
    """
    angle = math.atan2(diff[Y], diff[X])
    direction = np.array([math.cos(angle), math.sin(angle)])
    diff_radius = float(np.linalg.norm(diff))
    size_radius = float(np.linalg.norm(size / 2))

    if slide_type is SlideType.SQUARE:
        return direction * diff_radius, np.zeros(2)
    if slide_type is SlideType.CIRCLE:
        return direction * size_radius, np.zeros(2)
    return direction * size_radius, direction * diff_radius


def snap_to_edge(
    slide_type: SlideType,
    point: np.ndarray,
    slide_a: np.ndarray,
    slide_b: np.ndarray,
    edge: float,
    static: int,
) -> np.ndarray:
    """Snap onto the edge lying at ``edge`` along axis ``static``."""
    slide = 1 - static
    snapped = np.empty(2)
    snapped[static] = edge

    if slide_type is not SlideType.LERP:
        snapped[slide] = slide_a[slide]
        return snapped

    # How far the target sits past the edge, relative to the primary point,
    # decides how much of the circular slide is applied.
    max_dist = abs(slide_a[static] - edge)
    if max_dist == 0:
        alpha = 1.0
    else:
        alpha = min(max(abs(point[static] - edge) / max_dist, 0.0), 1.0)

    lo, hi = sorted((slide_a[slide], slide_b[slide]))
    mid = slide_b[slide] + (slide_a[slide] - slide_b[slide]) * alpha
    snapped[slide] = min(max(mid, lo), hi)
    return snapped


def _snap(
    slide_type: SlideType,
    region: Region,
    point: np.ndarray,
    slide_a: np.ndarray,
    slide_b: np.ndarray,
    edge: float,
    static: int,
) -> np.ndarray:
    slide = 1 - static
    lo, hi = region.min[slide], region.max[slide]
    if slide_a[slide] < lo or slide_a[slide] > hi:
        corner = np.empty(2)
        corner[static] = edge
        corner[slide] = lo if slide_a[slide] < lo else hi
        return corner
    return snap_to_edge(slide_type, point, slide_a, slide_b, edge, static)


def evaluate_rectangle(
    region: Region,
    point,
    slide_type: SlideType = SlideType.LERP,
) -> Tuple[bool, np.ndarray]:
    """
    Return ``(inside, snapped)``; ``snapped`` lies on the region perimeter.

    A zero-width or zero-height region has no perimeter to slide along: the
    point is clipped into it instead and may land anywhere on the segment.
    """
    point = np.asarray(point, dtype=float).reshape(2)
    size = region.size
    if size[X] <= 0 or size[Y] <= 0:
        return region.contains(point), np.clip(point, region.min, region.max)

    aspect = size[Y] / size[X]
    center = region.center
    diff = point - center
    slide_a, slide_b = slide_points(slide_type, size, diff)
    slide_a = slide_a + center
    slide_b = slide_b + center

    if diff[Y] >= diff[X] * aspect:
        if diff[Y] >= -diff[X] * aspect:
            edge, static = region.max[Y], Y
            inside = point[Y] <= edge
        else:
            edge, static = region.min[X], X
            inside = edge <= point[X]
    else:
        if diff[Y] >= -diff[X] * aspect:
            edge, static = region.max[X], X
            inside = point[X] <= edge
        else:
            edge, static = region.min[Y], Y
            inside = edge <= point[Y]

    snapped = _snap(slide_type, region, point, slide_a, slide_b, edge, static)
    return bool(inside), snapped
