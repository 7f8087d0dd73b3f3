"""Viewpoints that project world positions onto the screen."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import numpy as np

from .transforms import invert_transform, look_at

_MIN_DEPTH = 1e-9


class Viewpoint(ABC):
    @abstractmethod
    def project(self, point) -> Tuple[np.ndarray, float]:
        """Return the screen point and the camera-space depth of ``point``.

        A negative depth means the point lies behind the viewpoint.
        """
        ...

    @abstractmethod
    def current_transform(self) -> np.ndarray: ...

    @property
    def position(self) -> np.ndarray:
        return self.current_transform()[:3, 3].copy()


class Camera(Viewpoint):
    """
    Pinhole camera posed by a 4x4 camera-to-world matrix.

    Intrinsics are derived from the viewport size and the vertical field of
    view; the principal point is the viewport center. Points behind the
    camera are still projected through the pinhole, which mirrors them, and
    are reported with a negative depth.
    """

    def __init__(
        self,
        viewport_size: Sequence[float] = (1920, 1080),
        field_of_view: float = 70.0,
        pose: Optional[np.ndarray] = None,
    ):
        self.viewport_size = np.asarray(viewport_size, dtype=float).reshape(2)
        self.field_of_view = float(field_of_view)
        self.pose = np.eye(4) if pose is None else np.asarray(pose, dtype=float).reshape(4, 4)

    @classmethod
    def looking_at(cls, eye, target, up=(0.0, 0.0, 1.0), **kwargs) -> "Camera":
        return cls(pose=look_at(eye, target, up), **kwargs)

    @property
    def intrinsics(self) -> np.ndarray:
        width, height = self.viewport_size
        f = (height / 2) / math.tan(math.radians(self.field_of_view) / 2)
        return np.array([
            [f, 0.0, width / 2],
            [0.0, f, height / 2],
            [0.0, 0.0, 1.0],
        ])

    def current_transform(self) -> np.ndarray:
        return self.pose.copy()

    def project(self, point) -> Tuple[np.ndarray, float]:
        p = np.append(np.asarray(point, dtype=float).reshape(3), 1.0)
        pc = (invert_transform(self.pose) @ p)[:3]
        depth = float(pc[2])
        z = depth
        if abs(z) < _MIN_DEPTH:
            z = _MIN_DEPTH
        K = self.intrinsics
        u = K[0, 0] * pc[0] / z + K[0, 2]
        v = K[1, 1] * pc[1] / z + K[1, 2]
        return np.array([u, v]), depth
