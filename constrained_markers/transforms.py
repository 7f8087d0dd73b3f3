"""Pose and screen-space transformation utilities."""

import math

import numpy as np
import cv2
from typing import Sequence


def invert_transform(T: np.ndarray) -> np.ndarray:
    """
    Invert a 4x4 rigid transformation matrix.

    For SE(3): T^-1 = [R^T, -R^T * t; 0, 1]
    """
    T_inv = np.eye(4)
    R = T[:3, :3]
    t = T[:3, 3]

    R_T = R.T
    T_inv[:3, :3] = R_T
    T_inv[:3, 3] = -R_T @ t

    return T_inv


def look_at(eye: Sequence[float], target: Sequence[float], up: Sequence[float] = (0.0, 0.0, 1.0)) -> np.ndarray:
    """
    Build a camera-to-world pose looking from ``eye`` at ``target``.

    Camera axes follow the OpenCV convention: x right, y down, z forward.

    Raises:
        ValueError: if eye and target coincide or the view is parallel to ``up``
    """
    eye = np.asarray(eye, dtype=float).reshape(3)
    forward = np.asarray(target, dtype=float).reshape(3) - eye
    norm = np.linalg.norm(forward)
    if norm == 0:
        raise ValueError("look_at: eye and target coincide")
    forward /= norm

    right = np.cross(forward, np.asarray(up, dtype=float).reshape(3))
    norm = np.linalg.norm(right)
    if norm < 1e-12:
        raise ValueError("look_at: view direction is parallel to up")
    right /= norm
    down = np.cross(forward, right)

    T = np.eye(4)
    T[:3, 0] = right
    T[:3, 1] = down
    T[:3, 2] = forward
    T[:3, 3] = eye
    return T


def rotate_about(point: np.ndarray, origin: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate a 2D point around ``origin`` (screen space, y down)."""
    angle = math.radians(degrees)
    c, s = math.cos(angle), math.sin(angle)
    d = np.asarray(point, dtype=float) - origin
    return np.array([d[0] * c - d[1] * s, d[0] * s + d[1] * c]) + origin


def orbit_pose(pose: np.ndarray, pivot: Sequence[float], degrees: float, axis: Sequence[float] = (0.0, 0.0, 1.0)) -> np.ndarray:
    """Rotate a camera-to-world pose around ``pivot`` about a world ``axis``."""
    axis = np.asarray(axis, dtype=float).reshape(3)
    axis = axis / np.linalg.norm(axis)
    R, _ = cv2.Rodrigues(axis * math.radians(degrees))
    pivot = np.asarray(pivot, dtype=float).reshape(3)

    out = np.eye(4)
    out[:3, :3] = R @ pose[:3, :3]
    out[:3, 3] = R @ (pose[:3, 3] - pivot) + pivot
    return out
