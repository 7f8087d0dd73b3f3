"""World objects a marker can point at, and their resolution to positions."""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Optional

import numpy as np

from .viewpoint import Viewpoint

TARGET_TYPES = "3D point, OrientedFrame, Body, Attachment, Model, Viewpoint, or None"


def _vec3(value) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3)


@dataclass(eq=False)
class OrientedFrame:
    position: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self):
        self.position = _vec3(self.position)
        self.rotation = np.asarray(self.rotation, dtype=float).reshape(3, 3)


@dataclass(eq=False)
class Body:
    position: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    name: str = "Part"

    def __post_init__(self):
        self.position = _vec3(self.position)
        self.rotation = np.asarray(self.rotation, dtype=float).reshape(3, 3)


@dataclass(eq=False)
class Attachment:
    """A point fixed to a body at ``offset`` in the body's local frame."""

    parent: Body
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.offset = _vec3(self.offset)

    @property
    def world_position(self) -> np.ndarray:
        return _vec3(self.parent.position) + np.asarray(self.parent.rotation, dtype=float) @ self.offset


@dataclass(eq=False)
class Model:
    primary_part: Optional[Body] = None
    name: str = "Model"


def _is_point(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.size == 3 and np.issubdtype(value.dtype, np.number)
    if isinstance(value, (list, tuple)):
        return len(value) == 3 and all(
            isinstance(v, Real) and not isinstance(v, bool) for v in value
        )
    return False


def is_valid_target(value: Any) -> bool:
    return value is None or _is_point(value) or isinstance(
        value, (OrientedFrame, Body, Attachment, Model, Viewpoint)
    )


def resolve_target(target: Any) -> Optional[np.ndarray]:
    """
    Return the current world position of ``target``.

    None when there is nothing to show: no target, a model without a primary
    part, a viewpoint (accepted as a target but never placed), or a value of
    an unsupported type.
    """
    if target is None:
        return None
    if isinstance(target, (OrientedFrame, Body)):
        return _vec3(target.position).copy()
    if isinstance(target, Attachment):
        return target.world_position
    if isinstance(target, Model):
        if target.primary_part is None:
            return None
        return _vec3(target.primary_part.position).copy()
    if isinstance(target, Viewpoint):
        return None
    if _is_point(target):
        return _vec3(target).copy()
    return None
