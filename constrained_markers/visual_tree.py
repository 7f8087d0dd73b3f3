"""In-process retained GUI tree used as the marker display surface.

Objects are positioned by a scale + offset pair per axis relative to their
parent, shifted by an anchor point, and rotated about their own center. The
tree root is a ``Screen`` with a fixed pixel size.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence

import numpy as np

from .transforms import rotate_about


@dataclass(frozen=True)
class Dim:
    scale: float = 0.0
    offset: float = 0.0


@dataclass(frozen=True)
class Dim2:
    x_scale: float = 0.0
    x_offset: float = 0.0
    y_scale: float = 0.0
    y_offset: float = 0.0

    @classmethod
    def from_offset(cls, x: float, y: float) -> "Dim2":
        return cls(0.0, float(x), 0.0, float(y))

    @classmethod
    def from_scale(cls, x: float, y: float) -> "Dim2":
        return cls(float(x), 0.0, float(y), 0.0)

    @classmethod
    def square(cls, dim: Dim) -> "Dim2":
        return cls(dim.scale, dim.offset, dim.scale, dim.offset)

    def resolve(self, parent_size: Sequence[float]) -> np.ndarray:
        return np.array([
            self.x_scale * parent_size[0] + self.x_offset,
            self.y_scale * parent_size[1] + self.y_offset,
        ])


class GuiObject:
    def __init__(
        self,
        name: str = "Frame",
        position: Optional[Dim2] = None,
        size: Optional[Dim2] = None,
        anchor_point: Sequence[float] = (0.0, 0.0),
        rotation: float = 0.0,
        visible: bool = True,
        aspect_ratio: Optional[float] = None,
        style: Optional[dict[str, Any]] = None,
    ):
        self.name = name
        self.position = position or Dim2()
        self.size = size or Dim2()
        self.anchor_point = np.asarray(anchor_point, dtype=float).reshape(2)
        self.rotation = float(rotation)
        self.visible = visible
        # Width / height kept while fitting inside ``size``
        self.aspect_ratio = aspect_ratio
        self.style = dict(style or {})
        self.parent: Optional[GuiObject] = None
        self.children: list[GuiObject] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    def clone(self) -> "GuiObject":
        """Deep copy of this object and its descendants, without a parent."""
        parent, self.parent = self.parent, None
        try:
            return copy.deepcopy(self)
        finally:
            self.parent = parent

    def descendants(self) -> Iterator["GuiObject"]:
        for child in self.children:
            yield child
            yield from child.descendants()

    def is_ancestor_of(self, other: "GuiObject") -> bool:
        node = other.parent
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def screen_size(self) -> np.ndarray:
        parent_size = self.parent.screen_size if self.parent is not None else np.zeros(2)
        size = self.size.resolve(parent_size)
        if self.aspect_ratio:
            width = min(size[0], size[1] * self.aspect_ratio)
            size = np.array([width, width / self.aspect_ratio])
        return size

    @property
    def screen_position(self) -> np.ndarray:
        """Top-left corner in screen pixels, before rotation."""
        if self.parent is None:
            origin, parent_size = np.zeros(2), np.zeros(2)
        else:
            origin, parent_size = self.parent.content_origin, self.parent.screen_size
        return origin + self.position.resolve(parent_size) - self.anchor_point * self.screen_size

    @property
    def content_origin(self) -> np.ndarray:
        """Where children are laid out from: the far edge on axes with negative size."""
        return self.screen_position + np.minimum(self.screen_size, 0.0)

    @property
    def screen_rotation(self) -> float:
        parent_rotation = self.parent.screen_rotation if self.parent is not None else 0.0
        return parent_rotation + self.rotation

    def to_screen(self, local: Sequence[float]) -> np.ndarray:
        """Map a point in this object's unrotated frame to rendered screen pixels."""
        point = self.screen_position + np.asarray(local, dtype=float)
        node: Optional[GuiObject] = self
        while node is not None:
            if node.rotation:
                point = rotate_about(point, node.screen_position + node.screen_size / 2, node.rotation)
            node = node.parent
        return point

    def corners(self) -> np.ndarray:
        """Rendered screen corners, clockwise from the top-left."""
        w, h = self.screen_size
        return np.array([self.to_screen(c) for c in ((0, 0), (w, 0), (w, h), (0, h))])


class Screen(GuiObject):
    def __init__(self, size: Sequence[float] = (1920, 1080), name: str = "Screen"):
        super().__init__(name=name, size=Dim2.from_offset(*size))

    @property
    def screen_size(self) -> np.ndarray:
        return self.size.resolve((0.0, 0.0))

    @property
    def screen_position(self) -> np.ndarray:
        return np.zeros(2)


class VisualTree:
    """Owns the screen root and performs every mutation made by containers."""

    def __init__(self, viewport_size: Sequence[float] = (1920, 1080)):
        self.root = Screen(viewport_size)

    @property
    def viewport_size(self) -> np.ndarray:
        return self.root.screen_size

    def clone(self, template: GuiObject) -> GuiObject:
        return template.clone()

    def set_parent(self, handle: GuiObject, parent: Optional[GuiObject]) -> None:
        if handle.parent is parent:
            return
        if parent is not None and (parent is handle or handle.is_ancestor_of(parent)):
            raise ValueError(f"cannot parent {handle!r} under its own descendant")
        if handle.parent is not None:
            handle.parent.children.remove(handle)
        handle.parent = parent
        if parent is not None:
            parent.children.append(handle)

    def set_position(self, handle: GuiObject, point: Sequence[float]) -> None:
        handle.position = Dim2.from_offset(point[0], point[1])

    def set_rotation(self, handle: GuiObject, degrees: float) -> None:
        handle.rotation = float(degrees)

    def set_visible(self, handle: GuiObject, visible: bool) -> None:
        handle.visible = bool(visible)

    def is_rendered(self, handle: GuiObject) -> bool:
        """True when the handle and every ancestor up to the root are visible."""
        node: Optional[GuiObject] = handle
        while node is not None:
            if node is self.root:
                return True
            if not node.visible:
                return False
            node = node.parent
        return False
