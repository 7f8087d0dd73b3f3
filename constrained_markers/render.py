"""Per-marker render transform: projection, correction and constraint."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from marker_geometry.factory import evaluate
from marker_geometry.geo_types import BoundaryShape, Region

from .config import ConstraintType, ContainerConfig
from .transforms import rotate_about
from .viewpoint import Viewpoint
from .visual_tree import GuiObject, VisualTree

if TYPE_CHECKING:
    from .container import MarkerState


@dataclass
class Placement:
    screen_point: np.ndarray  # after behind-view and rotation correction
    depth: float
    inside: Optional[bool]  # None when the boundary was not consulted
    body_visible: bool
    body_position: Optional[np.ndarray] = None  # relative to the boundary
    arrow_visible: bool = False
    arrow_rotation: Optional[float] = None


def compute_placement(
    screen_point,
    depth: float,
    boundary_position,
    boundary_size,
    boundary_rotation: float,
    shape: BoundaryShape,
    constraint_type: ConstraintType,
    arrows_enabled: bool,
) -> Placement:
    """
    Decide where a projected marker is drawn relative to its boundary.

    Args:
        screen_point: projected screen position of the target
        depth: camera-space depth; negative when behind the viewpoint
        boundary_position: boundary top-left in screen pixels (unrotated)
        boundary_size: boundary size in pixels, possibly negative
        boundary_rotation: boundary rotation in degrees
        shape: active boundary shape
        constraint_type: policy for markers outside the boundary
        arrows_enabled: effective arrow toggle for this marker

    Returns:
        Placement for the body and arrow visuals
    """
    position = np.asarray(screen_point, dtype=float).reshape(2)
    offset = np.asarray(boundary_position, dtype=float).reshape(2)
    size = np.asarray(boundary_size, dtype=float).reshape(2)

    if depth < 0:
        # Mirror through the boundary center so the marker sits on the side
        # the target actually is.
        position = size + offset - position + offset
    if boundary_rotation != 0:
        position = rotate_about(position, offset + size / 2, -boundary_rotation)

    # Children of a boundary with negative size are laid out from its far
    # edge (GuiObject.content_origin)
    neg_offset = np.where(size < 0, -size, 0.0)
    region = Region.from_corners(offset, offset + size)

    if constraint_type is ConstraintType.CONSTRAINED:
        inside, snapped = evaluate(shape, region, position)
        if inside and depth >= 0:
            snapped = position
        placement = Placement(position, depth, inside, True, snapped - offset + neg_offset)
        if arrows_enabled and not np.array_equal(snapped, position):
            diff = position - snapped
            rotation = math.degrees(math.atan2(diff[1], diff[0]))
            if depth < 0 and inside:
                rotation += 180
            placement.arrow_visible = True
            placement.arrow_rotation = rotation
        return placement

    inside = None
    if constraint_type is ConstraintType.HIDDEN:
        inside, _ = evaluate(shape, region, position)
        if not inside:
            return Placement(position, depth, inside, False)
    if depth < 0:
        return Placement(position, depth, inside, False)
    return Placement(position, depth, inside, True, position - offset + neg_offset)


class MarkerRenderer:
    def __init__(self, tree: VisualTree):
        self.tree = tree

    def render(
        self,
        state: "MarkerState",
        viewpoint: Viewpoint,
        position: np.ndarray,
        boundary: GuiObject,
        config: ContainerConfig,
    ) -> Placement:
        screen_point, depth = viewpoint.project(position)
        arrows_enabled = state.arrow_enabled
        if arrows_enabled is None:
            arrows_enabled = config.arrows_enabled
        placement = compute_placement(
            screen_point,
            depth,
            boundary.screen_position,
            boundary.screen_size,
            boundary.screen_rotation,
            config.shape,
            config.constraint_type,
            arrows_enabled,
        )
        self.apply(state, placement)
        return placement

    def apply(self, state: "MarkerState", placement: Placement) -> None:
        self.tree.set_visible(state.body_gui, placement.body_visible)
        if placement.body_position is not None:
            self.tree.set_position(state.body_gui, placement.body_position)
        self.tree.set_visible(state.arrow_gui, placement.arrow_visible)
        if placement.arrow_rotation is not None:
            self.tree.set_rotation(state.arrow_gui, placement.arrow_rotation)

    def hide(self, state: "MarkerState") -> None:
        self.tree.set_visible(state.body_gui, False)
        self.tree.set_visible(state.arrow_gui, False)
