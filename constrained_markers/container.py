from __future__ import annotations

import itertools
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from marker_geometry.geo_types import ShapeKind

from .config import ConstraintType, ContainerConfig, MarkerDefaults
from .errors import UnknownMarker, bad_arg_type, bad_field_type
from .host import HostEnvironment, default_host
from .logging_utils import container_logger
from .render import MarkerRenderer, Placement
from .scheduler import RenderPriority
from .targets import TARGET_TYPES, is_valid_target, resolve_target
from .validation import check_bool, parse_enum, parse_shape
from .viewpoint import Viewpoint
from .visual_tree import Dim2, GuiObject

# Process-wide source of scheduler tokens
_container_ids = itertools.count(1)

RENDER_PRIORITY = RenderPriority.CAMERA + 1


@dataclass(eq=False)
class MarkerState:
    """One tracked marker. Compared and hashed by identity."""

    target: Any = None
    body_gui: Optional[GuiObject] = None
    arrow_gui: Optional[GuiObject] = None
    arrow_enabled: Optional[bool] = None


_STATE_FIELDS = tuple(f.name for f in fields(MarkerState))


def _check_state_fields(values: Mapping[str, Any]) -> None:
    target = values.get("target")
    if not is_valid_target(target):
        raise bad_field_type("target", TARGET_TYPES, target)
    for name in ("body_gui", "arrow_gui"):
        value = values.get(name)
        if value is not None and not isinstance(value, GuiObject):
            raise bad_field_type(name, "GuiObject", value)
    arrow_enabled = values.get("arrow_enabled")
    if arrow_enabled is not None and not isinstance(arrow_enabled, bool):
        raise bad_field_type("arrow_enabled", "boolean or None", arrow_enabled)


def build_templates(defaults: MarkerDefaults) -> tuple[GuiObject, GuiObject]:
    body = GuiObject(
        name="Marker",
        size=Dim2.square(defaults.size),
        anchor_point=(0.5, 0.5),
        aspect_ratio=1.0,
        style={
            "color3": tuple(defaults.color3),
            "transparency": defaults.transparency,
            "icon": defaults.icon,
            "icon_rect": tuple(defaults.icon_rect),
            "icon_color3": tuple(defaults.icon_color3),
        },
    )
    arrow = GuiObject(
        name="Arrow",
        position=Dim2.from_scale(0.5, 0.5),
        size=Dim2.from_scale(1, 1),
        anchor_point=(0.5, 0.5),
        style={
            "color3": tuple(defaults.color3),
            "transparency": defaults.transparency,
        },
    )
    return body, arrow


def default_boundary(border: float = 0.05) -> GuiObject:
    return GuiObject(
        name="MarkerBoundary",
        position=Dim2.from_scale(border, border),
        size=Dim2.from_scale(1 - 2 * border, 1 - 2 * border),
        visible=False,
    )


class MarkerContainer:
    """
    Owns a boundary GUI, a set of markers and the per-frame update that
    places every marker relative to the boundary.
    """

    def __init__(
        self,
        boundary: GuiObject,
        host: HostEnvironment,
        defaults: Optional[MarkerDefaults] = None,
    ):
        self.host = host
        self.tree = host.visual_tree
        self.boundary = boundary
        self.config = ContainerConfig()
        self.id = f"ConstrainedMarkers_{next(_container_ids)}"
        self.log = container_logger(self.id)
        self.renderer = MarkerRenderer(self.tree)
        self.body_template, self.arrow_template = build_templates(defaults or MarkerDefaults())
        self.last_placements: dict[MarkerState, Optional[Placement]] = {}
        # Insertion-ordered set of registered markers, with the visuals each
        # one is currently attached through.
        self._markers: dict[MarkerState, tuple[GuiObject, GuiObject]] = {}

        if boundary.parent is None:
            self.tree.set_parent(boundary, self.tree.root)

    def boundary_gui(self) -> GuiObject:
        return self.boundary

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def set_boundary_shape(self, kind, option=None) -> None:
        shape = parse_shape(kind, option, "set_boundary_shape")
        self.config.shape = shape
        if not shape.implemented:
            self.log.warning(
                "boundary shape %s has no geometry yet; markers will not be constrained",
                shape.kind.value,
            )

    def set_enabled(self, enabled) -> None:
        check_bool(enabled, 1, "set_enabled")
        prev = self.config.enabled
        self.config.enabled = enabled
        if prev != enabled:
            self._set_update_cycle(enabled)
            self.tree.set_visible(self.boundary, enabled)
            self.log.info("container %s", "enabled" if enabled else "disabled")

    def set_constraint_type(self, kind) -> None:
        self.config.constraint_type = parse_enum(ConstraintType, kind, 1, "set_constraint_type")

    def set_arrows_enabled(self, enabled) -> None:
        self.config.arrows_enabled = check_bool(enabled, 1, "set_arrows_enabled")

    def set_viewpoint(self, viewpoint: Optional[Viewpoint]) -> None:
        if viewpoint is not None and not isinstance(viewpoint, Viewpoint):
            raise bad_arg_type(1, "set_viewpoint", "Viewpoint or None", viewpoint)
        self.config.viewpoint = viewpoint

    def create_marker(self, initial_state: Optional[Mapping[str, Any]] = None, **fields_) -> MarkerState:
        """
        Create and register a marker.

        Fields may be given as a mapping, as keyword arguments, or both
        (keywords win). Missing or None fields take defaults: no target,
        visuals cloned from the templates, no arrow override.
        """
        if initial_state is not None and not isinstance(initial_state, Mapping):
            raise bad_arg_type(1, "create_marker", "mapping or None", initial_state)
        values = dict(initial_state or {})
        values.update(fields_)
        for name in values:
            if name not in _STATE_FIELDS:
                raise bad_field_type(name, "marker state field", values[name])
        _check_state_fields(values)

        body, arrow = values.get("body_gui"), values.get("arrow_gui")
        state = MarkerState(
            target=values.get("target"),
            body_gui=body if body is not None else self.tree.clone(self.body_template),
            arrow_gui=arrow if arrow is not None else self.tree.clone(self.arrow_template),
            arrow_enabled=values.get("arrow_enabled"),
        )
        self._attach(state)
        self.log.debug("marker created (%d total)", len(self._markers))
        return state

    def markers(self) -> list[MarkerState]:
        return list(self._markers)

    def _require_known(self, states: tuple, func: str) -> None:
        for i, state in enumerate(states, 1):
            if not isinstance(state, MarkerState) or state not in self._markers:
                raise UnknownMarker(f"bad argument #{i} to {func}: value is not a known marker state")

    def remove_markers(self, *states: MarkerState) -> None:
        """Remove markers; nothing is removed if any argument is unknown."""
        self._require_known(states, "remove_markers")
        for state in dict.fromkeys(states):
            self._detach(state)
        if states:
            self.log.info("removed %d marker(s), %d left", len(set(states)), len(self._markers))

    def remove_all_markers(self) -> None:
        self.remove_markers(*self._markers)

    def update_markers(self, *states: MarkerState) -> None:
        """
        Re-validate markers and pick up visuals swapped since the last call.

        Every argument is checked before any marker is touched.
        """
        self._require_known(states, "update_markers")
        for state in states:
            _check_state_fields(vars(state))
            if state.body_gui is None or state.arrow_gui is None:
                raise bad_field_type("body_gui" if state.body_gui is None else "arrow_gui", "GuiObject", None)
        for state in dict.fromkeys(states):
            body, arrow = self._markers[state]
            if body is not state.body_gui:
                self.tree.set_parent(body, None)
            if arrow is not state.arrow_gui:
                self.tree.set_parent(arrow, None)
            self._attach(state)

    def _attach(self, state: MarkerState) -> None:
        self.tree.set_parent(state.arrow_gui, state.body_gui)
        self.tree.set_parent(state.body_gui, self.boundary)
        self._markers[state] = (state.body_gui, state.arrow_gui)

    def _detach(self, state: MarkerState) -> None:
        body, arrow = self._markers.pop(state)
        self.last_placements.pop(state, None)
        self.tree.set_parent(body, None)
        self.tree.set_parent(arrow, None)

    def _set_update_cycle(self, enabled: bool) -> None:
        scheduler = self.host.scheduler
        scheduler.unsubscribe(self.id)
        if enabled:
            scheduler.subscribe(self.id, RENDER_PRIORITY, self.step)

    def current_viewpoint(self) -> Optional[Viewpoint]:
        viewpoint = self.config.viewpoint
        if viewpoint is None:
            viewpoint = self.host.current_viewpoint
        return viewpoint

    def step(self) -> None:
        """Place every marker for the current frame."""
        viewpoint = self.current_viewpoint()
        # Markers removed during this pass are skipped; markers added during
        # it are placed from the next frame.
        snapshot = list(self._markers)
        if viewpoint is None:
            self.log.debug("no viewpoint; hiding %d marker(s)", len(snapshot))
        rendered = 0
        for state in snapshot:
            if state not in self._markers:
                continue
            position = resolve_target(state.target) if viewpoint is not None else None
            if state not in self._markers:
                continue
            if position is None:
                self.renderer.hide(state)
                self.last_placements[state] = None
                continue
            self.last_placements[state] = self.renderer.render(
                state, viewpoint, position, self.boundary, self.config
            )
            rendered += 1
        self.log.debug("frame placed=%d hidden=%d", rendered, len(snapshot) - rendered)


def create(
    boundary: Optional[GuiObject] = None,
    enabled: Optional[bool] = None,
    defaults: Any = None,
    *,
    host: Optional[HostEnvironment] = None,
) -> MarkerContainer:
    """
    Create a marker container.

    Args:
        boundary: GUI whose screen rectangle bounds the markers and which
            parents their visuals. When None, a frame inset 5% on every
            side (size 0.9 of the screen). This is symmetric, unlike a
            position 0.05 / size 0.95 frame, which reaches the right and
            bottom screen edges.
        enabled: start enabled unless False
        defaults: MarkerDefaults or mapping configuring the default templates
        host: collaborators to run against; the process default when None
    """
    if boundary is None:
        boundary = default_boundary()
    elif not isinstance(boundary, GuiObject):
        raise bad_arg_type(1, "create", "GuiObject", boundary)
    if enabled is not None and not isinstance(enabled, bool):
        raise bad_arg_type(2, "create", "boolean", enabled)
    defaults = MarkerDefaults.from_value(defaults)

    container = MarkerContainer(boundary, host or default_host(), defaults)
    container.set_boundary_shape(ShapeKind.RECTANGLE)
    container.set_constraint_type(ConstraintType.CONSTRAINED)
    container.set_arrows_enabled(True)
    container.set_viewpoint(None)
    if enabled is not False:
        container.set_enabled(True)
    return container
