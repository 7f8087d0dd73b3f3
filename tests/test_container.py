import gc
import logging
import weakref

import numpy as np
import pytest

from constrained_markers import (
    Body,
    Camera,
    ConstraintType,
    InvalidArgument,
    InvalidEnumValue,
    Model,
    UnknownMarker,
    create,
)
from constrained_markers.container import RENDER_PRIORITY, MarkerState
from constrained_markers.targets import resolve_target
from constrained_markers.visual_tree import Dim2, GuiObject
from marker_geometry.geo_types import ShapeKind, SlideType

IN_VIEW = (0.0, 0.0, 10.0)  # projects to the viewport center
RIGHT_OF_VIEW = (10.0, 0.0, 10.0)  # projects right of the boundary


def _offset(gui):
    return np.array([gui.position.x_offset, gui.position.y_offset])


def _snapshot(container):
    out = []
    for m in container.markers():
        body, arrow = m.body_gui, m.arrow_gui
        out.append((
            m, body, arrow, body.parent, arrow.parent,
            tuple(_offset(body)), body.visible, arrow.visible, arrow.rotation,
        ))
    return out


def test_create_applies_defaults(container, host, boundary):
    """A new container is enabled with rectangle, constrained and arrows on."""
    assert container.enabled
    assert host.scheduler.is_subscribed(container.id)
    assert container.config.shape.kind is ShapeKind.RECTANGLE
    assert container.config.shape.slide_type is SlideType.LERP
    assert container.config.constraint_type is ConstraintType.CONSTRAINED
    assert container.config.arrows_enabled is True
    assert container.config.viewpoint is None
    assert container.boundary_gui() is boundary
    assert boundary.parent is host.visual_tree.root
    assert boundary.visible
    assert container.markers() == []


def test_create_disabled(host, boundary):
    container = create(boundary, enabled=False, host=host)
    assert not container.enabled
    assert not host.scheduler.is_subscribed(container.id)
    assert not boundary.visible


def test_create_default_boundary(host):
    container = create(host=host)
    boundary = container.boundary_gui()
    assert boundary.parent is host.visual_tree.root
    assert np.allclose(boundary.screen_position, [40, 30])
    assert np.allclose(boundary.screen_size, [720, 540])
    far_corner = boundary.screen_position + boundary.screen_size
    assert np.allclose(host.visual_tree.viewport_size - far_corner, [40, 30])


def test_container_ids_are_unique(host):
    a, b = create(host=host), create(host=host)
    assert a.id != b.id
    assert a.id.startswith("ConstrainedMarkers_")


def test_create_validates_arguments(host):
    with pytest.raises(InvalidArgument, match="bad argument #1 to create"):
        create("frame", host=host)
    with pytest.raises(InvalidArgument, match="bad argument #2 to create"):
        create(None, "yes", host=host)
    with pytest.raises(InvalidArgument, match="bad argument #3 to create"):
        create(None, None, 5, host=host)
    with pytest.raises(InvalidArgument, match="bad field color3"):
        create(None, None, {"color3": (300, 0, 0)}, host=host)
    with pytest.raises(InvalidArgument, match="bad field shininess"):
        create(None, None, {"shininess": 1}, host=host)


def test_defaults_configure_templates(host):
    container = create(host=host, defaults={"color3": (0, 255, 0), "icon": "pin"})
    marker = container.create_marker()
    assert marker.body_gui.style["color3"] == (0, 255, 0)
    assert marker.body_gui.style["icon"] == "pin"
    assert marker.arrow_gui.style["color3"] == (0, 255, 0)


def test_create_marker_registers_and_parents_visuals(container, boundary):
    """Created markers appear in the list and resolve back to their target."""
    marker = container.create_marker(target=(1, 2, 3))
    assert container.markers() == [marker]
    assert np.allclose(resolve_target(marker.target), [1, 2, 3])
    assert marker.body_gui.name == "Marker"
    assert marker.arrow_gui.name == "Arrow"
    assert marker.body_gui.parent is boundary
    assert marker.arrow_gui.parent is marker.body_gui
    assert marker.body_gui is not container.body_template
    assert marker.arrow_enabled is None


def test_create_marker_accepts_mapping_and_keywords(container):
    body = GuiObject(name="Custom")
    marker = container.create_marker({"target": (0, 0, 1), "body_gui": body}, arrow_enabled=False)
    assert marker.body_gui is body
    assert marker.arrow_enabled is False
    assert marker.arrow_gui.parent is body


def test_create_marker_rejects_bad_fields(container):
    with pytest.raises(InvalidArgument, match="bad field target"):
        container.create_marker(target="north")
    with pytest.raises(InvalidArgument, match="bad field arrow_enabled"):
        container.create_marker(arrow_enabled="yes")
    with pytest.raises(InvalidArgument, match="bad field body_gui"):
        container.create_marker(body_gui="frame")
    with pytest.raises(InvalidArgument, match="bad field colour"):
        container.create_marker(colour=(1, 2, 3))
    with pytest.raises(InvalidArgument, match="bad argument #1 to create_marker"):
        container.create_marker([("target", (1, 2, 3))])
    assert container.markers() == []


def test_markers_keep_insertion_order(container):
    created = [container.create_marker(target=(i, 0, 1)) for i in range(5)]
    assert container.markers() == created
    assert container.markers() is not container.markers()


def test_remove_markers_detaches_visuals(container):
    a = container.create_marker()
    b = container.create_marker()
    container.remove_markers(a)
    assert container.markers() == [b]
    assert a.body_gui.parent is None
    assert a.arrow_gui.parent is None


def test_remove_unknown_marker_changes_nothing(container, host):
    """An unknown argument aborts the whole call."""
    kept = container.create_marker()
    other = create(host=host).create_marker()
    before = _snapshot(container)

    with pytest.raises(UnknownMarker, match="bad argument #2 to remove_markers"):
        container.remove_markers(kept, other)
    with pytest.raises(UnknownMarker):
        container.remove_markers(MarkerState())
    with pytest.raises(UnknownMarker):
        container.remove_markers("marker")

    assert _snapshot(container) == before


def test_remove_markers_tolerates_duplicates(container):
    m = container.create_marker()
    container.remove_markers(m, m)
    assert container.markers() == []
    container.remove_markers()


def test_remove_all_markers(container, boundary):
    for _ in range(3):
        container.create_marker()
    container.remove_all_markers()
    assert container.markers() == []
    assert boundary.children == []


def test_update_markers_is_idempotent(container, host):
    markers = [container.create_marker(target=t) for t in (IN_VIEW, RIGHT_OF_VIEW)]
    host.step()
    before = _snapshot(container)
    container.update_markers(*markers)
    container.update_markers(*markers)
    assert _snapshot(container) == before


def test_update_markers_picks_up_swapped_visuals(container, boundary):
    marker = container.create_marker()
    old_body, old_arrow = marker.body_gui, marker.arrow_gui
    marker.body_gui = GuiObject(name="NewBody")
    marker.arrow_gui = GuiObject(name="NewArrow")

    container.update_markers(marker)

    assert old_body.parent is None
    assert old_arrow.parent is None
    assert marker.body_gui.parent is boundary
    assert marker.arrow_gui.parent is marker.body_gui


def test_update_markers_validates_everything_first(container, boundary):
    good = container.create_marker()
    bad = container.create_marker()
    old_body = good.body_gui
    good.body_gui = GuiObject(name="NewBody")
    bad.arrow_enabled = "no"

    with pytest.raises(InvalidArgument, match="bad field arrow_enabled"):
        container.update_markers(good, bad)
    assert old_body.parent is boundary
    assert good.body_gui.parent is None

    bad.arrow_enabled = None
    bad.body_gui = None
    with pytest.raises(InvalidArgument, match="bad field body_gui"):
        container.update_markers(bad)

    with pytest.raises(UnknownMarker):
        container.update_markers(MarkerState())


def test_step_places_marker_inside_boundary(container, host):
    marker = container.create_marker(target=IN_VIEW)
    host.step()
    assert marker.body_gui.visible
    assert np.allclose(_offset(marker.body_gui), [300, 200])
    assert np.allclose(marker.body_gui.to_screen(marker.body_gui.screen_size / 2), [400, 300])
    assert not marker.arrow_gui.visible
    placement = container.last_placements[marker]
    assert placement.inside is True
    assert placement.depth == pytest.approx(10)


def test_step_snaps_marker_outside_boundary(container, host):
    marker = container.create_marker(target=RIGHT_OF_VIEW)
    host.step()
    assert marker.body_gui.visible
    assert np.allclose(_offset(marker.body_gui), [600, 200])
    assert marker.arrow_gui.visible
    assert marker.arrow_gui.rotation == pytest.approx(0.0)


def test_arrow_override_beats_global_toggle(container, host):
    container.set_arrows_enabled(False)
    plain = container.create_marker(target=RIGHT_OF_VIEW)
    forced = container.create_marker(target=RIGHT_OF_VIEW, arrow_enabled=True)
    host.step()
    assert not plain.arrow_gui.visible
    assert forced.arrow_gui.visible

    container.set_arrows_enabled(True)
    forced.arrow_enabled = False
    container.update_markers(forced)
    host.step()
    assert plain.arrow_gui.visible
    assert not forced.arrow_gui.visible


def test_hidden_constraint_hides_outside_markers(container, host):
    container.set_constraint_type("Hidden")
    inside = container.create_marker(target=IN_VIEW)
    outside = container.create_marker(target=RIGHT_OF_VIEW)
    host.step()
    assert inside.body_gui.visible
    assert not outside.body_gui.visible


def test_marker_without_target_is_hidden(container, host):
    marker = container.create_marker()
    host.step()
    assert not marker.body_gui.visible
    assert not marker.arrow_gui.visible
    assert container.last_placements[marker] is None


def test_model_without_primary_part_hides_until_set(container, host):
    model = Model()
    marker = container.create_marker(target=model)
    host.step()
    assert not marker.body_gui.visible
    model.primary_part = Body(IN_VIEW)
    host.step()
    assert marker.body_gui.visible


def test_camera_target_is_hidden(container, host):
    marker = container.create_marker(target=Camera((800, 600), 70, pose=np.eye(4)))
    host.step()
    assert not marker.body_gui.visible
    assert not marker.arrow_gui.visible
    assert container.last_placements[marker] is None


def _anchor(gui):
    return gui.screen_position + gui.anchor_point * gui.screen_size


@pytest.mark.parametrize("position, size", [
    ((100, 100), (400, 300)),
    ((500, 400), (-400, -300)),
])
def test_boundary_size_sign_does_not_move_markers(host, position, size):
    """The same screen rectangle authored with negative size renders markers identically."""
    boundary = GuiObject(position=Dim2.from_offset(*position), size=Dim2.from_offset(*size))
    container = create(boundary, host=host)
    inside = container.create_marker(target=IN_VIEW)
    outside = container.create_marker(target=RIGHT_OF_VIEW)
    host.step()

    assert np.allclose(_anchor(inside.body_gui), [400, 300])
    snapped = _anchor(outside.body_gui)
    assert snapped[0] == pytest.approx(500)
    assert 100 <= snapped[1] <= 400


def test_no_viewpoint_hides_markers(container, host):
    marker = container.create_marker(target=IN_VIEW)
    host.current_viewpoint = None
    host.step()
    assert not marker.body_gui.visible
    assert container.last_placements[marker] is None


def test_ambient_viewpoint_is_read_every_frame(container, host):
    """Replacing the host viewpoint takes effect on the next frame."""
    marker = container.create_marker(target=IN_VIEW)
    host.step()
    assert container.last_placements[marker].depth > 0

    pose = np.eye(4)
    pose[2, 3] = 20.0
    host.current_viewpoint = Camera((800, 600), 70, pose=pose)
    host.step()
    assert container.last_placements[marker].depth < 0


def test_explicit_viewpoint_overrides_host(container, host):
    pose = np.eye(4)
    pose[2, 3] = 20.0
    container.set_viewpoint(Camera((800, 600), 70, pose=pose))
    marker = container.create_marker(target=IN_VIEW)
    host.step()
    assert container.last_placements[marker].depth < 0

    container.set_viewpoint(None)
    host.step()
    assert container.last_placements[marker].depth > 0

    with pytest.raises(InvalidArgument, match="bad argument #1 to set_viewpoint"):
        container.set_viewpoint("camera")


def test_disable_stops_updates_and_hides_boundary(container, host, boundary):
    marker = container.create_marker(target=IN_VIEW)
    container.set_enabled(False)
    assert not host.scheduler.is_subscribed(container.id)
    assert not boundary.visible
    host.step()
    assert marker not in container.last_placements

    container.set_enabled(True)
    container.set_enabled(True)
    assert host.scheduler.is_subscribed(container.id)
    assert boundary.visible
    host.step()
    assert marker in container.last_placements

    with pytest.raises(InvalidArgument):
        container.set_enabled(1)


def test_update_runs_after_camera_priority(container, host):
    calls = []
    host.scheduler.subscribe("camera", RENDER_PRIORITY - 1, lambda: calls.append(len(container.last_placements)))
    container.create_marker(target=IN_VIEW)
    host.step()
    assert calls == [0]
    assert len(container.last_placements) == 1


def test_disabled_container_can_be_collected(host):
    """Only the scheduler subscription keeps an unreferenced container alive."""
    container = create(host=host)
    container.create_marker(target=IN_VIEW)
    ref = weakref.ref(container)
    container.set_enabled(False)
    del container
    gc.collect()
    assert ref() is None


class _RemovesOnRead:
    """Primary part whose position lookup removes another marker."""

    def __init__(self, container):
        self.container = container
        self.victim = None

    @property
    def position(self):
        if self.victim in self.container.markers():
            self.container.remove_markers(self.victim)
        return np.array(IN_VIEW)


def test_marker_removed_during_step_is_skipped(container, host):
    trap = _RemovesOnRead(container)
    first = container.create_marker(target=Model(primary_part=trap))
    victim = container.create_marker(target=IN_VIEW)
    trap.victim = victim

    host.step()

    assert container.markers() == [first]
    assert victim not in container.last_placements
    assert victim.body_gui.parent is None
    assert first.body_gui.visible


def test_set_constraint_type_validation(container):
    container.set_constraint_type(ConstraintType.UNCONSTRAINED)
    with pytest.raises(InvalidEnumValue, match="unknown constraint type 'Sideways'"):
        container.set_constraint_type("Sideways")
    with pytest.raises(InvalidArgument):
        container.set_constraint_type(5)
    assert container.config.constraint_type is ConstraintType.UNCONSTRAINED


def test_set_boundary_shape_validation(container):
    container.set_boundary_shape("Rectangle", "SquareSlide")
    with pytest.raises(InvalidEnumValue):
        container.set_boundary_shape("Hexagon")
    with pytest.raises(InvalidEnumValue):
        container.set_boundary_shape("Rectangle", "Wobble")
    with pytest.raises(InvalidArgument):
        container.set_boundary_shape("Circle", "X")
    assert container.config.shape.slide_type is SlideType.SQUARE


def test_unimplemented_shape_logs_warning(container, host, caplog):
    marker = container.create_marker(target=RIGHT_OF_VIEW)
    with caplog.at_level(logging.WARNING, logger="constrained_markers"):
        container.set_boundary_shape("Circle")
    assert any("no geometry" in r.getMessage() for r in caplog.records)

    host.step()
    assert marker.body_gui.visible
    assert not marker.arrow_gui.visible
