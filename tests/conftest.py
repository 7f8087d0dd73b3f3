import numpy as np
import pytest

from constrained_markers.container import create
from constrained_markers.host import HostEnvironment
from constrained_markers.visual_tree import Dim2, GuiObject
from marker_geometry.geo_types import Region

VIEWPORT = (800, 600)


@pytest.fixture
def square():
    """100x100 region with its top-left corner at the origin."""
    return Region(np.array([0.0, 0.0]), np.array([100.0, 100.0]))


@pytest.fixture
def host():
    """Host with an identity camera: looks down +z, principal point (400, 300)."""
    return HostEnvironment.with_viewport(VIEWPORT, 70.0)


@pytest.fixture
def boundary():
    """Screen rectangle (100, 100)-(700, 500), centered on the viewport."""
    return GuiObject(
        name="MarkerBoundary",
        position=Dim2.from_offset(100, 100),
        size=Dim2.from_offset(600, 400),
        visible=False,
    )


@pytest.fixture
def container(host, boundary):
    return create(boundary, host=host)
