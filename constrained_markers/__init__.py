"""2D on-screen markers that track 3D positions, constrained to a boundary."""

from .config import ConstraintType, ContainerConfig, MarkerDefaults
from .container import MarkerContainer, MarkerState, create
from .errors import InvalidArgument, InvalidEnumValue, MarkerError, UnknownMarker
from .host import HostEnvironment
from .targets import Attachment, Body, Model, OrientedFrame
from .viewpoint import Camera, Viewpoint

__all__ = [
    "Attachment",
    "Body",
    "Camera",
    "ConstraintType",
    "ContainerConfig",
    "HostEnvironment",
    "InvalidArgument",
    "InvalidEnumValue",
    "MarkerContainer",
    "MarkerDefaults",
    "MarkerError",
    "MarkerState",
    "Model",
    "OrientedFrame",
    "UnknownMarker",
    "Viewpoint",
    "create",
]
