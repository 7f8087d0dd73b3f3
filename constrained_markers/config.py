from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field, fields
from enum import Enum
from numbers import Real
from pathlib import Path
from typing import Any, Mapping, Optional

from marker_geometry.geo_types import BoundaryShape

from .errors import bad_arg_type, bad_field_type
from .viewpoint import Viewpoint
from .visual_tree import Dim


class ConstraintType(str, Enum):
    CONSTRAINED = "Constrained"  # snapped to the boundary edge
    HIDDEN = "Hidden"  # hidden outside the boundary
    UNCONSTRAINED = "Unconstrained"  # boundary ignored


@dataclass
class ContainerConfig:
    """Live state of one marker container; changes apply on the next frame."""

    shape: BoundaryShape = field(default_factory=BoundaryShape)
    constraint_type: ConstraintType = ConstraintType.CONSTRAINED
    arrows_enabled: bool = True
    viewpoint: Optional[Viewpoint] = None  # None follows the host's current viewpoint
    enabled: bool = False


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_color(value: Any) -> bool:
    return (
        isinstance(value, (tuple, list))
        and len(value) == 3
        and all(_is_number(c) and 0 <= c <= 255 for c in value)
    )


@dataclass
class MarkerDefaults:
    """Appearance copied onto the default marker templates."""

    size: Dim = Dim(0.05, 0)  # scale applies to the boundary's shortest axis
    color3: tuple = (242, 72, 72)
    transparency: float = 0.0
    icon: str = ""
    icon_rect: tuple = (0, 0, 0, 0)
    icon_color3: tuple = (255, 255, 255)

    def validate(self) -> "MarkerDefaults":
        if not isinstance(self.size, Dim):
            raise bad_field_type("size", "Dim", self.size)
        if not _is_color(self.color3):
            raise bad_field_type("color3", "RGB triple", self.color3)
        if not _is_number(self.transparency):
            raise bad_field_type("transparency", "number", self.transparency)
        if not isinstance(self.icon, str):
            raise bad_field_type("icon", "string", self.icon)
        if not (
            isinstance(self.icon_rect, (tuple, list))
            and len(self.icon_rect) == 4
            and all(_is_number(v) for v in self.icon_rect)
        ):
            raise bad_field_type("icon_rect", "4 numbers", self.icon_rect)
        if not _is_color(self.icon_color3):
            raise bad_field_type("icon_color3", "RGB triple", self.icon_color3)
        return self

    @classmethod
    def from_value(cls, value: Any) -> "MarkerDefaults":
        """Accept None, a MarkerDefaults, or a mapping of its field names."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value.validate()
        if not isinstance(value, Mapping):
            raise bad_arg_type(3, "create", "MarkerDefaults, mapping or None", value)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(value) - known)
        if unknown:
            raise bad_field_type(unknown[0], "known defaults field", value[unknown[0]])
        return cls(**{k: v for k, v in value.items() if v is not None}).validate()

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ViewportSettings:
    width: int = 1280
    height: int = 720
    field_of_view: float = 70.0  # vertical, degrees


@dataclass
class CameraSettings:
    eye: list[float] = field(default_factory=lambda: [0.0, -10.0, 2.0])
    look_at: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    up: list[float] = field(default_factory=lambda: [0.0, 0.0, 1.0])


@dataclass
class BoundarySettings:
    # Pixels; None keeps the default inset boundary
    position: Optional[list[float]] = None
    size: Optional[list[float]] = None
    rotation: float = 0.0


@dataclass
class ContainerSettings:
    boundary_shape: str = "Rectangle"
    shape_option: Optional[str] = None
    constraint_type: str = "Constrained"
    arrows_enabled: bool = True


@dataclass
class MarkerSettings:
    target: list[float]
    arrow_enabled: Optional[bool] = None


@dataclass
class SceneConfig:
    session_name: str = "preview"
    session_root: str = "data/sessions"
    frames: int = 120
    orbit_deg_per_frame: float = 3.0
    orbit_pivot: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    save_preview: bool = True
    save_trace: bool = True
    viewport: ViewportSettings = field(default_factory=ViewportSettings)
    camera: CameraSettings = field(default_factory=CameraSettings)
    boundary: BoundarySettings = field(default_factory=BoundarySettings)
    container: ContainerSettings = field(default_factory=ContainerSettings)
    markers: list[MarkerSettings] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "SceneConfig":
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        return self


def _float_list(value: Any, length: int, name: str) -> list[float]:
    if not isinstance(value, (list, tuple)) or len(value) != length:
        raise ValueError(f"{name} must be a list of {length} numbers")
    return [float(v) for v in value]


def _load_yaml(path: Path) -> dict[str, Any]:
    import yaml

    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def load_config(path: str | Path) -> SceneConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = SceneConfig()
    cfg.session_name = str(raw.get("session_name", cfg.session_name))
    cfg.session_root = str(raw.get("session_root", cfg.session_root))
    cfg.frames = int(raw.get("frames", cfg.frames))
    cfg.orbit_deg_per_frame = float(raw.get("orbit_deg_per_frame", cfg.orbit_deg_per_frame))
    cfg.orbit_pivot = _float_list(raw.get("orbit_pivot", cfg.orbit_pivot), 3, "orbit_pivot")
    cfg.save_preview = bool(raw.get("save_preview", cfg.save_preview))
    cfg.save_trace = bool(raw.get("save_trace", cfg.save_trace))

    vp_raw = raw.get("viewport")
    if isinstance(vp_raw, dict):
        vp = cfg.viewport
        vp.width = int(vp_raw.get("width", vp.width))
        vp.height = int(vp_raw.get("height", vp.height))
        vp.field_of_view = float(vp_raw.get("field_of_view", vp.field_of_view))

    cam_raw = raw.get("camera")
    if isinstance(cam_raw, dict):
        cam = cfg.camera
        cam.eye = _float_list(cam_raw.get("eye", cam.eye), 3, "camera.eye")
        cam.look_at = _float_list(cam_raw.get("look_at", cam.look_at), 3, "camera.look_at")
        cam.up = _float_list(cam_raw.get("up", cam.up), 3, "camera.up")

    b_raw = raw.get("boundary")
    if isinstance(b_raw, dict):
        b = cfg.boundary
        if b_raw.get("position") is not None:
            b.position = _float_list(b_raw["position"], 2, "boundary.position")
        if b_raw.get("size") is not None:
            b.size = _float_list(b_raw["size"], 2, "boundary.size")
        b.rotation = float(b_raw.get("rotation", b.rotation))

    c_raw = raw.get("container")
    if isinstance(c_raw, dict):
        c = cfg.container
        c.boundary_shape = str(c_raw.get("boundary_shape", c.boundary_shape))
        option = c_raw.get("shape_option", c.shape_option)
        c.shape_option = None if option is None else str(option)
        c.constraint_type = str(c_raw.get("constraint_type", c.constraint_type))
        c.arrows_enabled = bool(c_raw.get("arrows_enabled", c.arrows_enabled))

    markers_raw = raw.get("markers", [])
    if not isinstance(markers_raw, list):
        raise ValueError("markers must be a list")
    for i, m_raw in enumerate(markers_raw):
        if not isinstance(m_raw, dict) or "target" not in m_raw:
            raise ValueError(f"markers[{i}] must be a mapping with a target")
        arrow = m_raw.get("arrow_enabled")
        cfg.markers.append(
            MarkerSettings(
                target=_float_list(m_raw["target"], 3, f"markers[{i}].target"),
                arrow_enabled=None if arrow is None else bool(arrow),
            )
        )

    return cfg
