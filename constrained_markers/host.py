from __future__ import annotations

from typing import Optional, Sequence

from .scheduler import FrameScheduler
from .viewpoint import Camera, Viewpoint
from .visual_tree import VisualTree


class HostEnvironment:
    """
    The collaborators a marker container runs against: the visual tree, the
    frame scheduler and the ambient current viewpoint.

    Containers configured without an explicit viewpoint read
    ``current_viewpoint`` every frame, so replacing it takes effect live.
    """

    def __init__(
        self,
        visual_tree: Optional[VisualTree] = None,
        scheduler: Optional[FrameScheduler] = None,
        current_viewpoint: Optional[Viewpoint] = None,
    ):
        self.visual_tree = visual_tree or VisualTree()
        self.scheduler = scheduler or FrameScheduler()
        self.current_viewpoint = current_viewpoint

    @classmethod
    def with_viewport(cls, viewport_size: Sequence[float] = (1920, 1080), field_of_view: float = 70.0) -> "HostEnvironment":
        return cls(
            visual_tree=VisualTree(viewport_size),
            current_viewpoint=Camera(viewport_size, field_of_view),
        )

    def step(self) -> None:
        self.scheduler.step()


_default_host: Optional[HostEnvironment] = None


def default_host() -> HostEnvironment:
    global _default_host
    if _default_host is None:
        _default_host = HostEnvironment.with_viewport()
    return _default_host
