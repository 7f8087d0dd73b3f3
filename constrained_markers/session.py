from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from marker_geometry.services.preview import PreviewItem, draw_preview
from marker_geometry.services.storage import SessionStorage

from .config import SceneConfig
from .container import MarkerContainer, MarkerState, create
from .host import HostEnvironment
from .logging_utils import LOGGER_ROOT, add_file_handler, setup_logger
from .output import CsvOutput, NullOutput, OutputSink
from .transforms import look_at, orbit_pose
from .visual_tree import Dim2, GuiObject


@dataclass
class SessionSummary:
    session_path: str
    frames_processed: int
    trace_path: Optional[str]
    log_path: str
    previews_saved: int
    avg_fps: float


def preview_items(container: MarkerContainer) -> list[PreviewItem]:
    tree = container.tree
    items = []
    for state in container.markers():
        body, arrow = state.body_gui, state.arrow_gui
        if not tree.is_rendered(body):
            continue
        size = body.screen_size
        items.append(
            PreviewItem(
                center=body.to_screen(size / 2),
                radius=float(np.min(np.abs(size))) / 2,
                color3=tuple(body.style.get("color3", (242, 72, 72))),
                arrow_rotation=arrow.screen_rotation if tree.is_rendered(arrow) else None,
            )
        )
    return items


class PreviewSession:
    """
    Orbit a camera around a scene of markers for a fixed number of frames,
    recording each marker's placement and optionally a rendered preview.
    """

    def __init__(
        self,
        config: SceneConfig,
        logger: Optional[logging.Logger] = None,
        outputs: Optional[list[OutputSink]] = None,
    ):
        self.config = config
        if logger is None:
            setup_logger()
            logger = logging.getLogger(f"{LOGGER_ROOT}.session")
        self.logger = logger
        if outputs is None:
            outputs = [CsvOutput()] if config.save_trace else [NullOutput()]
        self.outputs = outputs
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def build(self) -> tuple[HostEnvironment, MarkerContainer, list[MarkerState]]:
        cfg = self.config
        host = HostEnvironment.with_viewport(
            (cfg.viewport.width, cfg.viewport.height), cfg.viewport.field_of_view
        )
        host.current_viewpoint.pose = look_at(cfg.camera.eye, cfg.camera.look_at, cfg.camera.up)

        boundary = None
        b = cfg.boundary
        if b.position is not None or b.size is not None or b.rotation:
            width, height = cfg.viewport.width, cfg.viewport.height
            position = b.position if b.position is not None else [width * 0.05, height * 0.05]
            size = b.size if b.size is not None else [width * 0.9, height * 0.9]
            boundary = GuiObject(
                name="MarkerBoundary",
                position=Dim2.from_offset(*position),
                size=Dim2.from_offset(*size),
                rotation=b.rotation,
                visible=False,
            )

        container = create(boundary, enabled=True, host=host)
        container.set_boundary_shape(cfg.container.boundary_shape, cfg.container.shape_option)
        container.set_constraint_type(cfg.container.constraint_type)
        container.set_arrows_enabled(cfg.container.arrows_enabled)

        markers = [
            container.create_marker(target=m.target, arrow_enabled=m.arrow_enabled)
            for m in cfg.markers
        ]
        return host, container, markers

    def run(self) -> SessionSummary:
        cfg = self.config
        host, container, markers = self.build()
        camera = host.current_viewpoint

        storage = SessionStorage(cfg.session_root, name=cfg.session_name)
        session_path = storage.begin()
        storage.write_manifest(cfg.as_dict())

        log_file = str(Path(storage.logs_dir) / "session.log")
        root_logger = logging.getLogger(LOGGER_ROOT)
        file_handler = add_file_handler(root_logger, log_file)

        for out in self.outputs:
            out.open(Path(storage.session_dir))

        self.logger.info("session started: %s", session_path)
        self.logger.info("markers=%d frames=%d", len(markers), cfg.frames)

        t0 = time.time()
        frames = 0
        previews = 0

        try:
            while frames < cfg.frames:
                if self._stop_event.is_set():
                    break

                host.step()
                frame_idx = host.scheduler.frame

                for i, state in enumerate(markers):
                    placement = container.last_placements.get(state)
                    for out in self.outputs:
                        out.write_placement(frame_idx, i, placement)

                if cfg.save_preview:
                    image = draw_preview(
                        host.visual_tree.viewport_size,
                        container.boundary.corners(),
                        preview_items(container),
                    )
                    storage.save_preview(frame_idx, image)
                    previews += 1

                camera.pose = orbit_pose(camera.pose, cfg.orbit_pivot, cfg.orbit_deg_per_frame)
                frames += 1

        finally:
            container.set_enabled(False)
            for out in self.outputs:
                try:
                    out.close()
                except Exception as e:
                    self.logger.warning("Failed to close output %s: %s", out, e)
            avg = frames / max(1e-6, (time.time() - t0))
            self.logger.info("summary frames=%d previews=%d avg_fps=%.2f", frames, previews, avg)
            root_logger.removeHandler(file_handler)
            file_handler.close()

        trace_path = None
        for out in self.outputs:
            if isinstance(out, CsvOutput) and out.path is not None:
                trace_path = str(out.path)
        return SessionSummary(
            str(session_path),
            frames,
            trace_path,
            log_file,
            previews,
            avg,
        )
