import csv
import logging
import sys
from pathlib import Path

import numpy as np
import pytest

from constrained_markers import run as run_mod
from constrained_markers.config import BoundarySettings, MarkerSettings, SceneConfig
from constrained_markers.output import NullOutput
from constrained_markers.session import PreviewSession, preview_items


def _scene(tmp_path, **kwargs):
    cfg = SceneConfig(
        session_name="test",
        session_root=str(tmp_path),
        frames=3,
        markers=[MarkerSettings([0.0, 0.0, 0.0]), MarkerSettings([6.0, 0.0, 1.0], arrow_enabled=False)],
    )
    cfg.viewport.width, cfg.viewport.height = 320, 180
    return cfg.apply_overrides(**kwargs)


def test_session_run_writes_trace_previews_and_log(tmp_path):
    """A short orbit should produce a trace row per marker per frame."""
    session = PreviewSession(_scene(tmp_path), logger=logging.getLogger("test.session"))
    summary = session.run()

    assert summary.frames_processed == 3
    assert summary.previews_saved == 3
    session_dir = Path(summary.session_path)
    assert sorted(p.name for p in (session_dir / "frames").iterdir()) == [
        "f000001.png", "f000002.png", "f000003.png",
    ]
    assert (session_dir / "config.json").exists()
    assert Path(summary.log_path).exists()

    with open(summary.trace_path, newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == 6
    first = rows[0]
    assert first["frame_idx"] == "1"
    assert first["inside"] == "1"
    assert first["body_visible"] == "1"


def test_session_build_uses_scene_settings(tmp_path):
    cfg = _scene(tmp_path)
    cfg.boundary = BoundarySettings(position=[10, 10], size=[300, 160], rotation=0)
    cfg.container.constraint_type = "Hidden"
    cfg.container.shape_option = "CircleSlide"

    host, container, markers = PreviewSession(cfg, logger=logging.getLogger("test.session")).build()

    assert len(markers) == 2
    assert markers[1].arrow_enabled is False
    assert container.config.constraint_type.value == "Hidden"
    assert container.config.shape.slide_type.value == "CircleSlide"
    assert np.allclose(container.boundary.screen_size, [300, 160])

    host.step()
    items = preview_items(container)
    assert len(items) >= 1
    center = items[0].center
    assert 10 <= center[0] <= 310


def test_session_without_trace_or_preview(tmp_path):
    cfg = _scene(tmp_path, save_preview=False)
    session = PreviewSession(cfg, logger=logging.getLogger("test.session"), outputs=[NullOutput()])
    summary = session.run()
    assert summary.trace_path is None
    assert summary.previews_saved == 0


def test_stop_ends_session_early(tmp_path):
    session = PreviewSession(_scene(tmp_path, frames=50), logger=logging.getLogger("test.session"))
    session.stop()
    summary = session.run()
    assert summary.frames_processed == 0


def test_main_runs_from_yaml(tmp_path, monkeypatch, capsys):
    """The CLI loads the scene, applies overrides and prints the summary."""
    config_path = tmp_path / "scene.yaml"
    config_path.write_text(
        "viewport:\n"
        "  width: 160\n"
        "  height: 90\n"
        "markers:\n"
        "  - target: [0, 0, 0]\n"
    )
    monkeypatch.setattr(run_mod.signal, "signal", lambda *_args: None)
    monkeypatch.setattr(sys, "argv", [
        "constrained-markers-preview",
        "--config", str(config_path),
        "--out", str(tmp_path / "out"),
        "--frames", "2",
        "--constraint", "Unconstrained",
        "--no-preview",
    ])

    assert run_mod.main() == 0
    out = capsys.readouterr().out
    assert "SessionSummary" in out
    assert "frames_processed=2" in out
    assert (tmp_path / "out").exists()


def test_apply_args_shape_override():
    args = run_mod._build_parser().parse_args(["--shape", "Rectangle", "--shape-option", "SquareSlide", "--no-arrows"])
    cfg = run_mod._apply_args(SceneConfig(), args)
    assert cfg.container.boundary_shape == "Rectangle"
    assert cfg.container.shape_option == "SquareSlide"
    assert cfg.container.arrows_enabled is False
    assert cfg.frames == 120


def test_bad_constraint_in_scene_raises(tmp_path):
    cfg = _scene(tmp_path)
    cfg.container.constraint_type = "Sideways"
    with pytest.raises(ValueError):
        PreviewSession(cfg, logger=logging.getLogger("test.session")).build()
