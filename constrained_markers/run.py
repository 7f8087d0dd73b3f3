import argparse
import signal
import sys

from .config import SceneConfig, load_config
from .session import PreviewSession


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Render a constrained-marker preview session")
    ap.add_argument("--config", help="Path to JSON/YAML scene config")

    ap.add_argument("--name")
    ap.add_argument("--out")
    ap.add_argument("--frames", type=int)
    ap.add_argument("--orbit", type=float, help="Camera orbit in degrees per frame")
    ap.add_argument("--shape", help="Boundary shape, e.g. Rectangle")
    ap.add_argument("--shape-option", help="Slide type or rounded axis")
    ap.add_argument("--constraint", help="Constrained, Hidden or Unconstrained")
    ap.add_argument("--no-arrows", action="store_true")
    ap.add_argument("--no-preview", action="store_true")
    ap.add_argument("--no-trace", action="store_true")

    return ap


def _apply_args(cfg: SceneConfig, args: argparse.Namespace) -> SceneConfig:
    cfg.apply_overrides(
        session_name=args.name,
        session_root=args.out,
        frames=args.frames,
        orbit_deg_per_frame=args.orbit,
        save_preview=False if args.no_preview else None,
        save_trace=False if args.no_trace else None,
    )
    if args.shape is not None:
        cfg.container.boundary_shape = args.shape
        cfg.container.shape_option = args.shape_option
    elif args.shape_option is not None:
        cfg.container.shape_option = args.shape_option
    if args.constraint is not None:
        cfg.container.constraint_type = args.constraint
    if args.no_arrows:
        cfg.container.arrows_enabled = False
    return cfg


def main() -> int:
    ap = _build_parser()
    args = ap.parse_args()

    cfg = load_config(args.config) if args.config else SceneConfig()
    cfg = _apply_args(cfg, args)

    session = PreviewSession(cfg)

    def _handle_signal(_sig, _frame):
        session.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    summary = session.run()
    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
