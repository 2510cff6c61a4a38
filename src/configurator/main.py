"""
Command Line Entry Point
========================
Loads a configuration, applies selections and prints what the runtime engine
resolves: chosen options with prices, the total, hidden meshes and the camera
pose of the active chapter.

Usage:
    $ configurator assets/configurator.json --select paint=red-paint --chapter wheels
    $ configurator --preview
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from configurator import config as app_config
from configurator.logging_config import setup_logging
from configurator.model.errors import ConfiguratorError
from configurator.model.io import IOManager
from configurator.model.pricing import format_price

logger = logging.getLogger(__name__)

FRAME_TIME = 1.0 / 60.0


def parse_selection(text: str) -> Tuple[str, str]:
    group_id, sep, value = text.partition("=")
    if not sep or not group_id or not value:
        raise argparse.ArgumentTypeError(f"Expected GROUP=VALUE, got '{text}'.")
    return group_id, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="configurator",
        description="Resolve prices, hidden meshes and camera pose for a product configuration.",
    )
    parser.add_argument("config", nargs="?", default=app_config.DEFAULT_CONFIG_PATH,
                        help="Path to the configuration JSON (default: bundled example).")
    parser.add_argument("--select", action="append", type=parse_selection, default=[],
                        metavar="GROUP=VALUE", help="Select an option; may be repeated.")
    parser.add_argument("--chapter", help="Make this chapter the active one.")
    parser.add_argument("--preview", action="store_true",
                        help="Open a PyVista window with placeholder parts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def settle_camera(store, max_frames: int = 600, tol: float = 1e-6):
    """Advance frames until the tween has finished and the look-at has caught up."""
    camera = store.camera
    pose = store.advance_frame(0.0)
    for _ in range(max_frames):
        lagging = (camera.look_at_target - camera.look_at_current).magnitude > tol
        if not camera.transition.active and not lagging:
            break
        pose = store.advance_frame(FRAME_TIME)
    return pose


def report(store) -> List[str]:
    configuration = store.configuration
    summary = store.prices()
    lines: List[str] = []
    for chapter in configuration.chapters:
        marker = "*" if chapter.id == store.active_chapter_id else " "
        lines.append(f"{marker} {chapter.title or chapter.id} [{chapter.focus}]")
        for group in chapter.groups:
            value = store.selections.get(group.id)
            if not value:
                lines.append(f"    {group.title or group.id}: (no options)")
                continue
            label = group.find_option(value).label or value
            price = format_price(summary.option_prices[value])
            delta = summary.delta_label(group.id, value)
            lines.append(f"    {group.title or group.id}: {label} {price} ({delta})")
    lines.append(f"Total: {format_price(summary.total)}")

    hidden = sorted(store.hidden_meshes())
    lines.append(f"Hidden meshes: {', '.join(hidden) if hidden else '(none)'}")

    pose = settle_camera(store)
    position = ", ".join(f"{v:.3f}" for v in pose.position.to_tuple())
    target = ", ".join(f"{v:.3f}" for v in pose.target.to_tuple())
    lines.append(f"Camera: position ({position}) looking at ({target})")
    return lines


def show_preview(store) -> None:
    import pyvista as pv

    from configurator.model.visibility import referenced_meshes
    from configurator.view.scene_sync import SceneSync, create_plotter

    sync = SceneSync(create_plotter())
    for i, name in enumerate(referenced_meshes(store.configuration.chapters)):
        sync.add_part(name, pv.Cube(center=(1.5 * i, 0.0, 0.0)), color="#5eead4")
    sync.connect(store)
    sync.apply_pose(settle_camera(store), render=False)
    sync.plotter.show()


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    # Store pulls in Qt; import after argument parsing keeps --help fast
    from configurator.app.state import Store

    try:
        configuration = IOManager.load_configuration(args.config)
        store = Store(configuration)
        for group_id, value in args.select:
            store.select(group_id, value)
        if args.chapter:
            store.set_active_chapter(args.chapter)
    except (ConfiguratorError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    print("\n".join(report(store)))
    if args.preview:
        show_preview(store)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
