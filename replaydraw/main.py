#!/usr/bin/env python3
"""
ReplayDraw - Command Line Entry Point

Works on saved project files:
    replaydraw export drawing.json -o drawing.pjs
    replaydraw export drawing.json --image
    replaydraw render drawing.json drawing.png
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core.scene import Scene
from .graphics.render import render_png
from .io.export import generate_program
from .io.project_io import PayloadError, load_project

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def load_scene(path: str):
    """Read a project file into (settings, scene)."""
    settings, actions = load_project(path)
    scene = Scene(settings.canvas_width, settings.canvas_height, actions)
    return settings, scene


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="replaydraw",
        description="Export and render ReplayDraw project files.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Generate the replay program")
    export_parser.add_argument("project", help="Saved project file")
    export_parser.add_argument(
        "--output", "-o",
        help="Output file (default: stdout)",
    )
    mode = export_parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--image",
        dest="image_mode",
        action="store_true",
        default=None,
        help="Export the rasterized palette/run image",
    )
    mode.add_argument(
        "--vector",
        dest="image_mode",
        action="store_false",
        help="Export vector actions",
    )

    render_parser = subparsers.add_parser("render", help="Rasterize to a PNG file")
    render_parser.add_argument("project", help="Saved project file")
    render_parser.add_argument("output", help="PNG output path")

    return parser.parse_args(argv)


def run_export(args: argparse.Namespace) -> int:
    settings, scene = load_scene(args.project)
    image_mode = settings.export_image_mode if args.image_mode is None else args.image_mode
    program = generate_program(scene, image_mode=image_mode)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(program + "\n")
        logger.info(f"Wrote program to {args.output}")
    else:
        sys.stdout.write(program + "\n")
    return 0


def run_render(args: argparse.Namespace) -> int:
    _, scene = load_scene(args.project)
    render_png(scene, args.output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the replaydraw command."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "export":
            return run_export(args)
        return run_render(args)
    except PayloadError as e:
        logger.error(f"Invalid project file {args.project}: {e}")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
