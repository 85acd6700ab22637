"""
Application Entry Point
=======================
Parses the command line, sets up logging and starts either the Qt event loop
or a single off-screen render.

Usage:
    $ robotviewer path/to/robot.urdf --package /path/to/packages
    $ python -m robotviewer robot.urdf --screenshot robot.png
"""
import argparse
import logging
import sys
from typing import List, Optional

from robotviewer import config
from robotviewer.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="robotviewer", description="View and pose URDF robot models.")
    parser.add_argument("urdf", nargs="?", default=config.SAMPLE_URDF_PATH,
                        help="Path or URL of the URDF file (default: bundled sample arm).")
    parser.add_argument("--package", default="",
                        help="Package root, or comma separated name:path pairs.")
    parser.add_argument("--up", default=config.DEFAULT_UP_AXIS, help="Up axis, e.g. +Z or -Y.")
    parser.add_argument("--ambient-color", default=None, help="Ambient light color.")
    parser.add_argument("--shadow", action="store_true", help="Display shadows.")
    parser.add_argument("--collision", action="store_true", help="Show collision geometry.")
    parser.add_argument("--ignore-limits", action="store_true", help="Ignore joint limits.")
    parser.add_argument("--screenshot", metavar="PATH", default=None,
                        help="Render off-screen into PATH and exit.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.screenshot:
        from robotviewer.view.offscreen import render_screenshot

        ok = render_screenshot(
            args.screenshot,
            urdf=args.urdf,
            package=args.package,
            up=args.up,
            display_shadow=args.shadow,
            show_collision=args.collision,
            ignore_limits=args.ignore_limits,
            ambient_color=args.ambient_color,
        )
        return 0 if ok else 1

    from PySide6.QtWidgets import QApplication
    from robotviewer.view.main_window import MainWindow

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Robot Viewer")

    window = MainWindow()
    controller = window.controller
    controller.up = args.up
    if args.ambient_color:
        controller.ambient_color = args.ambient_color
    controller.display_shadow = args.shadow
    controller.show_collision = args.collision
    controller.ignore_limits = args.ignore_limits
    window.open_model(args.urdf, args.package)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
