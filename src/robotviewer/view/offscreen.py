"""
Off-screen Rendering
Renders a robot into an image file without opening a window.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import pyvista as pv

from robotviewer.controller.viewer import ViewerController
from robotviewer.controller.workers import InlineImportExecutor
from robotviewer.view.widgets.pyvista_backend import PyVistaBackend

logger = logging.getLogger(__name__)


class StaticHost:
    """A viewport host with a fixed size that is always attached."""

    def __init__(self, width: int, height: int) -> None:
        self.size: Tuple[int, int] = (width, height)

    def is_attached(self) -> bool:
        return True

    def container_size(self) -> Tuple[int, int]:
        return self.size


def render_screenshot(
    path: str,
    urdf: str,
    package: str = "",
    up: Optional[str] = None,
    display_shadow: bool = False,
    show_collision: bool = False,
    ignore_limits: bool = False,
    ambient_color: Optional[str] = None,
    window_size: Tuple[int, int] = (1024, 768),
) -> bool:
    """
    Loads the model synchronously, renders one frame and saves it.

    Returns:
        True if the model loaded and the image was written.
    """
    plotter = pv.Plotter(off_screen=True, window_size=list(window_size))
    backend = PyVistaBackend(plotter, owns_window=True)
    controller = ViewerController(backend, StaticHost(*window_size), executor=InlineImportExecutor())

    failures = []
    controller.load_failed.connect(failures.append)

    try:
        if up:
            controller.up = up
        if ambient_color:
            controller.ambient_color = ambient_color
        controller.display_shadow = display_shadow
        controller.show_collision = show_collision
        controller.ignore_limits = ignore_limits
        controller.package = package
        controller.urdf = urdf

        # First tick runs the coalesced load, second renders the mounted model
        controller.tick()
        controller.tick()

        if failures or controller.robot is None:
            logger.error(f"Nothing to render for '{urdf}'.")
            return False

        backend.screenshot(path)
        return True
    finally:
        controller.detach()
        plotter.close()
