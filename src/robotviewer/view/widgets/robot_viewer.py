"""
3D Robot Viewer Widget (PyVista Wrapper)
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QFrame, QStyle
from PySide6.QtGui import QCloseEvent, QResizeEvent, QShowEvent

from pyvistaqt import QtInteractor

from robotviewer.controller.render_loop import QtFrameDriver
from robotviewer.controller.viewer import ViewerController
from robotviewer.view.widgets.pyvista_backend import PyVistaBackend

logger = logging.getLogger(__name__)


class RobotViewerWidget(QWidget):
    """
    Embeds the viewport in a Qt layout and drives the controller's render loop.

    The widget is the controller's viewport host: it reports whether it is
    shown and how large the interactor is.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)

        self.backend = PyVistaBackend(self.plotter)
        self.controller = ViewerController(self.backend, host=self, parent=self)
        self.frame_driver = QtFrameDriver(self.controller.render_loop, parent=self)

        self._attach_observers()
        self._setup_overlay_controls()

        self.frame_driver.start()

    # ------------------------------------------------------------------------------
    # Viewport host
    # ------------------------------------------------------------------------------

    def is_attached(self) -> bool:
        return self.isVisible()

    def container_size(self) -> Tuple[int, int]:
        return self.plotter.width(), self.plotter.height()

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        # The interactor moves the VTK camera directly; copy it back
        iren.add_observer("InteractionEvent", lambda *_: self._on_camera_moved())
        iren.add_observer("MouseWheelForwardEvent", lambda *_: self._on_camera_moved())
        iren.add_observer("MouseWheelBackwardEvent", lambda *_: self._on_camera_moved())

    def _on_camera_moved(self) -> None:
        self.backend.pull_camera(self.controller.composition)
        self.controller.redraw()

    def _setup_overlay_controls(self) -> None:
        """Floating toggle buttons."""
        self.overlay_widget = QFrame(self)
        self.overlay_widget.setStyleSheet("""
            QFrame { background-color: rgba(245, 245, 245, 220); border-radius: 4px; border: 1px solid #bbb; }
            QPushButton { background-color: transparent; border: none; padding: 3px; }
            QPushButton:checked { background-color: rgba(255, 190, 56, 80); border: 1px solid #e0a020; border-radius: 3px; }
        """)

        layout = QHBoxLayout(self.overlay_widget)
        layout.setContentsMargins(4, 4, 4, 4)

        def make_btn(icon, slot, tooltip, checkable=True, default_state=False):
            btn = QPushButton()
            btn.setIcon(self.style().standardIcon(icon))
            btn.setCheckable(checkable)
            if checkable:
                btn.setChecked(default_state)
                btn.toggled.connect(slot)
            else:
                btn.clicked.connect(slot)
            btn.setToolTip(tooltip)
            layout.addWidget(btn)
            return btn

        self.btn_shadow = make_btn(QStyle.SP_DesktopIcon, self.on_toggle_shadow, "Display shadows")
        self.btn_collision = make_btn(QStyle.SP_FileDialogListView, self.on_toggle_collision, "Show collision geometry")
        self.btn_recenter = make_btn(QStyle.SP_BrowserReload, lambda: self.controller.recenter(), "Recenter", checkable=False)

        self.controller.config_changed.connect(self._sync_overlay)
        self.overlay_widget.adjustSize()

    def _sync_overlay(self, *_) -> None:
        for btn, state in (
            (self.btn_shadow, self.controller.display_shadow),
            (self.btn_collision, self.controller.show_collision),
        ):
            if btn.isChecked() != state:
                btn.blockSignals(True)
                btn.setChecked(state)
                btn.blockSignals(False)

    # --- Toggle Slots ---
    def on_toggle_shadow(self, checked: bool) -> None:
        self.controller.display_shadow = checked

    def on_toggle_collision(self, checked: bool) -> None:
        self.controller.show_collision = checked

    # --- Qt events ---
    def showEvent(self, event: QShowEvent) -> None:
        super().showEvent(event)
        self.controller.attach()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self.overlay_widget.move(self.width() - self.overlay_widget.width() - 10, 10)
        self.overlay_widget.raise_()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.controller.detach()
        self.frame_driver.stop()
        self.plotter.close()
        event.accept()
