"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the Joint Panel and the 3D viewport.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects global actions (like File -> Open) to the viewer controller.
"""
import os
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter, QFileDialog, QMessageBox, QInputDialog, QLineEdit
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction

from robotviewer.view.widgets.joint_panel import JointPanel
from robotviewer.view.widgets.robot_viewer import RobotViewerWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Robot Viewer"


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.resize(1400, 900)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)

        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- RIGHT SIDE: 3D Visualization ---
        self.visualizer = RobotViewerWidget()
        self.controller = self.visualizer.controller

        # --- LEFT SIDE: Joint Panel ---
        self.joint_panel = JointPanel(self.controller)

        splitter.addWidget(self.joint_panel)
        splitter.addWidget(self.visualizer)

        # Set initial proportions (1 part sidebar : 4 parts 3D view)
        splitter.setSizes([350, 1050])

        # --- SIGNAL CONNECTIONS ---
        self.controller.model_source_changed.connect(self.update_window_title)
        self.controller.load_failed.connect(self.on_load_failed)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.update_window_title()

    def _create_actions(self) -> None:
        self.act_open = QAction("Open URDF...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_package = QAction("Set Package Paths...", self)
        self.act_package.triggered.connect(self.on_set_package)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        self.act_recenter = QAction("Recenter", self)
        self.act_recenter.setShortcut("R")
        self.act_recenter.triggered.connect(lambda: self.controller.recenter())

        self.act_shadow = QAction("Display Shadows", self)
        self.act_shadow.setCheckable(True)
        self.act_shadow.toggled.connect(self.on_toggle_shadow)

        self.act_collision = QAction("Show Collision", self)
        self.act_collision.setCheckable(True)
        self.act_collision.toggled.connect(self.on_toggle_collision)

        self.controller.config_changed.connect(self._sync_actions)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_open)
        file_menu.addAction(self.act_package)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_recenter)
        view_menu.addSeparator()
        view_menu.addAction(self.act_shadow)
        view_menu.addAction(self.act_collision)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        source = self.controller.urdf
        name = os.path.basename(source) if source else "No model"
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{name}]")

    def _sync_actions(self, *_) -> None:
        for action, state in (
            (self.act_shadow, self.controller.display_shadow),
            (self.act_collision, self.controller.show_collision),
        ):
            if action.isChecked() != state:
                action.blockSignals(True)
                action.setChecked(state)
                action.blockSignals(False)

    def open_model(self, urdf: str, package: Optional[str] = None) -> None:
        if package is not None:
            self.controller.package = package
        self.controller.urdf = urdf

    # --- SLOTS ---
    def on_file_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open URDF", "", "URDF Files (*.urdf *.xml);;All Files (*)"
        )
        if path:
            self.open_model(path)

    def on_set_package(self) -> None:
        text, ok = QInputDialog.getText(
            self, "Package Paths",
            "Package path or name:path pairs separated by commas:",
            QLineEdit.Normal, self.controller.package,
        )
        if ok:
            self.controller.package = text

    def on_toggle_shadow(self, checked: bool) -> None:
        self.controller.display_shadow = checked

    def on_toggle_collision(self, checked: bool) -> None:
        self.controller.show_collision = checked

    def on_load_failed(self, message: str) -> None:
        logger.error(f"Model failed to load: {message}")
        QMessageBox.critical(self, "Load Error", f"Could not load the robot model:\n{message}")

    def closeEvent(self, event) -> None:
        self.visualizer.close()
        super().closeEvent(event)
