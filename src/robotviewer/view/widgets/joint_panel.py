"""
Joint Control Panel
Sliders for every movable joint of the loaded robot plus the viewer toggles.
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QFormLayout, QGroupBox, QSlider, QLabel, QCheckBox,
    QComboBox, QHBoxLayout, QScrollArea
)

from robotviewer.controller.viewer import ViewerController
from robotviewer.model.joints import JointNode, JointType
from robotviewer.model.robot import RobotModel

logger = logging.getLogger(__name__)

SLIDER_STEPS = 1000
UP_AXES = ["+Z", "-Z", "+Y", "-Y", "+X", "-X"]


class JointSlider(QWidget):
    """Maps an integer slider onto the joint's value range."""

    def __init__(self, controller: ViewerController, joint: JointNode, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self.joint = joint
        self.lower, self.upper = self._range(joint)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setRange(0, SLIDER_STEPS)
        self.value_label = QLabel()
        self.value_label.setMinimumWidth(60)

        layout.addWidget(self.slider)
        layout.addWidget(self.value_label)

        self.sync_from_joint()
        self.slider.valueChanged.connect(self._on_slider_moved)

    @staticmethod
    def _range(joint: JointNode) -> tuple[float, float]:
        if joint.joint_type == JointType.CONTINUOUS or joint.limit.lower == joint.limit.upper:
            return -math.pi, math.pi
        return joint.limit.lower, joint.limit.upper

    def _on_slider_moved(self, position: int) -> None:
        value = self.lower + (self.upper - self.lower) * position / SLIDER_STEPS
        self.controller.set_joint_value(self.joint.name, value)

    def sync_from_joint(self) -> None:
        value = self.joint.angle
        span = self.upper - self.lower
        position = round((value - self.lower) / span * SLIDER_STEPS) if span else 0
        self.slider.blockSignals(True)
        self.slider.setValue(max(0, min(SLIDER_STEPS, position)))
        self.slider.blockSignals(False)
        self.value_label.setText(f"{value:.3f}")


class JointPanel(QWidget):
    def __init__(self, controller: ViewerController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self._sliders: Dict[str, JointSlider] = {}

        layout = QVBoxLayout(self)

        # --- Display options ---
        options = QGroupBox("Display")
        form = QFormLayout(options)

        self.combo_up = QComboBox()
        self.combo_up.addItems(UP_AXES)
        self.combo_up.setCurrentText(str(controller.config.up_axis))
        self.combo_up.currentTextChanged.connect(self._on_up_changed)
        form.addRow("Up axis", self.combo_up)

        self.chk_ignore_limits = QCheckBox("Ignore joint limits")
        self.chk_ignore_limits.setChecked(controller.ignore_limits)
        self.chk_ignore_limits.toggled.connect(self._on_ignore_limits)
        form.addRow(self.chk_ignore_limits)

        layout.addWidget(options)

        # --- Joints ---
        self.joints_box = QGroupBox("Joints")
        self.joints_form = QFormLayout(self.joints_box)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.joints_box)
        layout.addWidget(scroll, stretch=1)

        controller.geometry_loaded.connect(self.rebuild)
        controller.model_source_changed.connect(self.clear)
        controller.angle_changed.connect(self._on_angle_changed)
        controller.config_changed.connect(self._sync_options)

    def clear(self) -> None:
        while self.joints_form.rowCount():
            self.joints_form.removeRow(0)
        self._sliders.clear()

    def rebuild(self, robot: RobotModel) -> None:
        self.clear()
        for name, joint in robot.joints.items():
            if not joint.is_movable() or joint.degrees_of_freedom != 1:
                continue
            slider = JointSlider(self.controller, joint)
            self._sliders[name] = slider
            self.joints_form.addRow(name, slider)
        logger.debug(f"Joint panel shows {len(self._sliders)} joints.")

    def _on_angle_changed(self, name: str) -> None:
        # Mimic followers move with their leader
        for slider in self._sliders.values():
            slider.sync_from_joint()

    def _sync_options(self, *_) -> None:
        up = str(self.controller.config.up_axis)
        if self.combo_up.currentText() != up:
            self.combo_up.blockSignals(True)
            self.combo_up.setCurrentText(up)
            self.combo_up.blockSignals(False)
        if self.chk_ignore_limits.isChecked() != self.controller.ignore_limits:
            self.chk_ignore_limits.blockSignals(True)
            self.chk_ignore_limits.setChecked(self.controller.ignore_limits)
            self.chk_ignore_limits.blockSignals(False)

    def _on_up_changed(self, text: str) -> None:
        self.controller.up = text

    def _on_ignore_limits(self, checked: bool) -> None:
        self.controller.ignore_limits = checked
        for slider in self._sliders.values():
            slider.sync_from_joint()
