"""
Viewer Controller
=================
Coordinates the scene, the render loop, model loading, joint pose and framing.

Why is this file needed?
------------------------
1. Attribute surface: configuration is set as string attributes (or through
   the typed properties) and every change is delivered as a `ConfigChange`
   to one dedicated reaction.
2. Orchestration: it wires the load orchestrator, the pose/material adapter,
   the framing fitter and the collision toggle to the shared scene
   composition, and keeps a dirty flag so the render loop only redraws when
   something changed.
3. Notifications: Qt Signals report source changes, finished loads, load
   failures and joint motion to the host application.

Everything here runs on the GUI thread; only the import job itself runs on a
worker.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple

from PySide6.QtCore import QObject, Signal

from robotviewer import config
from robotviewer.controller import collision, framing, pose
from robotviewer.controller.importer import FetchOptions, MeshLoader, URDFImporter, UrlModifier
from robotviewer.controller.loader import LoadOrchestrator, LoadRequest
from robotviewer.controller.render_loop import RenderLoop
from robotviewer.controller.workers import ImportExecutor, ThreadedImportExecutor
from robotviewer.model.bounds import BoundingFrame
from robotviewer.model.composition import SceneComposition
from robotviewer.model.materials import collision_material
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import SceneNode
from robotviewer.model.viewer_config import (
    ConfigChange, ConfigField, ViewerConfig, parse_up_axis
)

logger = logging.getLogger(__name__)


class RenderBackend(Protocol):
    """The rendering engine as seen by the controller."""

    def get_size(self) -> Tuple[int, int]: ...

    def set_size(self, width: int, height: int) -> None: ...

    def render(self, composition: SceneComposition) -> None: ...

    def release(self, node: SceneNode) -> None: ...


class ViewportHost(Protocol):
    """The container the viewport is embedded in."""

    def is_attached(self) -> bool: ...

    def container_size(self) -> Tuple[int, int]: ...


class ViewerController(QObject):
    model_source_changed = Signal()
    model_processed = Signal(object)
    geometry_loaded = Signal(object)
    angle_changed = Signal(str)
    load_failed = Signal(str)
    config_changed = Signal(object)

    def __init__(
        self,
        backend: RenderBackend,
        host: ViewportHost,
        executor: Optional[ImportExecutor] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.backend = backend
        self.host = host

        self._attributes: Dict[ConfigField, str] = {}
        self._dirty: bool = False

        # Non-attribute options
        self.auto_redraw: bool = False
        self.no_auto_recenter: bool = False
        self.load_mesh_func: Optional[MeshLoader] = None
        self.url_modifier_func: Optional[UrlModifier] = None
        self.fetch_options: FetchOptions = FetchOptions()

        self.composition = SceneComposition(self.ambient_color)
        self.composition.directional_light.cast_shadow = self.display_shadow
        self.composition.set_up_axis(parse_up_axis(self.up))
        self.composition.controls.add_change_listener(self.recenter)
        self.collision_material = collision_material()

        self.render_loop = RenderLoop(self._render_frame, self.host.is_attached)

        self.loader = LoadOrchestrator(
            composition=self.composition,
            render_loop=self.render_loop,
            executor=executor if executor is not None else ThreadedImportExecutor(self),
            importer_factory=self._make_importer,
            release=self.backend.release,
        )
        self.loader.on_source_changed = self.model_source_changed.emit
        self.loader.on_mounted = self._on_model_mounted
        self.loader.on_failed = self._on_load_failed

        self._reactions: Dict[ConfigField, Callable[[ConfigChange], None]] = {
            ConfigField.PACKAGE: self._react_source,
            ConfigField.URDF: self._react_source,
            ConfigField.UP: self._react_up,
            ConfigField.AMBIENT_COLOR: self._react_ambient_color,
            ConfigField.IGNORE_LIMITS: self._react_ignore_limits,
            ConfigField.DISPLAY_SHADOW: self._react_display_shadow,
            ConfigField.SHOW_COLLISION: self._react_show_collision,
        }

    # ------------------------------------------------------------------------------
    # Attribute surface
    # ------------------------------------------------------------------------------

    def get_attribute(self, name: str) -> Optional[str]:
        return self._attributes.get(ConfigField(name))

    def has_attribute(self, name: str) -> bool:
        return ConfigField(name) in self._attributes

    def set_attribute(self, name: str, value: str) -> None:
        field = ConfigField(name)
        old = self._attributes.get(field)
        new = str(value)
        self._attributes[field] = new
        if old != new:
            self._attribute_changed(ConfigChange(field, old, new))

    def remove_attribute(self, name: str) -> None:
        field = ConfigField(name)
        if field not in self._attributes:
            return
        old = self._attributes.pop(field)
        self._attribute_changed(ConfigChange(field, old, None))

    def _set_flag(self, field: ConfigField, value: bool) -> None:
        if value:
            self.set_attribute(field, "")
        else:
            self.remove_attribute(field)

    @property
    def package(self) -> str:
        return self._attributes.get(ConfigField.PACKAGE) or ""

    @package.setter
    def package(self, value: str) -> None:
        self.set_attribute(ConfigField.PACKAGE, value)

    @property
    def urdf(self) -> str:
        return self._attributes.get(ConfigField.URDF) or ""

    @urdf.setter
    def urdf(self, value: str) -> None:
        self.set_attribute(ConfigField.URDF, value)

    @property
    def up(self) -> str:
        return self._attributes.get(ConfigField.UP) or config.DEFAULT_UP_AXIS

    @up.setter
    def up(self, value: str) -> None:
        self.set_attribute(ConfigField.UP, value)

    @property
    def display_shadow(self) -> bool:
        return ConfigField.DISPLAY_SHADOW in self._attributes

    @display_shadow.setter
    def display_shadow(self, value: bool) -> None:
        self._set_flag(ConfigField.DISPLAY_SHADOW, value)

    @property
    def ambient_color(self) -> str:
        return self._attributes.get(ConfigField.AMBIENT_COLOR) or config.DEFAULT_AMBIENT_COLOR

    @ambient_color.setter
    def ambient_color(self, value: str) -> None:
        self.set_attribute(ConfigField.AMBIENT_COLOR, value)

    @property
    def ignore_limits(self) -> bool:
        return ConfigField.IGNORE_LIMITS in self._attributes

    @ignore_limits.setter
    def ignore_limits(self, value: bool) -> None:
        self._set_flag(ConfigField.IGNORE_LIMITS, value)

    @property
    def show_collision(self) -> bool:
        return ConfigField.SHOW_COLLISION in self._attributes

    @show_collision.setter
    def show_collision(self, value: bool) -> None:
        self._set_flag(ConfigField.SHOW_COLLISION, value)

    @property
    def config(self) -> ViewerConfig:
        return ViewerConfig(
            model_locator=self.urdf,
            package_spec=self.package,
            up_axis=parse_up_axis(self.up),
            display_shadow=self.display_shadow,
            ambient_color=self.ambient_color,
            ignore_joint_limits=self.ignore_limits,
            show_collision=self.show_collision,
            auto_redraw=self.auto_redraw,
            auto_recenter=not self.no_auto_recenter,
        )

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def robot(self) -> Optional[RobotModel]:
        return self.composition.robot

    @property
    def dirty(self) -> bool:
        return self._dirty

    def redraw(self) -> None:
        self._dirty = True

    def recenter(self) -> None:
        self._update_environment()
        self.redraw()

    def set_joint_value(self, name: str, *values) -> bool:
        if pose.set_joint_value(self.robot, name, *values):
            self.redraw()
            self.angle_changed.emit(name)
            return True
        return False

    def set_joint_values(self, values: Mapping[str, object]) -> None:
        """Applies each entry on its own; a rejected value does not stop the rest."""
        for name, value in values.items():
            if isinstance(value, (list, tuple)):
                self.set_joint_value(name, *value)
            else:
                self.set_joint_value(name, value)

    def set_model(self, robot: Optional[RobotModel]) -> None:
        self.loader.set_model(robot)
        if robot is not None:
            self.composition.set_up_axis(parse_up_axis(self.up))
            self._set_ignore_limits(self.ignore_limits, no_recenter=True)
            self._update_collision_visibility()
            if not self.no_auto_recenter:
                self.recenter()
        self.redraw()

    def schedule_load(self) -> bool:
        return self.loader.schedule_load(self.package, self.urdf)

    def attach(self) -> None:
        """Host became visible: match the container size right away."""
        self.update_size()

    def detach(self) -> None:
        """Host went away for good: the render loop stops and stays stopped."""
        self.render_loop.stop()
        self.loader.executor.shutdown()

    def tick(self) -> None:
        self.render_loop.tick()

    def update_size(self) -> None:
        width, height = self.host.container_size()
        if tuple(self.backend.get_size()) != (width, height):
            self.recenter()

        self.backend.set_size(width, height)

        camera = self.composition.camera
        camera.aspect = width / height if height > 0 else 1.0
        camera.update_projection_matrix()

    # ------------------------------------------------------------------------------
    # Internal: Attribute reactions
    # ------------------------------------------------------------------------------

    def _attribute_changed(self, change: ConfigChange) -> None:
        logger.debug(f"Attribute '{change.field}' changed: {change.old_value!r} -> {change.new_value!r}")
        self._reactions[change.field](change)
        self.config_changed.emit(change)
        if not self.no_auto_recenter:
            self.recenter()

    def _react_source(self, change: ConfigChange) -> None:
        self.schedule_load()

    def _react_up(self, change: ConfigChange) -> None:
        self.composition.set_up_axis(parse_up_axis(self.up))
        self.redraw()

    def _react_ambient_color(self, change: ConfigChange) -> None:
        self.composition.set_ambient_color(self.ambient_color)
        self.redraw()

    def _react_ignore_limits(self, change: ConfigChange) -> None:
        self._set_ignore_limits(self.ignore_limits, no_recenter=True)

    def _react_display_shadow(self, change: ConfigChange) -> None:
        self.composition.directional_light.cast_shadow = self.display_shadow
        self.redraw()

    def _react_show_collision(self, change: ConfigChange) -> None:
        self._update_collision_visibility()

    # ------------------------------------------------------------------------------
    # Internal: Model reactions
    # ------------------------------------------------------------------------------

    def _make_importer(self) -> URDFImporter:
        return URDFImporter(
            fetch_options=self.fetch_options,
            parse_collision=True,
            url_modifier=self.url_modifier_func,
            load_mesh=self.load_mesh_func,
        )

    def _on_model_mounted(self, robot: RobotModel) -> None:
        pose.apply_materials(robot)
        self._set_ignore_limits(self.ignore_limits, no_recenter=True)
        self._update_collision_visibility()

        self.model_processed.emit(robot)
        self.geometry_loaded.emit(robot)

        if not self.no_auto_recenter:
            self.recenter()
        self.redraw()

    def _on_load_failed(self, request: LoadRequest, error: Exception) -> None:
        self.load_failed.emit(str(error))
        self.redraw()

    def _set_ignore_limits(self, ignore: bool, no_recenter: bool = False) -> None:
        if self.robot is None:
            return
        if pose.apply_ignore_limits(self.robot, ignore):
            self.redraw()
        if not no_recenter and not self.no_auto_recenter:
            self.recenter()

    def _update_collision_visibility(self) -> None:
        if collision.apply_collision_visibility(self.robot, self.show_collision, self.collision_material):
            self.redraw()

    def _update_environment(self) -> Optional[BoundingFrame]:
        return framing.fit_environment(self.composition, self.display_shadow)

    # ------------------------------------------------------------------------------
    # Internal: Render loop
    # ------------------------------------------------------------------------------

    def _render_frame(self) -> None:
        self.update_size()
        if self._dirty or self.auto_redraw:
            if not self.no_auto_recenter:
                self._update_environment()
            self.backend.render(self.composition)
            self._dirty = False
        self.composition.controls.update()
