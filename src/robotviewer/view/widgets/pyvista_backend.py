"""
PyVista Rendering Backend
Mirrors the scene composition into PyVista actors and lights on each redraw.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Set, Tuple

import numpy as np
import pyvista as pv
from vtkmodules.vtkRenderingCore import vtkTextActor

from robotviewer.model.composition import SceneComposition
from robotviewer.model.materials import Material, default_material
from robotviewer.model.scene import MeshNode, SceneNode

logger = logging.getLogger(__name__)


class PyVistaBackend:
    """
    Keeps one actor per mesh node and one for the ground plane.

    Args:
        plotter: Any PyVista plotter (a `QtInteractor` in the GUI, an
            off-screen `pv.Plotter` for screenshots).
        owns_window: True if resizing the backend should resize the plotter
            window; embedded interactors are sized by their Qt layout.
    """

    def __init__(self, plotter: pv.Plotter, owns_window: bool = False) -> None:
        self.plotter = plotter
        self.owns_window = owns_window
        self._size: Tuple[int, int] = (0, 0)

        self._mesh_actors: Dict[int, pv.Actor] = {}
        self._actor_materials: Dict[int, Material] = {}
        self._plane_actor: Optional[pv.Actor] = None
        self._ambient_light: Optional[pv.Light] = None
        self._directional_light: Optional[pv.Light] = None
        self._shadows_enabled: bool = False
        self._label_actor: Optional[vtkTextActor] = None

        self.plotter.set_background("white")

    # ------------------------------------------------------------------------------
    # RenderBackend API
    # ------------------------------------------------------------------------------

    def get_size(self) -> Tuple[int, int]:
        return self._size

    def set_size(self, width: int, height: int) -> None:
        self._size = (width, height)
        if self.owns_window and width > 0 and height > 0:
            self.plotter.window_size = [width, height]

    def render(self, composition: SceneComposition) -> None:
        self._sync_lights(composition)
        self._sync_plane(composition)
        self._sync_meshes(composition.world)
        self._sync_camera(composition)
        self._sync_label(composition)
        self.plotter.render()

    def release(self, node: SceneNode) -> None:
        actor = self._mesh_actors.pop(id(node), None)
        self._actor_materials.pop(id(node), None)
        if actor is not None:
            self.plotter.remove_actor(actor, render=False)

    # ------------------------------------------------------------------------------
    # Camera interaction
    # ------------------------------------------------------------------------------

    def pull_camera(self, composition: SceneComposition) -> None:
        """Copies the interactor's camera back after the user moved it."""
        cam = self.plotter.camera
        composition.camera.position = np.array(cam.position, dtype=np.float64)
        composition.controls.target = np.array(cam.focal_point, dtype=np.float64)

    def screenshot(self, path: str) -> None:
        self.plotter.screenshot(path)
        logger.info(f"Screenshot saved to: {path}")

    # ------------------------------------------------------------------------------
    # Internal: Sync
    # ------------------------------------------------------------------------------

    def _sync_lights(self, composition: SceneComposition) -> None:
        ambient = composition.ambient_light
        directional = composition.directional_light

        if self._ambient_light is None:
            self.plotter.remove_all_lights()
            self._ambient_light = pv.Light(light_type="scene light")
            self._directional_light = pv.Light(light_type="scene light")
            self._directional_light.positional = False
            self.plotter.add_light(self._ambient_light)
            self.plotter.add_light(self._directional_light)

        # Hemisphere light approximated by a soft overhead light
        self._ambient_light.position = ambient.position
        self._ambient_light.focal_point = (0.0, 0.0, 0.0)
        self._ambient_light.diffuse_color = ambient.color
        self._ambient_light.ambient_color = ambient.ground_color
        self._ambient_light.intensity = ambient.intensity

        self._directional_light.position = tuple(directional.position)
        self._directional_light.focal_point = tuple(directional.target.world_position())
        self._directional_light.diffuse_color = directional.color
        self._directional_light.intensity = min(1.0, directional.intensity / np.pi)

        if directional.cast_shadow and not self._shadows_enabled:
            self.plotter.renderer.enable_shadows()
            self._shadows_enabled = True
        elif not directional.cast_shadow and self._shadows_enabled:
            self.plotter.renderer.disable_shadows()
            self._shadows_enabled = False

    def _sync_plane(self, composition: SceneComposition) -> None:
        plane = composition.plane
        if self._plane_actor is None:
            extent = plane.extent
            geometry = pv.Plane(center=(0.0, 0.0, 0.0), direction=(0.0, 1.0, 0.0), i_size=extent, j_size=extent)
            self._plane_actor = self.plotter.add_mesh(
                geometry,
                color="white",
                opacity=plane.opacity,
                pickable=False,
                show_scalar_bar=False,
                reset_camera=False,
                render=False,
            )
        self._plane_actor.position = (0.0, plane.y, 0.0)

    def _sync_meshes(self, world: SceneNode) -> None:
        seen: Set[int] = set()
        for node in world.traverse():
            if not isinstance(node, MeshNode) or node.geometry is None:
                continue
            key = id(node)
            seen.add(key)

            material = node.material or default_material()
            actor = self._mesh_actors.get(key)
            if actor is None or self._actor_materials.get(key) is not material:
                if actor is not None:
                    self.plotter.remove_actor(actor, render=False)
                actor = self._add_mesh_actor(node, material)
                self._mesh_actors[key] = actor
                self._actor_materials[key] = material

            actor.user_matrix = node.world_matrix()
            actor.visibility = node.is_visible_in_tree()
            actor.SetPickable(node.pickable)

        # Nodes that left the scene without an explicit release
        for key in list(self._mesh_actors):
            if key not in seen:
                actor = self._mesh_actors.pop(key)
                self._actor_materials.pop(key, None)
                self.plotter.remove_actor(actor, render=False)

    def _add_mesh_actor(self, node: MeshNode, material: Material) -> pv.Actor:
        actor = self.plotter.add_mesh(
            node.geometry,
            color=material.color,
            opacity=material.opacity,
            specular=0.3,
            specular_power=material.shininess,
            smooth_shading=True,
            pickable=node.pickable,
            show_scalar_bar=False,
            reset_camera=False,
            render=False,
        )
        if material.polygon_offset:
            # Draw on top of the coincident visual surface
            actor.mapper.SetResolveCoincidentTopologyToPolygonOffset()
            actor.mapper.SetRelativeCoincidentTopologyPolygonOffsetParameters(-1, -1)
        return actor

    def _sync_camera(self, composition: SceneComposition) -> None:
        camera = composition.camera
        cam = self.plotter.camera
        cam.position = tuple(camera.position)
        cam.focal_point = tuple(composition.controls.target)
        cam.up = camera.up
        cam.view_angle = camera.effective_fov
        cam.clipping_range = (camera.near, camera.far)

    def _sync_label(self, composition: SceneComposition) -> None:
        """Robot name in the lower left corner."""
        if self._label_actor is None:
            self._label_actor = vtkTextActor()
            self._label_actor.GetTextProperty().SetColor(0, 0, 0)
            self._label_actor.GetTextProperty().SetFontSize(12)
            self._label_actor.SetDisplayPosition(10, 10)
            self.plotter.renderer.AddActor2D(self._label_actor)

        robot = composition.robot
        self._label_actor.SetInput(robot.robot_name if robot is not None else "")
