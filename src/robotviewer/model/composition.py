"""
Scene Composition
=================
The persistent part of the scene: everything that outlives model swaps.

Why is this file needed?
------------------------
1. Ownership: The root scene, the hemisphere (ambient) light, the shadow
   casting directional light and its target, the ground plane, the camera and
   the camera manipulation state are created once and reused for every model.
2. Mounting point: the robot is always mounted under `world`, whose rotation
   is set from the up axis and nothing else.

Classes:
    HemisphereLight, ShadowCamera, DirectionalLight, GroundPlane, Camera:
        Plain state the rendering backend mirrors.
    OrbitControls: Orbit pivot + distance clamping, notifies on change.
    SceneComposition: The container.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from robotviewer import config
from robotviewer.model.scene import SceneNode
from robotviewer.model.viewer_config import UpAxis, parse_color

if TYPE_CHECKING:
    import numpy.typing as npt
    from robotviewer.model.robot import RobotModel

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]


@dataclass
class HemisphereLight:
    color: RGB = (1.0, 1.0, 1.0)
    ground_color: RGB = (0.0, 0.0, 0.0)
    intensity: float = config.AMBIENT_INTENSITY
    position: Tuple[float, float, float] = (0.0, 1.0, 0.0)

    def set_color(self, color: RGB) -> None:
        """Sky color as given, ground color half way between black and it."""
        self.color = color
        self.ground_color = tuple(0.5 * c for c in color)


@dataclass
class ShadowCamera:
    """Orthographic frustum used when baking the shadow map."""
    left: float = -5.0
    right: float = 5.0
    top: float = 5.0
    bottom: float = -5.0
    near: float = 0.5
    far: float = 500.0
    version: int = 0

    def set_half_extent(self, extent: float) -> None:
        self.left = self.bottom = -extent
        self.right = self.top = extent

    def update_projection_matrix(self) -> None:
        self.version += 1


@dataclass
class DirectionalLight:
    color: RGB = (1.0, 1.0, 1.0)
    intensity: float = config.DIRECTIONAL_INTENSITY
    position: npt.NDArray[np.float64] = field(
        default_factory=lambda: np.array(config.DIRECTIONAL_POSITION, dtype=np.float64)
    )
    target: SceneNode = field(default_factory=lambda: SceneNode("directional_light_target"))
    cast_shadow: bool = True
    shadow_camera: ShadowCamera = field(default_factory=ShadowCamera)

    def offset(self) -> npt.NDArray[np.float64]:
        """Light position relative to its target."""
        return self.position - self.target.position


@dataclass
class GroundPlane:
    size: float = config.GROUND_PLANE_SIZE
    scale: float = config.GROUND_PLANE_SCALE
    y: float = config.GROUND_PLANE_INITIAL_Y
    opacity: float = config.GROUND_PLANE_OPACITY
    receive_shadow: bool = True

    @property
    def extent(self) -> float:
        return self.size * self.scale


@dataclass
class Camera:
    fov: float = config.CAMERA_FOV
    aspect: float = 1.0
    near: float = config.CAMERA_NEAR
    far: float = config.CAMERA_FAR
    zoom: float = config.CAMERA_ZOOM
    position: npt.NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, config.CAMERA_DISTANCE])
    )
    up: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    projection_version: int = 0

    @property
    def effective_fov(self) -> float:
        """Vertical field of view in degrees after zoom."""
        half = math.radians(self.fov) / 2
        return math.degrees(2 * math.atan(math.tan(half) / self.zoom))

    def update_projection_matrix(self) -> None:
        self.projection_version += 1


class OrbitControls:
    """
    Camera manipulation state: the orbit pivot and distance limits.

    Interactive rotation itself is done by the host's interactor; `update()`
    keeps the camera within [min_distance, max_distance] of the target and
    notifies listeners whenever the camera moved.
    """

    def __init__(self, camera: Camera) -> None:
        self.camera = camera
        self.target: npt.NDArray[np.float64] = np.zeros(3)
        self.rotate_speed: float = 2.0
        self.zoom_speed: float = 5.0
        self.pan_speed: float = 2.0
        self.enable_zoom: bool = True
        self.enable_damping: bool = False
        self.min_distance: float = config.CONTROLS_MIN_DISTANCE
        self.max_distance: float = config.CONTROLS_MAX_DISTANCE
        self._listeners: List[Callable[[], None]] = []
        self._last_state: Optional[Tuple[float, ...]] = None

    def add_change_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def update(self) -> bool:
        offset = self.camera.position - self.target
        distance = float(np.linalg.norm(offset))
        if distance > 0:
            clamped = min(self.max_distance, max(self.min_distance, distance))
            if clamped != distance:
                self.camera.position = self.target + offset * (clamped / distance)

        state = tuple(self.camera.position) + tuple(self.target)
        if state == self._last_state:
            return False
        first = self._last_state is None
        self._last_state = state
        if first:
            return False
        for listener in list(self._listeners):
            listener()
        return True


class SceneComposition:
    """Root scene with lights, ground plane, camera and the world mount point."""

    def __init__(self, ambient_color: str = config.DEFAULT_AMBIENT_COLOR) -> None:
        self.scene = SceneNode("scene")
        self.world = self.scene.add(SceneNode("world"))

        self.ambient_light = HemisphereLight()
        self.ambient_light.set_color(parse_color(ambient_color))

        self.directional_light = DirectionalLight()
        self.scene.add(self.directional_light.target)

        self.plane = GroundPlane()
        self.camera = Camera()
        self.controls = OrbitControls(self.camera)

        self.robot: Optional[RobotModel] = None

    def set_up_axis(self, up: UpAxis) -> None:
        self.world.set_rotation_euler(*up.world_euler)

    def set_ambient_color(self, color: str) -> None:
        self.ambient_light.set_color(parse_color(color))

    def mount(self, robot: RobotModel) -> None:
        if self.robot is not None:
            raise RuntimeError("A robot is already mounted; unmount it first.")
        self.world.add(robot)
        self.robot = robot

    def unmount(self) -> Optional[RobotModel]:
        robot = self.robot
        if robot is not None:
            self.world.remove(robot)
            self.robot = None
        return robot
