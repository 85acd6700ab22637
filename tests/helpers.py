from __future__ import annotations

from typing import Callable, List, Tuple

import pyvista as pv

from robotviewer.model.joints import JointLimit, JointNode, JointType
from robotviewer.model.materials import Material
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import MeshNode, NodeKind, SceneNode


class FakeBackend:
    """Records what the controller asks the rendering engine to do."""

    def __init__(self, size: Tuple[int, int] = (0, 0)) -> None:
        self.size = size
        self.renders = 0
        self.released: List[SceneNode] = []
        self.events: List[str] = []

    def get_size(self):
        return self.size

    def set_size(self, width: int, height: int) -> None:
        self.size = (width, height)
        self.events.append(f"size {width}x{height}")

    def render(self, composition) -> None:
        self.renders += 1
        self.events.append("render")

    def release(self, node: SceneNode) -> None:
        self.released.append(node)


class FakeHost:
    def __init__(self, width: int = 800, height: int = 600, attached: bool = True) -> None:
        self.size = (width, height)
        self.attached = attached

    def is_attached(self) -> bool:
        return self.attached

    def container_size(self):
        return self.size


class DeferredExecutor:
    """Holds submitted jobs so a test can finish them in any order."""

    def __init__(self) -> None:
        self.jobs: List[Tuple[Callable, Callable, Callable]] = []
        self.shut_down = False

    def submit(self, job, on_done, on_error) -> None:
        self.jobs.append((job, on_done, on_error))

    def shutdown(self) -> None:
        self.shut_down = True

    def complete(self, index: int, result) -> None:
        _, on_done, _ = self.jobs[index]
        on_done(result)

    def fail(self, index: int, error: Exception) -> None:
        _, _, on_error = self.jobs[index]
        on_error(error)


class StubImporter:
    """The deferred executor never runs the job, so loading must not happen."""

    def load(self, locator, packages):
        raise AssertionError(f"unexpected import of {locator}")


def make_robot(name: str = "test_bot") -> RobotModel:
    """
    base (2x2x2 box centered at y=1) -> hinge (revolute, +-1 rad) -> arm (small box)
    plus one collider on the base.
    """
    robot = RobotModel(name="base", robot_name=name)
    robot.materials["steel"] = Material(name="steel", color=(0.5, 0.5, 0.5))

    visual = robot.add(SceneNode("base_visual", NodeKind.VISUAL))
    visual.position = (0.0, 1.0, 0.0)
    base_mesh = visual.add(MeshNode("base_mesh", pv.Cube(x_length=2.0, y_length=2.0, z_length=2.0)))
    base_mesh.user_data["material"] = "steel"
    robot.visuals["base_visual"] = visual

    collider = robot.add(SceneNode("base_collision", NodeKind.COLLIDER))
    collider.visible = False
    collider.add(MeshNode("base_collision_mesh", pv.Cube()))
    robot.colliders["base_collision"] = collider

    hinge = JointNode(
        "hinge",
        JointType.REVOLUTE,
        axis=(0.0, 0.0, 1.0),
        limit=JointLimit(lower=-1.0, upper=1.0),
    )
    robot.add(hinge)
    robot.joints["hinge"] = hinge

    arm = hinge.add(SceneNode("arm", NodeKind.LINK))
    robot.links["arm"] = arm
    arm_visual = arm.add(SceneNode("arm_visual", NodeKind.VISUAL))
    arm_visual.position = (0.0, 1.0, 0.0)
    arm_mesh = arm_visual.add(MeshNode("arm_mesh", pv.Cube(x_length=0.2, y_length=0.2, z_length=0.2)))
    arm_mesh.user_data["material"] = "missing"
    robot.visuals["arm_visual"] = arm_visual

    return robot
