"""
Collision geometry display.
"""
from __future__ import annotations

from typing import Optional

from robotviewer.model.materials import Material
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import MeshNode, NodeKind


def apply_collision_visibility(robot: Optional[RobotModel], show: bool, material: Material) -> int:
    """
    Shows or hides every collider node.

    Meshes under colliders are never pickable, use the shared translucent
    `material` and cast no shadow. Idempotent; returns the collider count.
    """
    if robot is None:
        return 0

    colliders = list(robot.find(NodeKind.COLLIDER))
    for collider in colliders:
        collider.visible = show

    for collider in colliders:
        for node in collider.traverse():
            if isinstance(node, MeshNode):
                node.pickable = False
                node.material = material
                node.cast_shadow = False

    return len(colliders)
