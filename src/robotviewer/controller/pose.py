"""
Pose & Materials Adapter
Applies joint values and resolves render materials on a mounted robot.
"""
from __future__ import annotations

import logging
from typing import Optional

from robotviewer.model.materials import resolve_material
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import MeshNode, NodeKind

logger = logging.getLogger(__name__)


def apply_materials(robot: RobotModel) -> None:
    """
    Turns on shadows for every mesh and assigns its named material.

    The name comes from `user_data["material"]`; names missing from the
    robot's material table fall back to a default material with a warning.
    """
    for node in robot.traverse():
        if isinstance(node, MeshNode):
            node.cast_shadow = True
            node.receive_shadow = True
            node.material = resolve_material(node.user_data.get("material"), robot.materials)


def set_joint_value(robot: Optional[RobotModel], name: str, *values) -> bool:
    """True only if the joint exists and its value policy reports a change."""
    if robot is None:
        return False
    joint = robot.joints.get(name)
    if joint is None:
        logger.debug(f"No joint named '{name}'.")
        return False
    return joint.set_joint_value(*values)


def apply_ignore_limits(robot: Optional[RobotModel], ignore: bool) -> bool:
    """
    Sets the limit policy on every joint and re-applies its requested value.

    A value that was clamped before may jump to what was asked for, and back.
    """
    if robot is None:
        return False
    changed = False
    for node in robot.find(NodeKind.JOINT):
        node.ignore_limits = ignore
        changed = node.reapply() or changed
    return changed
