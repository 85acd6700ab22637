"""
Robot Model
===========
The subtree produced by the importer and mounted under the viewer's world node.

The robot object is itself the base link (kind LINK); lookup tables for links,
joints, visuals and colliders are filled by the importer while building.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from robotviewer.model.joints import JointNode
from robotviewer.model.materials import Material
from robotviewer.model.scene import NodeKind, SceneNode

logger = logging.getLogger(__name__)


class RobotModel(SceneNode):
    kind = NodeKind.LINK

    def __init__(self, name: str = "", robot_name: str = "") -> None:
        super().__init__(name)
        self.robot_name: str = robot_name or name
        self.links: Dict[str, SceneNode] = {name: self} if name else {}
        self.joints: Dict[str, JointNode] = {}
        self.visuals: Dict[str, SceneNode] = {}
        self.colliders: Dict[str, SceneNode] = {}
        self.materials: Dict[str, Material] = {}
        self.source: Optional[str] = None

    def dispose(self) -> None:
        """Releases every node of the subtree, geometry included."""
        count = 0
        for node in list(self.traverse()):
            if node is self:
                continue
            node.dispose()
            count += 1
        super().dispose()
        logger.debug(f"Disposed robot '{self.robot_name}' ({count} nodes).")
