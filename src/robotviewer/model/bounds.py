"""
World-space bounding volume of a robot's visual geometry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

from robotviewer.model.scene import MeshNode, NodeKind, SceneNode

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass
class BoundingFrame:
    """Box and enclosing sphere of the visual geometry, recomputed each recenter."""
    minimum: npt.NDArray[np.float64]
    maximum: npt.NDArray[np.float64]

    @property
    def center(self) -> npt.NDArray[np.float64]:
        return (self.minimum + self.maximum) / 2

    @property
    def min_y(self) -> float:
        return float(self.minimum[1])

    @property
    def radius(self) -> float:
        """Radius of the sphere circumscribing the box."""
        return float(np.linalg.norm(self.maximum - self.minimum) / 2)


def visual_meshes(root: SceneNode):
    """Mesh nodes that sit under a visual node (collision geometry excluded)."""
    for visual in root.find(NodeKind.VISUAL):
        for node in visual.traverse():
            if isinstance(node, MeshNode):
                yield node


def compute_bounding_frame(root: SceneNode) -> Optional[BoundingFrame]:
    """
    Union of the world-space boxes of all visual meshes.

    Each mesh contributes the 8 corners of its local bounds transformed to
    world space. Returns None when there is no visual geometry.
    """
    corners = []
    for mesh in visual_meshes(root):
        local = mesh.local_corners()
        if local is None:
            continue
        world = mesh.world_matrix()
        corners.append(local @ world[:3, :3].T + world[:3, 3])

    if not corners:
        return None

    points = np.vstack(corners)
    return BoundingFrame(minimum=points.min(axis=0), maximum=points.max(axis=0))
