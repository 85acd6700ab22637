"""
Scene Graph
===========
Transform-carrying nodes the viewer composes for rendering.

Why is this file needed?
------------------------
1. Closed node kinds: every node carries an explicit `NodeKind` (link, joint,
   visual, collider, mesh or plain group), so traversals match on the kind
   instead of probing ad-hoc flags.
2. Engine independence: the controller mutates this graph only; the
   rendering backend mirrors it into PyVista actors on each redraw.
3. Resource ownership: mesh nodes hold the GPU-bound geometry and release it
   in `dispose()`.

Classes:
    NodeKind: The node variants.
    SceneNode: Base transform node (4x4 local matrix, children, visibility).
    MeshNode: Leaf carrying geometry, material and shadow/pick flags.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

import numpy as np
from scipy.spatial.transform import Rotation

if TYPE_CHECKING:
    import numpy.typing as npt
    import pyvista as pv
    from robotviewer.model.materials import Material


class NodeKind(StrEnum):
    GROUP = "group"
    LINK = "link"
    JOINT = "joint"
    VISUAL = "visual"
    COLLIDER = "collider"
    MESH = "mesh"


class SceneNode:
    kind: NodeKind = NodeKind.GROUP

    def __init__(self, name: str = "", kind: Optional[NodeKind] = None) -> None:
        self.name: str = name
        if kind is not None:
            self.kind = kind
        self.parent: Optional[SceneNode] = None
        self.children: List[SceneNode] = []
        self.matrix: npt.NDArray[np.float64] = np.eye(4)
        self.visible: bool = True
        self.user_data: Dict[str, Any] = {}
        self.disposed: bool = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind.value})"

    # --- Transform ---

    @property
    def position(self) -> npt.NDArray[np.float64]:
        return self.matrix[:3, 3].copy()

    @position.setter
    def position(self, value) -> None:
        self.matrix[:3, 3] = np.asarray(value, dtype=np.float64)

    def set_rotation_euler(self, x: float, y: float, z: float) -> None:
        """Replaces the rotation part with intrinsic X-Y-Z Euler angles (radians)."""
        self.matrix[:3, :3] = Rotation.from_euler("XYZ", [x, y, z]).as_matrix()

    def world_matrix(self) -> npt.NDArray[np.float64]:
        if self.parent is None:
            return self.matrix.copy()
        return self.parent.world_matrix() @ self.matrix

    def world_position(self) -> npt.NDArray[np.float64]:
        return self.world_matrix()[:3, 3]

    # --- Hierarchy ---

    def add(self, child: SceneNode) -> SceneNode:
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: SceneNode) -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def traverse(self) -> Iterator[SceneNode]:
        """Depth-first, parent before children."""
        yield self
        for child in list(self.children):
            yield from child.traverse()

    def find(self, kind: NodeKind) -> Iterator[SceneNode]:
        return (node for node in self.traverse() if node.kind == kind)

    def is_visible_in_tree(self) -> bool:
        node: Optional[SceneNode] = self
        while node is not None:
            if not node.visible:
                return False
            node = node.parent
        return True

    def dispose(self) -> None:
        self.disposed = True


class MeshNode(SceneNode):
    kind = NodeKind.MESH

    def __init__(
        self,
        name: str = "",
        geometry: Optional[pv.DataSet] = None,
        material: Optional[Material] = None,
    ) -> None:
        super().__init__(name)
        self.geometry: Optional[pv.DataSet] = geometry
        self.material: Optional[Material] = material
        self.cast_shadow: bool = False
        self.receive_shadow: bool = False
        self.pickable: bool = True

    def local_corners(self) -> Optional[npt.NDArray[np.float64]]:
        """The 8 corners of the geometry's axis-aligned bounds, in local space."""
        if self.geometry is None or self.geometry.n_points == 0:
            return None
        x0, x1, y0, y1, z0, z1 = self.geometry.bounds
        return np.array(
            [[x, y, z] for x in (x0, x1) for y in (y0, y1) for z in (z0, z1)],
            dtype=np.float64,
        )

    def dispose(self) -> None:
        self.geometry = None
        self.material = None
        super().dispose()
