"""
Kinematic joints of a robot model.

A joint node sits between a parent link and a child link. Its local matrix is
`origin @ motion(value)`; the value-setting policy (limit clamping, mimic
propagation) lives here so every caller shares it.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

import numpy as np
from scipy.spatial.transform import Rotation

from robotviewer.model.scene import NodeKind, SceneNode

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class JointType(StrEnum):
    FIXED = "fixed"
    CONTINUOUS = "continuous"
    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"
    FLOATING = "floating"
    PLANAR = "planar"


DEGREES_OF_FREEDOM: Dict[JointType, int] = {
    JointType.FIXED: 0,
    JointType.CONTINUOUS: 1,
    JointType.REVOLUTE: 1,
    JointType.PRISMATIC: 1,
    JointType.FLOATING: 6,
    JointType.PLANAR: 3,
}

LIMITED_TYPES = (JointType.REVOLUTE, JointType.PRISMATIC)


@dataclass
class JointLimit:
    lower: float = 0.0
    upper: float = 0.0
    effort: float = 0.0
    velocity: float = 0.0

    def clamp(self, value: float) -> float:
        return max(self.lower, min(self.upper, value))


@dataclass
class MimicSpec:
    joint: str
    multiplier: float = 1.0
    offset: float = 0.0


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric joint value {value!r}")
        return None


class JointNode(SceneNode):
    kind = NodeKind.JOINT

    def __init__(
        self,
        name: str,
        joint_type: JointType = JointType.FIXED,
        origin: Optional[npt.NDArray[np.float64]] = None,
        axis: Sequence[float] = (1.0, 0.0, 0.0),
        limit: Optional[JointLimit] = None,
        mimic: Optional[MimicSpec] = None,
    ) -> None:
        super().__init__(name)
        self.joint_type: JointType = JointType(joint_type)
        self.origin: npt.NDArray[np.float64] = np.eye(4) if origin is None else np.array(origin, dtype=np.float64)
        self.matrix = self.origin.copy()

        axis_arr = np.asarray(axis, dtype=np.float64)
        norm = np.linalg.norm(axis_arr)
        self.axis: npt.NDArray[np.float64] = axis_arr / norm if norm > 0 else np.array([1.0, 0.0, 0.0])

        self.limit: JointLimit = limit or JointLimit()
        self.ignore_limits: bool = False

        dof = DEGREES_OF_FREEDOM[self.joint_type]
        # Effective value (after limits) and the last value asked for
        self.joint_value: List[float] = [0.0] * dof
        self.requested_value: List[float] = [0.0] * dof

        self.mimic: Optional[MimicSpec] = mimic
        self.mimic_joints: List[JointNode] = []

    @property
    def degrees_of_freedom(self) -> int:
        return len(self.joint_value)

    @property
    def angle(self) -> float:
        return self.joint_value[0] if self.joint_value else 0.0

    def is_movable(self) -> bool:
        return self.degrees_of_freedom > 0 and self.mimic is None

    def set_joint_value(self, *values) -> bool:
        """
        Sets the joint value, one number per degree of freedom.

        `None` leaves that component unchanged. Revolute and prismatic joints
        clamp to their limits unless `ignore_limits` is set; the unclamped
        request is remembered so a later policy change can restore it.

        Returns:
            True if this joint or any joint mimicking it moved.
        """
        parsed = [_to_float(v) for v in values]

        did_update = False
        for mimic_joint in self.mimic_joints:
            did_update = mimic_joint.update_from_mimicked(*parsed) or did_update

        if not self.joint_value:
            return did_update

        requested = list(self.requested_value)
        for i, value in enumerate(parsed[:len(requested)]):
            if value is not None:
                requested[i] = value
        self.requested_value = requested

        effective = self._apply_limits(requested)
        if effective == self.joint_value:
            return did_update

        self.joint_value = effective
        self.matrix = self.origin @ self._motion_matrix()
        return True

    def reapply(self) -> bool:
        """Re-runs the value policy on the last requested value."""
        return self.set_joint_value(*self.requested_value)

    def update_from_mimicked(self, *values: Optional[float]) -> bool:
        if self.mimic is None:
            return False
        modified = [
            None if v is None else v * self.mimic.multiplier + self.mimic.offset
            for v in values
        ]
        return self.set_joint_value(*modified)

    def _apply_limits(self, values: List[float]) -> List[float]:
        if self.ignore_limits or self.joint_type not in LIMITED_TYPES:
            return list(values)
        return [self.limit.clamp(values[0])] + list(values[1:])

    def _motion_matrix(self) -> npt.NDArray[np.float64]:
        motion = np.eye(4)
        v = self.joint_value

        match self.joint_type:
            case JointType.CONTINUOUS | JointType.REVOLUTE:
                motion[:3, :3] = Rotation.from_rotvec(self.axis * v[0]).as_matrix()
            case JointType.PRISMATIC:
                motion[:3, 3] = self.axis * v[0]
            case JointType.FLOATING:
                motion[:3, 3] = v[0:3]
                motion[:3, :3] = Rotation.from_euler("xyz", v[3:6]).as_matrix()
            case JointType.PLANAR:
                u, w = self._plane_basis()
                motion[:3, 3] = u * v[0] + w * v[1]
                motion[:3, :3] = Rotation.from_rotvec(self.axis * v[2]).as_matrix()
        return motion

    def _plane_basis(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Two unit vectors spanning the plane normal to the axis."""
        helper = np.array([1.0, 0.0, 0.0]) if abs(self.axis[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        u = np.cross(self.axis, helper)
        u /= np.linalg.norm(u)
        return u, np.cross(self.axis, u)
