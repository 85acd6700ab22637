"""
Framing & Shadow Fitter
=======================
Follows the mounted robot with the ground plane, the orbit pivot and the
shadow camera.

Why is this file needed?
------------------------
1. Ground: the plane sits just under the lowest visual point.
2. Orbit pivot: only the height of the manipulation target follows the robot,
   so horizontal orbiting is left to the user.
3. Shadows: the light's orthographic frustum is sized to the bounding sphere
   and the light is moved together with its target, keeping the shadow
   direction constant across recenters.
"""
from __future__ import annotations

import logging
from typing import Optional

from robotviewer import config
from robotviewer.model.bounds import BoundingFrame, compute_bounding_frame
from robotviewer.model.composition import SceneComposition

logger = logging.getLogger(__name__)


def fit_environment(
    composition: SceneComposition,
    display_shadow: bool,
    epsilon: float = config.GROUND_EPSILON,
) -> Optional[BoundingFrame]:
    robot = composition.robot
    if robot is None:
        return None

    light = composition.directional_light
    light.cast_shadow = display_shadow

    frame = compute_bounding_frame(robot)
    if frame is None:
        logger.debug("Robot has no visual geometry; framing left unchanged.")
        return None

    center = frame.center
    composition.controls.target[1] = center[1]
    composition.plane.y = frame.min_y - epsilon

    if display_shadow:
        light.shadow_camera.set_half_extent(frame.radius)

        offset = light.offset()
        light.target.position = center
        light.position = center + offset

        light.shadow_camera.update_projection_matrix()

    return frame
