"""
Viewer Configuration
====================
The attribute surface of the viewer as typed data.

Why is this file needed?
------------------------
1. Finite dispatch: `ConfigField` enumerates every attribute the viewer
   reacts to; a change is delivered as a tagged `ConfigChange` and each field
   has one dedicated reaction in the controller.
2. Best-effort parsing: up-axis, package spec and color strings are parsed
   here and never raise; malformed input falls back to the documented default
   with a warning.

Classes:
    ConfigField: The observed attributes.
    ConfigChange: A single attribute mutation (old and new raw string).
    UpAxis: Parsed up direction and the world rotation it implies.
    ViewerConfig: Snapshot of the whole configuration.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
import math
from typing import Dict, Optional, Tuple, Union

import pyvista as pv

from robotviewer import config

logger = logging.getLogger(__name__)

PackageSpec = Union[str, Dict[str, str]]


class ConfigField(StrEnum):
    PACKAGE = "package"
    URDF = "urdf"
    UP = "up"
    DISPLAY_SHADOW = "display-shadow"
    AMBIENT_COLOR = "ambient-color"
    IGNORE_LIMITS = "ignore-limits"
    SHOW_COLLISION = "show-collision"


@dataclass(frozen=True)
class ConfigChange:
    field: ConfigField
    old_value: Optional[str]
    new_value: Optional[str]


@dataclass(frozen=True)
class UpAxis:
    sign: str = "+"
    axis: str = "Z"

    def __str__(self) -> str:
        return f"{self.sign}{self.axis}"

    @property
    def world_euler(self) -> Tuple[float, float, float]:
        """Rotation (intrinsic XYZ, radians) that maps this axis onto +Y."""
        positive = self.sign == "+"
        half_pi = math.pi / 2
        if self.axis == "X":
            return 0.0, 0.0, half_pi if positive else -half_pi
        if self.axis == "Y":
            return (0.0 if positive else math.pi), 0.0, 0.0
        return (-half_pi if positive else half_pi), 0.0, 0.0


def parse_up_axis(value: Optional[str]) -> UpAxis:
    """
    Parses strings like '+Z', '-y', 'x' (case-insensitive).

    The first sign character wins (default '+'), the first of X/Y/Z wins
    (default 'Z').
    """
    if not value:
        value = config.DEFAULT_UP_AXIS
    text = value.upper()
    sign = next((c for c in text if c in "+-"), "+")
    axis = next((c for c in text if c in "XYZ"), None)
    if axis is None:
        logger.warning(f"Invalid up axis '{value}', using {config.DEFAULT_UP_AXIS}")
        axis = "Z"
    return UpAxis(sign=sign, axis=axis)


def parse_package_spec(spec: Optional[str]) -> PackageSpec:
    """
    Turns 'name:path[,name:path...]' into a name -> path mapping.

    A spec whose text after the first colon starts with '//' is a URL and is
    returned unchanged, as is any spec without a colon.
    """
    if not spec:
        return ""
    parts = spec.split(":")
    if len(parts) < 2 or parts[1].startswith("//"):
        return spec

    packages: Dict[str, str] = {}
    for entry in spec.split(","):
        pieces = [p for p in entry.split(":") if p]
        if not pieces:
            continue
        name = pieces[0].strip()
        path = ":".join(pieces[1:]).strip()
        if not name:
            logger.warning(f"Skipping package entry without a name: '{entry}'")
            continue
        packages[name] = path
    return packages


def parse_color(value: Optional[str], default: str = config.DEFAULT_AMBIENT_COLOR) -> Tuple[float, float, float]:
    """CSS-style color string to float RGB, falling back to `default`."""
    try:
        return tuple(pv.Color(value or default).float_rgb)
    except ValueError:
        logger.warning(f"Invalid color '{value}', using {default}")
        return tuple(pv.Color(default).float_rgb)


@dataclass
class ViewerConfig:
    model_locator: str = ""
    package_spec: str = ""
    up_axis: UpAxis = field(default_factory=UpAxis)
    display_shadow: bool = False
    ambient_color: str = config.DEFAULT_AMBIENT_COLOR
    ignore_joint_limits: bool = False
    show_collision: bool = False
    auto_redraw: bool = False
    auto_recenter: bool = True

    @property
    def resolved_packages(self) -> PackageSpec:
        return parse_package_spec(self.package_spec)
