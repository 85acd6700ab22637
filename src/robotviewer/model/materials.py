"""
Render materials and their lookup.

Materials are plain parameter holders; the rendering backend turns them into
actor properties. Identity matters: the collision highlight is one shared
instance, so equality is by identity (`eq=False`).
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Optional, Sequence, Tuple

from robotviewer import config
from robotviewer.model.viewer_config import parse_color

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]


@dataclass(eq=False)
class Material:
    name: str = ""
    color: RGB = (1.0, 1.0, 1.0)
    opacity: float = 1.0
    shininess: float = 30.0
    transparent: bool = False
    # Draw on top of coplanar geometry (collision hulls over visuals)
    polygon_offset: bool = False

    @classmethod
    def from_rgba(cls, name: str, rgba: Optional[Sequence[float]]) -> Material:
        if rgba is None:
            return cls(name=name)
        r, g, b = (float(c) for c in rgba[:3])
        alpha = float(rgba[3]) if len(rgba) > 3 else 1.0
        return cls(name=name, color=(r, g, b), opacity=alpha, transparent=alpha < 1.0)


def default_material() -> Material:
    return Material(name="default")


def collision_material() -> Material:
    return Material(
        name="collision",
        color=parse_color(config.COLLISION_COLOR),
        opacity=config.COLLISION_OPACITY,
        shininess=config.COLLISION_SHININESS,
        transparent=True,
        polygon_offset=True,
    )


def resolve_material(name: Optional[str], table: Dict[str, Material]) -> Material:
    """Looks a material up by name; unknown names fall back to a default with a warning."""
    if name is None:
        return default_material()
    material = table.get(name)
    if material is None:
        logger.warning(f"Material {name} not found")
        return default_material()
    return material
