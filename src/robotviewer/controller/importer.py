"""
Robot Description Importer (yourdfpy Adapter)
=============================================
Turns a URDF document into a `RobotModel` scene subtree.

Why is this file needed?
------------------------
1. Translation: yourdfpy parses the XML into dataclasses; this module maps
   them onto our node kinds (links, joints, visuals, colliders, meshes) and
   builds PyVista geometry for primitives and mesh files.
2. Resolution: `package://` URIs are resolved against the viewer's package
   spec, relative paths against the document's own location, and every URL
   passes through the optional `url_modifier` hook.
3. Error channel: document-level failures raise `ImportFailed`; a mesh that
   cannot be loaded is logged and skipped so the rest of the robot still
   shows up.

Runs on a background thread; nothing here touches the render state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
import os
import posixpath
from typing import Callable, Dict, Optional, Set
from urllib.parse import urljoin, urlparse

import numpy as np
import pyvista as pv
import requests
import trimesh
import yourdfpy

from robotviewer import config
from robotviewer.model.joints import JointLimit, JointNode, JointType, MimicSpec
from robotviewer.model.materials import Material
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import MeshNode, NodeKind, SceneNode
from robotviewer.model.viewer_config import PackageSpec

logger = logging.getLogger(__name__)

MeshLoader = Callable[[str], Optional[pv.DataSet]]
UrlModifier = Callable[[str], str]

PACKAGE_PREFIX = "package://"


class ImportFailed(Exception):
    """The robot description could not be fetched or parsed."""


@dataclass
class FetchOptions:
    timeout: float = config.FETCH_TIMEOUT_S
    headers: Dict[str, str] = field(default_factory=dict)


def is_url(path: str) -> bool:
    return urlparse(path).scheme in ("http", "https")


def working_path_of(locator: str) -> str:
    """Directory part of a locator, with a trailing separator."""
    if is_url(locator):
        return urljoin(locator, ".")
    directory = os.path.dirname(os.path.abspath(locator))
    return directory + os.sep


def resolve_package_path(path: str, packages: PackageSpec, working_path: str = "") -> Optional[str]:
    """
    Resolves a geometry filename from a robot description.

    `package://name/rel` uses the package spec: a single path resolves to
    `path/name/rel` (or `path/rel` when the path already ends with `name`);
    a mapping resolves to `mapping[name]/rel`. Other paths are taken relative
    to `working_path`. Returns None for a package that is not in the mapping.
    """
    if not path.startswith(PACKAGE_PREFIX):
        if path.startswith("file://"):
            return path[len("file://"):]
        if is_url(path) or os.path.isabs(path) or not working_path:
            return path
        if is_url(working_path):
            return urljoin(working_path, path)
        return os.path.join(working_path, path)

    target_package, _, relative = path[len(PACKAGE_PREFIX):].partition("/")

    if isinstance(packages, dict):
        if target_package not in packages:
            logger.error(f"{target_package} not found in provided package list.")
            return None
        return posixpath.join(packages[target_package], relative)

    base = packages.rstrip("/")
    if base.endswith(target_package):
        return f"{base}/{relative}"
    return f"{base}/{target_package}/{relative}"


def trimesh_to_polydata(mesh: trimesh.Trimesh) -> pv.PolyData:
    faces = np.asarray(mesh.faces, dtype=np.int64)
    cells = np.column_stack([np.full(len(faces), 3, dtype=np.int64), faces]).ravel()
    return pv.PolyData(np.asarray(mesh.vertices, dtype=np.float64), cells)


def _scale_matrix(scale) -> np.ndarray:
    matrix = np.eye(4)
    if scale is None:
        return matrix
    values = np.broadcast_to(np.asarray(scale, dtype=np.float64), (3,))
    matrix[0, 0], matrix[1, 1], matrix[2, 2] = values
    return matrix


class URDFImporter:
    def __init__(
        self,
        fetch_options: Optional[FetchOptions] = None,
        parse_visual: bool = True,
        parse_collision: bool = True,
        url_modifier: Optional[UrlModifier] = None,
        load_mesh: Optional[MeshLoader] = None,
    ) -> None:
        self.fetch_options = fetch_options or FetchOptions()
        self.parse_visual = parse_visual
        self.parse_collision = parse_collision
        self.url_modifier = url_modifier
        self.load_mesh = load_mesh

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def load(self, locator: str, packages: PackageSpec = "") -> RobotModel:
        logger.info(f"Importing robot description from: {locator}")
        working_path = working_path_of(locator)

        try:
            source = self._open_document(locator)
            urdf = yourdfpy.URDF.load(
                source,
                build_scene_graph=False,
                build_collision_scene_graph=False,
                load_meshes=False,
                load_collision_meshes=False,
                filename_handler=lambda fname: fname,
                mesh_dir=working_path,
            )
        except ImportFailed:
            raise
        except Exception as e:
            logger.error(f"Failed to import '{locator}': {e}")
            raise ImportFailed(f"Could not load robot description '{locator}': {e}") from e

        robot = self._build(urdf.robot, packages, working_path)
        robot.source = locator
        logger.info(
            f"Imported robot '{robot.robot_name}': {len(robot.links)} links, "
            f"{len(robot.joints)} joints."
        )
        return robot

    # ------------------------------------------------------------------------------
    # Internal: Fetching
    # ------------------------------------------------------------------------------

    def _modify(self, url: str) -> str:
        return self.url_modifier(url) if self.url_modifier else url

    def _fetch(self, url: str) -> bytes:
        try:
            response = requests.get(
                url,
                headers=self.fetch_options.headers,
                timeout=self.fetch_options.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImportFailed(f"Request for '{url}' failed: {e}") from e
        return response.content

    def _open_document(self, locator: str):
        url = self._modify(locator)
        if is_url(url):
            return io.BytesIO(self._fetch(url))
        if not os.path.isfile(url):
            raise ImportFailed(f"Robot description not found: {url}")
        return url

    # ------------------------------------------------------------------------------
    # Internal: Scene construction
    # ------------------------------------------------------------------------------

    def _build(self, description: yourdfpy.Robot, packages: PackageSpec, working_path: str) -> RobotModel:
        child_links: Set[str] = {joint.child for joint in description.joints}
        roots = [link for link in description.links if link.name not in child_links]
        if not roots:
            raise ImportFailed(f"Robot '{description.name}' has no root link.")

        base = roots[0]
        robot = RobotModel(name=base.name, robot_name=description.name)
        self._collect_materials(description, robot)

        for link in description.links:
            node = robot if link is base else SceneNode(link.name, NodeKind.LINK)
            robot.links[link.name] = node
            self._add_link_geometry(link, node, robot, packages, working_path)

        for joint in description.joints:
            node = self._make_joint(joint)
            parent = robot.links.get(joint.parent)
            child = robot.links.get(joint.child)
            if parent is None or child is None:
                logger.warning(f"Joint '{joint.name}' references an unknown link, skipping.")
                continue
            parent.add(node)
            node.add(child)
            robot.joints[joint.name] = node

        for node in robot.joints.values():
            if node.mimic is None:
                continue
            mimicked = robot.joints.get(node.mimic.joint)
            if mimicked is None:
                logger.warning(f"Joint '{node.name}' mimics unknown joint '{node.mimic.joint}'.")
                continue
            mimicked.mimic_joints.append(node)

        return robot

    @staticmethod
    def _collect_materials(description: yourdfpy.Robot, robot: RobotModel) -> None:
        for material in description.materials:
            if material.name:
                rgba = material.color.rgba if material.color is not None else None
                robot.materials[material.name] = Material.from_rgba(material.name, rgba)

    @staticmethod
    def _make_joint(joint: yourdfpy.Joint) -> JointNode:
        limit = None
        if joint.limit is not None:
            limit = JointLimit(
                lower=joint.limit.lower or 0.0,
                upper=joint.limit.upper or 0.0,
                effort=joint.limit.effort or 0.0,
                velocity=joint.limit.velocity or 0.0,
            )
        mimic = None
        if joint.mimic is not None:
            mimic = MimicSpec(
                joint=joint.mimic.joint,
                multiplier=1.0 if joint.mimic.multiplier is None else joint.mimic.multiplier,
                offset=0.0 if joint.mimic.offset is None else joint.mimic.offset,
            )
        axis = joint.axis if joint.axis is not None else (1.0, 0.0, 0.0)
        return JointNode(
            name=joint.name,
            joint_type=JointType(joint.type),
            origin=joint.origin,
            axis=axis,
            limit=limit,
            mimic=mimic,
        )

    def _add_link_geometry(
        self,
        link: yourdfpy.Link,
        node: SceneNode,
        robot: RobotModel,
        packages: PackageSpec,
        working_path: str,
    ) -> None:
        if self.parse_visual:
            for i, visual in enumerate(link.visuals):
                name = visual.name or f"{link.name}_visual_{i}"
                holder = self._make_holder(name, NodeKind.VISUAL, visual.origin)
                material_name = self._material_name(visual, name, robot)
                mesh = self._make_geometry(visual.geometry, name, packages, working_path)
                if mesh is not None:
                    mesh.user_data["material"] = material_name
                    holder.add(mesh)
                node.add(holder)
                robot.visuals[name] = holder

        if self.parse_collision:
            for i, collision in enumerate(link.collisions):
                name = collision.name or f"{link.name}_collision_{i}"
                holder = self._make_holder(name, NodeKind.COLLIDER, collision.origin)
                holder.visible = False
                mesh = self._make_geometry(collision.geometry, name, packages, working_path)
                if mesh is not None:
                    holder.add(mesh)
                node.add(holder)
                robot.colliders[name] = holder

    @staticmethod
    def _make_holder(name: str, kind: NodeKind, origin) -> SceneNode:
        holder = SceneNode(name, kind)
        if origin is not None:
            holder.matrix = np.array(origin, dtype=np.float64)
        return holder

    @staticmethod
    def _material_name(visual: yourdfpy.Visual, visual_name: str, robot: RobotModel) -> Optional[str]:
        material = visual.material
        if material is None:
            return None
        name = material.name or f"{visual_name}_material"
        if material.color is not None and name not in robot.materials:
            robot.materials[name] = Material.from_rgba(name, material.color.rgba)
        return name

    def _make_geometry(
        self,
        geometry: Optional[yourdfpy.Geometry],
        name: str,
        packages: PackageSpec,
        working_path: str,
    ) -> Optional[MeshNode]:
        if geometry is None:
            return None

        mesh = MeshNode(f"{name}_mesh")
        if geometry.box is not None:
            sx, sy, sz = (float(v) for v in geometry.box.size)
            mesh.geometry = pv.Cube(x_length=sx, y_length=sy, z_length=sz)
        elif geometry.sphere is not None:
            mesh.geometry = pv.Sphere(radius=float(geometry.sphere.radius))
        elif geometry.cylinder is not None:
            mesh.geometry = pv.Cylinder(
                radius=float(geometry.cylinder.radius),
                height=float(geometry.cylinder.length),
                direction=(0.0, 0.0, 1.0),
            )
        elif geometry.mesh is not None:
            path = resolve_package_path(geometry.mesh.filename, packages, working_path)
            if path is None:
                return None
            mesh.geometry = self._load_mesh_file(self._modify(path))
            if mesh.geometry is None:
                return None
            mesh.matrix = _scale_matrix(geometry.mesh.scale)
        else:
            return None
        return mesh

    def _load_mesh_file(self, path: str) -> Optional[pv.DataSet]:
        try:
            if self.load_mesh is not None:
                return self.load_mesh(path)

            file_type = os.path.splitext(urlparse(path).path)[1].lstrip(".").lower()
            if is_url(path):
                loaded = trimesh.load_mesh(io.BytesIO(self._fetch(path)), file_type=file_type)
            else:
                loaded = trimesh.load_mesh(path)
            return trimesh_to_polydata(loaded)
        except Exception as e:
            logger.warning(f"Could not load model at {path}: {e}")
            return None
