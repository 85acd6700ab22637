import os

import numpy as np
import pytest
import pyvista as pv

from robotviewer import config
from robotviewer.controller import importer as importer_module
from robotviewer.controller.importer import (
    FetchOptions, ImportFailed, URDFImporter, resolve_package_path, working_path_of
)
from robotviewer.model.joints import JointType
from robotviewer.model.scene import MeshNode

MESH_URDF = """<?xml version="1.0"?>
<robot name="mesh_bot">
  <link name="base">
    <visual>
      <geometry>
        <mesh filename="package://arm/meshes/base.stl" scale="2 2 2"/>
      </geometry>
    </visual>
    <visual>
      <geometry>
        <mesh filename="package://unknown/meshes/other.stl"/>
      </geometry>
    </visual>
  </link>
</robot>
"""


@pytest.mark.parametrize(
    "path, packages, expected",
    [
        ("package://arm/meshes/a.stl", {"arm": "/models/arm"}, "/models/arm/meshes/a.stl"),
        ("package://arm/meshes/a.stl", "/models", "/models/arm/meshes/a.stl"),
        ("package://arm/meshes/a.stl", "/models/arm", "/models/arm/meshes/a.stl"),
        ("package://arm/meshes/a.stl", "http://host/pkgs/", "http://host/pkgs/arm/meshes/a.stl"),
        ("file:///tmp/a.stl", "", "/tmp/a.stl"),
        ("/abs/a.stl", "", "/abs/a.stl"),
    ],
)
def test_resolve_package_path(path, packages, expected):
    assert resolve_package_path(path, packages) == expected


def test_resolve_relative_paths():
    assert resolve_package_path("meshes/a.stl", "", "/robots/") == os.path.join("/robots/", "meshes/a.stl")
    assert resolve_package_path("meshes/a.stl", "", "http://host/r/") == "http://host/r/meshes/a.stl"


def test_unknown_package_logs_error(caplog):
    with caplog.at_level("ERROR"):
        assert resolve_package_path("package://nope/a.stl", {"arm": "/a"}) is None
    assert "nope not found in provided package list" in caplog.text


def test_working_path_of():
    assert working_path_of("http://host/r/robot.urdf") == "http://host/r/"
    assert working_path_of("/robots/arm/arm.urdf") == "/robots/arm" + os.sep


def test_sample_robot_structure():
    robot = URDFImporter().load(config.SAMPLE_URDF_PATH)

    assert robot.robot_name == "sample_arm"
    assert robot.name == "base_link"
    assert set(robot.joints) == {
        "base_yaw", "shoulder", "elbow", "wrist_mount", "finger_left_slide", "finger_right_slide"
    }
    assert robot.joints["shoulder"].joint_type == JointType.REVOLUTE
    assert robot.joints["shoulder"].limit.upper == pytest.approx(1.57)
    assert {"grey", "orange", "glass", "tip"} <= set(robot.materials)
    assert robot.materials["glass"].transparent

    assert len(robot.visuals) == 7
    assert len(robot.colliders) == 4
    assert not any(c.visible for c in robot.colliders.values())
    assert robot.source == config.SAMPLE_URDF_PATH


def test_sample_robot_kinematics():
    robot = URDFImporter().load(config.SAMPLE_URDF_PATH)
    upper_arm = robot.links["upper_arm"]
    assert upper_arm.parent is robot.joints["shoulder"]
    assert upper_arm.world_position() == pytest.approx([0.0, 0.0, 0.2])

    assert robot.joints["finger_left_slide"].set_joint_value(0.03)
    assert robot.joints["finger_right_slide"].angle == pytest.approx(0.03)

    assert robot.joints["shoulder"].set_joint_value(5.0)
    assert robot.joints["shoulder"].angle == pytest.approx(1.57)


def test_skip_collision_parsing():
    robot = URDFImporter(parse_collision=False).load(config.SAMPLE_URDF_PATH)
    assert robot.colliders == {}


def test_missing_file_raises():
    with pytest.raises(ImportFailed):
        URDFImporter().load("/does/not/exist.urdf")


def test_mesh_hooks_and_scale(tmp_path, caplog):
    path = tmp_path / "mesh_bot.urdf"
    path.write_text(MESH_URDF)
    requested = []

    def load_mesh(url):
        requested.append(url)
        return pv.Cube()

    importer = URDFImporter(
        url_modifier=lambda url: url.replace("/models", "/mirror"),
        load_mesh=load_mesh,
    )
    with caplog.at_level("ERROR"):
        robot = importer.load(str(path), {"arm": "/models/arm"})

    assert requested == ["/mirror/arm/meshes/base.stl"]
    meshes = [node for node in robot.traverse() if isinstance(node, MeshNode)]
    assert len(meshes) == 1
    assert np.diag(meshes[0].matrix)[:3] == pytest.approx([2.0, 2.0, 2.0])
    assert "unknown not found" in caplog.text


def test_unloadable_mesh_is_skipped(tmp_path, caplog):
    path = tmp_path / "mesh_bot.urdf"
    path.write_text(MESH_URDF)

    with caplog.at_level("WARNING"):
        robot = URDFImporter().load(str(path), {"arm": str(tmp_path / "nowhere")})

    assert len(robot.visuals) == 2
    assert not any(isinstance(node, MeshNode) for node in robot.traverse())
    assert "Could not load model" in caplog.text


class FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise importer_module.requests.HTTPError(f"{self.status} error")


def test_remote_document_uses_fetch_options(monkeypatch):
    with open(config.SAMPLE_URDF_PATH, "rb") as f:
        content = f.read()
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers, timeout))
        return FakeResponse(content)

    monkeypatch.setattr(importer_module.requests, "get", fake_get)
    options = FetchOptions(timeout=5.0, headers={"Authorization": "token"})
    robot = URDFImporter(fetch_options=options).load("http://host/robots/sample_arm.urdf")

    assert robot.robot_name == "sample_arm"
    assert calls == [("http://host/robots/sample_arm.urdf", {"Authorization": "token"}, 5.0)]


def test_remote_failure_raises(monkeypatch):
    monkeypatch.setattr(importer_module.requests, "get", lambda url, **kwargs: FakeResponse(b"", 404))
    with pytest.raises(ImportFailed):
        URDFImporter().load("http://host/missing.urdf")
