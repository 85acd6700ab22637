import pytest

from robotviewer.controller import pose
from robotviewer.model.materials import Material


def settle(controller, ticks=4):
    for _ in range(ticks):
        controller.tick()


def test_set_joint_value_is_idempotent(controller, backend, robot):
    angles = []
    controller.angle_changed.connect(angles.append)
    controller.set_model(robot)
    settle(controller)

    assert controller.set_joint_value("hinge", 0.5)
    settle(controller)
    renders = backend.renders

    assert not controller.set_joint_value("hinge", 0.5)
    assert not controller.dirty
    controller.tick()

    assert backend.renders == renders
    assert angles == ["hinge"]


def test_unknown_joint_is_a_no_op(controller, robot):
    angles = []
    controller.angle_changed.connect(angles.append)
    controller.set_model(robot)

    assert not controller.set_joint_value("nope", 1.0)
    assert angles == []


def test_no_model_is_a_no_op(controller):
    assert not controller.set_joint_value("hinge", 1.0)


def test_ignore_limits_round_trip(controller, robot):
    controller.set_model(robot)
    joint = robot.joints["hinge"]

    controller.set_joint_value("hinge", 2.0)
    assert joint.angle == 1.0

    controller.ignore_limits = True
    assert joint.angle == 2.0

    controller.ignore_limits = False
    assert joint.angle == 1.0


def test_ignore_limits_applies_to_new_model(controller, robot):
    controller.ignore_limits = True
    controller.set_model(robot)
    assert robot.joints["hinge"].ignore_limits


def test_set_joint_values_mapping(controller, robot):
    controller.set_model(robot)
    controller.set_joint_values({"hinge": [0.25], "nope": 3.0})
    assert robot.joints["hinge"].angle == 0.25


def test_apply_materials_resolves_table(robot, caplog):
    with caplog.at_level("WARNING"):
        pose.apply_materials(robot)

    base_mesh = robot.visuals["base_visual"].children[0]
    arm_mesh = robot.visuals["arm_visual"].children[0]

    assert base_mesh.material is robot.materials["steel"]
    assert base_mesh.cast_shadow and base_mesh.receive_shadow
    assert isinstance(arm_mesh.material, Material)
    assert arm_mesh.material.name == "default"
    assert "Material missing not found" in caplog.text


def test_apply_ignore_limits_without_robot():
    assert pose.apply_ignore_limits(None, True) is False


@pytest.mark.parametrize("value", ["0.5", 0.5])
def test_string_values_are_parsed(robot, value):
    assert pose.set_joint_value(robot, "hinge", value)
    assert robot.joints["hinge"].angle == 0.5
