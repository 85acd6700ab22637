import numpy as np
import pytest

from robotviewer.controller.framing import fit_environment
from robotviewer.model.bounds import compute_bounding_frame
from robotviewer.model.composition import SceneComposition
from robotviewer.model.robot import RobotModel


@pytest.fixture
def composition(robot):
    scene = SceneComposition()
    scene.mount(robot)
    return scene


def test_bounding_frame_covers_visuals_only(robot):
    frame = compute_bounding_frame(robot)
    assert frame.minimum == pytest.approx([-1.0, 0.0, -1.0])
    assert frame.maximum == pytest.approx([1.0, 2.0, 1.0])


def test_ground_and_target_follow_robot(composition):
    fit_environment(composition, display_shadow=False)

    assert composition.plane.y == pytest.approx(-0.001)
    assert composition.controls.target[1] == pytest.approx(1.0)
    assert not composition.directional_light.cast_shadow


def test_target_only_moves_vertically(composition):
    composition.controls.target[:] = [3.0, 0.0, -2.0]
    fit_environment(composition, display_shadow=False)
    assert composition.controls.target == pytest.approx([3.0, 1.0, -2.0])


def test_shadow_frustum_and_light_offset(composition):
    light = composition.directional_light
    offset = light.offset()

    fit_environment(composition, display_shadow=True)

    radius = np.sqrt(12.0) / 2
    camera = light.shadow_camera
    assert (camera.left, camera.right, camera.top, camera.bottom) == pytest.approx(
        (-radius, radius, radius, -radius)
    )
    assert camera.version == 1
    assert light.target.position == pytest.approx([0.0, 1.0, 0.0])
    assert light.offset() == pytest.approx(offset)
    assert light.cast_shadow


def test_no_visual_geometry_leaves_scene(caplog):
    scene = SceneComposition()
    scene.mount(RobotModel(name="empty"))
    before = scene.plane.y

    assert fit_environment(scene, display_shadow=True) is None
    assert scene.plane.y == before


def test_no_robot():
    assert fit_environment(SceneComposition(), display_shadow=False) is None


def test_display_shadow_attribute_recenters(controller, robot):
    controller.up = "+Y"
    controller.set_model(robot)
    controller.display_shadow = True

    light = controller.composition.directional_light
    assert light.cast_shadow
    assert light.target.position == pytest.approx([0.0, 1.0, 0.0])

    controller.display_shadow = False
    assert not light.cast_shadow


def test_shadow_off_until_requested(controller, robot):
    light = controller.composition.directional_light
    assert not light.cast_shadow

    # Without framing nothing else touches the light
    controller.no_auto_recenter = True
    controller.set_model(robot)
    controller.attach()
    controller.tick()
    assert not light.cast_shadow
