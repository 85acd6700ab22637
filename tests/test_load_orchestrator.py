from robotviewer.controller.importer import ImportFailed
from robotviewer.model.robot import RobotModel

from helpers import make_robot


def test_rapid_loads_mount_only_the_latest(controller, executor, backend):
    robots = [make_robot(name) for name in ("a", "b", "c")]
    for name in ("a", "b", "c"):
        controller.urdf = f"{name}.urdf"
        controller.tick()
    assert len(executor.jobs) == 3

    # Latest finishes first, earlier ones trickle in afterwards
    executor.complete(2, robots[2])
    executor.complete(0, robots[0])
    executor.complete(1, robots[1])

    assert controller.robot is robots[2]
    assert not robots[2].disposed
    assert robots[0].disposed and robots[1].disposed
    assert robots[0] in backend.released


def test_changes_within_one_tick_coalesce(controller, executor):
    sources = []
    controller.model_source_changed.connect(lambda: sources.append(controller.urdf))

    controller.package = "pkg:/models/pkg"
    controller.urdf = "a.urdf"
    controller.urdf = "b.urdf"
    assert executor.jobs == []

    controller.tick()
    assert len(executor.jobs) == 1
    assert sources == ["b.urdf"]
    assert controller.loader.sequence_id == 3


def test_same_source_is_not_rescheduled(controller):
    loader = controller.loader
    assert loader.schedule_load("", "a.urdf")
    assert not loader.schedule_load("", "a.urdf")
    assert loader.sequence_id == 1


def test_empty_locator_clears_model(controller, executor, robot):
    controller.set_model(robot)
    controller.urdf = "a.urdf"
    controller.tick()
    controller.urdf = ""
    controller.tick()

    assert controller.robot is None
    assert robot.disposed
    assert len(executor.jobs) == 1


def test_old_model_released_on_swap(controller, executor, backend, robot):
    controller.set_model(robot)
    nodes = list(robot.traverse())

    replacement = make_robot("next")
    controller.urdf = "next.urdf"
    controller.tick()
    executor.complete(0, replacement)

    assert controller.robot is replacement
    assert all(node in backend.released for node in nodes)
    assert all(node.disposed for node in nodes)


def test_mount_emits_processed_and_loaded(controller, executor, robot):
    processed, loaded = [], []
    controller.model_processed.connect(processed.append)
    controller.geometry_loaded.connect(loaded.append)

    controller.urdf = "a.urdf"
    controller.tick()
    executor.complete(0, robot)

    assert processed == [robot]
    assert loaded == [robot]


def test_failure_reports_and_leaves_no_model(controller, executor):
    failures = []
    controller.load_failed.connect(failures.append)

    controller.urdf = "missing.urdf"
    controller.tick()
    executor.fail(0, ImportFailed("Robot description not found: missing.urdf"))

    assert controller.robot is None
    assert failures == ["Robot description not found: missing.urdf"]


def test_stale_failure_is_ignored(controller, executor, robot):
    failures = []
    controller.load_failed.connect(failures.append)

    controller.urdf = "a.urdf"
    controller.tick()
    controller.urdf = "b.urdf"
    controller.tick()

    executor.fail(0, ImportFailed("boom"))
    executor.complete(1, robot)

    assert failures == []
    assert controller.robot is robot


def test_set_model_supersedes_in_flight_load(controller, executor, robot):
    controller.urdf = "a.urdf"
    controller.tick()

    controller.set_model(robot)
    late = make_robot("late")
    executor.complete(0, late)

    assert controller.robot is robot
    assert late.disposed


def test_set_model_none_unmounts(controller, robot):
    controller.set_model(robot)
    controller.set_model(None)
    assert controller.robot is None
    assert isinstance(robot, RobotModel) and robot.disposed
