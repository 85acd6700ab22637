from robotviewer.controller.render_loop import LoopState, RenderLoop


def test_deferred_callbacks_run_on_next_tick():
    calls = []
    loop = RenderLoop(lambda: calls.append("frame"), lambda: True)

    loop.call_next_tick(lambda: calls.append("deferred"))
    assert calls == []

    loop.tick()
    assert calls == ["deferred", "frame"]

    loop.tick()
    assert calls == ["deferred", "frame", "frame"]


def test_callbacks_queued_during_tick_wait_for_the_next():
    calls = []
    loop = RenderLoop(lambda: None, lambda: True)
    loop.call_next_tick(lambda: loop.call_next_tick(lambda: calls.append("second")))

    loop.tick()
    assert calls == []
    loop.tick()
    assert calls == ["second"]


def test_detached_host_skips_frames_but_runs_callbacks():
    calls = []
    attached = [False]
    loop = RenderLoop(lambda: calls.append("frame"), lambda: attached[0])
    loop.call_next_tick(lambda: calls.append("deferred"))

    loop.tick()
    assert calls == ["deferred"]

    attached[0] = True
    loop.tick()
    assert calls == ["deferred", "frame"]


def test_stop_is_permanent():
    calls = []
    loop = RenderLoop(lambda: calls.append("frame"), lambda: True)
    loop.call_next_tick(lambda: calls.append("deferred"))

    loop.stop()
    loop.tick()
    loop.stop()

    assert calls == []
    assert loop.state is LoopState.STOPPED
    assert not loop.running
    assert loop.tick_count == 0


def test_resize_recenters_once_before_render(controller, backend, host, robot, monkeypatch):
    controller.set_model(robot)
    for _ in range(3):
        controller.tick()
    assert backend.size == (800, 600)

    original = controller.recenter

    def recenter():
        backend.events.append("recenter")
        original()

    monkeypatch.setattr(controller, "recenter", recenter)
    start = len(backend.events)

    host.size = (400, 300)
    controller.tick()

    events = backend.events[start:]
    assert events[:3] == ["recenter", "size 400x300", "render"]
    assert events.count("recenter") == 1
    assert controller.composition.camera.aspect == 400 / 300


def test_unchanged_size_does_not_recenter(controller, backend, monkeypatch):
    controller.tick()
    calls = []
    monkeypatch.setattr(controller, "recenter", lambda: calls.append(1))
    controller.tick()
    controller.tick()
    assert calls == []


def test_only_dirty_frames_render(controller, backend):
    controller.tick()
    controller.tick()
    renders = backend.renders

    controller.tick()
    assert backend.renders == renders

    controller.redraw()
    controller.tick()
    assert backend.renders == renders + 1


def test_auto_redraw_renders_every_frame(controller, backend):
    controller.auto_redraw = True
    controller.tick()
    controller.tick()
    controller.tick()
    assert backend.renders == 3


def test_detach_stops_rendering(controller, backend):
    controller.attach()
    assert backend.size == (800, 600)

    controller.detach()
    controller.redraw()
    controller.tick()
    assert backend.renders == 0
    assert not controller.render_loop.running


def test_detach_drops_scheduled_load(controller, executor):
    controller.urdf = "a.urdf"
    controller.detach()
    controller.tick()
    assert executor.jobs == []


def test_detach_shuts_down_import_executor(controller, executor):
    controller.attach()
    controller.detach()
    assert executor.shut_down
