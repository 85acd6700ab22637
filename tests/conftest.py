from __future__ import annotations

import pytest
from PySide6.QtCore import QCoreApplication

from robotviewer.controller.viewer import ViewerController
from robotviewer.model.robot import RobotModel

from helpers import DeferredExecutor, FakeBackend, FakeHost, StubImporter, make_robot


@pytest.fixture(autouse=True, scope="session")
def qt_app():
    """Signals need a QCoreApplication; no window system is touched."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def executor() -> DeferredExecutor:
    return DeferredExecutor()


@pytest.fixture
def controller(backend, host, executor) -> ViewerController:
    viewer = ViewerController(backend, host, executor=executor)
    viewer.loader.importer_factory = StubImporter
    return viewer


@pytest.fixture
def robot() -> RobotModel:
    return make_robot()
