"""
Load Orchestrator
=================
Owns the mounted-model slot and the load sequence counter.

Why is this file needed?
------------------------
1. Coalescing: repeated `schedule_load` calls within one tick produce a single
   import on the next tick, using the latest (package, locator) pair.
2. Advisory cancellation: every schedule bumps `sequence_id`; an import whose
   captured id is no longer current is discarded when it completes, whatever
   the completion order. The import itself is never aborted.
3. Resource release: a model leaves the slot (swap, supersession, stale
   completion) only through `release_model`, which frees its render resources
   and geometry.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional, Tuple

from robotviewer.controller.importer import URDFImporter
from robotviewer.controller.render_loop import RenderLoop
from robotviewer.controller.workers import ImportExecutor
from robotviewer.model.composition import SceneComposition
from robotviewer.model.robot import RobotModel
from robotviewer.model.scene import SceneNode
from robotviewer.model.viewer_config import PackageSpec, parse_package_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadRequest:
    sequence_id: int
    locator: str
    packages: PackageSpec


class LoadOrchestrator:
    def __init__(
        self,
        composition: SceneComposition,
        render_loop: RenderLoop,
        executor: ImportExecutor,
        importer_factory: Callable[[], URDFImporter],
        release: Callable[[SceneNode], None],
    ) -> None:
        self.composition = composition
        self.render_loop = render_loop
        self.executor = executor
        self.importer_factory = importer_factory
        self.release = release

        self.sequence_id: int = 0
        self._last_scheduled: Optional[Tuple[str, str]] = None
        self._load_scheduled: bool = False

        # Hooks set by the owning viewer
        self.on_source_changed: Callable[[], None] = lambda: None
        self.on_mounted: Callable[[RobotModel], None] = lambda robot: None
        self.on_failed: Callable[[LoadRequest, Exception], None] = lambda request, error: None

    @property
    def robot(self) -> Optional[RobotModel]:
        return self.composition.robot

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def schedule_load(self, package_spec: str, locator: str) -> bool:
        """
        Requests a load of `locator` on the next tick.

        Returns False (and does nothing) when the pair equals the last one
        scheduled.
        """
        source = (package_spec, locator)
        if source == self._last_scheduled:
            return False
        self._last_scheduled = source
        self.sequence_id += 1

        # Do not keep showing the old robot while the new one loads
        self.unmount()

        if not self._load_scheduled:
            self._load_scheduled = True
            self.render_loop.call_next_tick(self._run_scheduled_load)
        return True

    def load(self, package_spec: str, locator: str) -> Optional[LoadRequest]:
        self.on_source_changed()
        if not locator:
            return None

        request = LoadRequest(
            sequence_id=self.sequence_id,
            locator=locator,
            packages=parse_package_spec(package_spec),
        )
        logger.info(f"Loading '{locator}' (request {request.sequence_id}).")

        importer = self.importer_factory()
        self.executor.submit(
            lambda: importer.load(request.locator, request.packages),
            lambda robot: self._complete(request, robot),
            lambda error: self._fail(request, error),
        )
        return request

    def set_model(self, robot: Optional[RobotModel]) -> None:
        """Swaps in an already built model; in-flight loads become stale."""
        self.sequence_id += 1
        self.unmount()
        if robot is not None:
            self.composition.mount(robot)

    def unmount(self) -> None:
        robot = self.composition.unmount()
        if robot is not None:
            self.release_model(robot)

    def release_model(self, robot: RobotModel) -> None:
        for node in robot.traverse():
            self.release(node)
        robot.dispose()

    def is_current(self, request: LoadRequest) -> bool:
        return request.sequence_id == self.sequence_id

    # ------------------------------------------------------------------------------
    # Internal: Completion
    # ------------------------------------------------------------------------------

    def _run_scheduled_load(self) -> None:
        self._load_scheduled = False
        if self._last_scheduled is None:
            return
        package_spec, locator = self._last_scheduled
        self.load(package_spec, locator)

    def _complete(self, request: LoadRequest, robot: RobotModel) -> None:
        mounted = False
        try:
            if not self.is_current(request):
                logger.debug(
                    f"Discarding stale load of '{request.locator}' "
                    f"(request {request.sequence_id}, current {self.sequence_id})."
                )
                return
            self.unmount()
            self.composition.mount(robot)
            mounted = True
        finally:
            if not mounted:
                self.release_model(robot)

        self.on_mounted(robot)

    def _fail(self, request: LoadRequest, error: Exception) -> None:
        if not self.is_current(request):
            logger.debug(f"Ignoring failure of stale load '{request.locator}': {error}")
            return
        logger.error(f"Failed to load '{request.locator}': {error}")
        self.on_failed(request, error)
