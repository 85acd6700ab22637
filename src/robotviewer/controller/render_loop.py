"""
Render Loop
===========
Single-threaded, cooperatively scheduled frame driver for the viewer.

Why is this file needed?
------------------------
1. Timing independence: the loop exposes one `tick()` entry point; whatever
   drives it (a Qt timer, an off-screen script, a test) only has to call it
   roughly once per display refresh.
2. Next-tick deferral: `call_next_tick()` queues work for the start of the
   following tick, which is how rapid configuration changes are coalesced
   into a single model load.

Classes:
    LoopState: RUNNING or STOPPED.
    RenderLoop: The scheduler.
    QtFrameDriver: QTimer based driver for the GUI.
"""
from __future__ import annotations

from enum import Enum
import logging
from typing import Callable, List

from PySide6.QtCore import QObject, QTimer

from robotviewer import config

logger = logging.getLogger(__name__)


class LoopState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class RenderLoop:
    """
    Runs `frame` on every tick while RUNNING and attached to a host.

    The loop starts RUNNING. Once stopped it never restarts; the owning
    viewer is expected to be destroyed, not re-attached.
    """

    def __init__(self, frame: Callable[[], None], is_attached: Callable[[], bool]) -> None:
        self._frame = frame
        self._is_attached = is_attached
        self._pending: List[Callable[[], None]] = []
        self.state: LoopState = LoopState.RUNNING
        self.tick_count: int = 0

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    def call_next_tick(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def stop(self) -> None:
        if self.state is LoopState.STOPPED:
            return
        self.state = LoopState.STOPPED
        self._pending.clear()
        logger.debug("Render loop stopped.")

    def tick(self) -> None:
        if self.state is LoopState.STOPPED:
            return
        self.tick_count += 1

        # Callbacks queued while these run wait for the next tick
        pending, self._pending = self._pending, []
        for callback in pending:
            callback()

        if self._is_attached():
            self._frame()


class QtFrameDriver(QObject):
    """Calls `RenderLoop.tick()` from a repeating QTimer until the loop stops."""

    def __init__(self, loop: RenderLoop, interval_ms: int = config.FRAME_INTERVAL_MS, parent=None) -> None:
        super().__init__(parent)
        self._loop = loop
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _on_timeout(self) -> None:
        if not self._loop.running:
            self._timer.stop()
            return
        try:
            self._loop.tick()
        except Exception as e:
            # A failing frame must not kill the timer
            logger.exception(f"Render loop tick failed: {e}")
