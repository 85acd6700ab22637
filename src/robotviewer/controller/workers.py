"""
Background Workers (Threading)
==============================
Runs robot imports off the GUI thread and hands the result back to it.

Why is this file needed?
------------------------
1. Responsiveness: fetching and parsing a robot description plus its meshes
   can take seconds; doing it on the main thread would freeze the render loop.
2. Signals: the worker reports completion and failure through Qt Signals, so
   the result is delivered back into the GUI thread's event loop (queued
   connection) where all scene mutation happens.

Classes:
    ImportWorker: QThread running a single import job.
    ThreadedImportExecutor: Starts workers and routes their signals.
    InlineImportExecutor: Runs the job synchronously (off-screen use).
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Protocol

from PySide6.QtCore import QObject, QThread, Signal, Slot

logger = logging.getLogger(__name__)

ImportJob = Callable[[], Any]
DoneCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class ImportExecutor(Protocol):
    def submit(self, job: ImportJob, on_done: DoneCallback, on_error: ErrorCallback) -> None:
        ...

    def shutdown(self) -> None:
        ...


class ImportWorker(QThread):
    # Signals to hand results back to the GUI thread
    loaded = Signal(object)
    error_occurred = Signal(object)

    def __init__(self, job: ImportJob, on_done: DoneCallback, on_error: ErrorCallback) -> None:
        super().__init__()
        self.job = job
        self.on_done = on_done
        self.on_error = on_error

    def run(self) -> None:
        try:
            logger.debug("Starting import in background thread...")
            result = self.job()
            self.loaded.emit(result)
        except Exception as e:
            logger.error(f"Error in ImportWorker: {e}")
            self.error_occurred.emit(e)


class ThreadedImportExecutor(QObject):
    """
    One QThread per import. Workers are not cancelled when superseded;
    the caller discards stale results itself.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._workers: Dict[int, ImportWorker] = {}
        self._closed: bool = False

    def submit(self, job: ImportJob, on_done: DoneCallback, on_error: ErrorCallback) -> None:
        if self._closed:
            logger.debug("Executor is shut down, import not started.")
            return
        worker = ImportWorker(job, on_done, on_error)
        # Slots on this object run in the GUI thread
        worker.loaded.connect(self._on_loaded)
        worker.error_occurred.connect(self._on_error)
        worker.finished.connect(self._on_finished)
        self._workers[id(worker)] = worker
        worker.start()

    @property
    def active_count(self) -> int:
        return len(self._workers)

    def wait_all(self, timeout_ms: int = 5000) -> None:
        for worker in list(self._workers.values()):
            worker.wait(timeout_ms)

    def shutdown(self) -> None:
        """
        Blocks until every running import has returned, then drops the workers.

        A QThread destroyed while running aborts the process, so the owner
        calls this before it goes away. Results arriving afterwards are
        not delivered.
        """
        self._closed = True
        if self.active_count:
            logger.info(f"Waiting for {self.active_count} running import(s) to finish...")
        for worker in list(self._workers.values()):
            worker.wait()
        self._workers.clear()

    @Slot(object)
    def _on_loaded(self, result: Any) -> None:
        worker = self.sender()
        if not self._closed and isinstance(worker, ImportWorker):
            worker.on_done(result)

    @Slot(object)
    def _on_error(self, error: Exception) -> None:
        worker = self.sender()
        if not self._closed and isinstance(worker, ImportWorker):
            worker.on_error(error)

    @Slot()
    def _on_finished(self) -> None:
        worker = self.sender()
        if isinstance(worker, ImportWorker):
            self._workers.pop(id(worker), None)
            worker.deleteLater()


class InlineImportExecutor:
    """Runs the import immediately on the calling thread."""

    def submit(self, job: ImportJob, on_done: DoneCallback, on_error: ErrorCallback) -> None:
        try:
            result = job()
        except Exception as e:
            logger.error(f"Import failed: {e}")
            on_error(e)
            return
        on_done(result)

    def shutdown(self) -> None:
        pass
