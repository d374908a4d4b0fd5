"""Thread-pool runner for background import jobs."""

from __future__ import annotations

import logging
import threading
from concurrent import futures
from typing import Callable, Optional

from fintrack.domain.errors import InvalidStateError

logger = logging.getLogger(__name__)

# A task receives the event that requests cancellation at the next row boundary.
Task = Callable[[threading.Event], None]


class ImportRunner:
    """Runs at most one background task per import job id.

    Tasks are plain callables executed on a ThreadPoolExecutor. Cancellation
    is cooperative: ``cancel`` sets the task's event and the task stops at
    its next row boundary.
    """

    def __init__(self, max_workers: int = 4):
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="fintrack-import"
        )
        self._lock = threading.Lock()
        self._tasks: dict[str, tuple[futures.Future, threading.Event]] = {}

    def submit(self, job_id: str, task: Task) -> futures.Future:
        """Start task for job_id.

        Raises:
            InvalidStateError: If a task for job_id is still running
            RuntimeError: If the runner has been shut down
        """
        with self._lock:
            existing = self._tasks.get(job_id)
            if existing is not None and not existing[0].done():
                raise InvalidStateError(f"Import job {job_id} is already being processed")
            cancel_event = threading.Event()
            future = self._executor.submit(task, cancel_event)
            self._tasks[job_id] = (future, cancel_event)

        future.add_done_callback(lambda f: self._on_done(job_id, f))
        logger.debug("Import task submitted", extra={"job_id": job_id, "component": "ImportRunner"})
        return future

    def _on_done(self, job_id: str, future: futures.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                "Import task raised",
                exc_info=error,
                extra={"job_id": job_id, "component": "ImportRunner"},
            )

    def is_running(self, job_id: str) -> bool:
        """Whether a task for job_id has been submitted and not finished."""
        with self._lock:
            entry = self._tasks.get(job_id)
        return entry is not None and not entry[0].done()

    def cancel(self, job_id: str) -> bool:
        """Request cancellation of a running task.

        Returns:
            False if no task for job_id is running
        """
        with self._lock:
            entry = self._tasks.get(job_id)
        if entry is None or entry[0].done():
            return False
        entry[1].set()
        logger.info("Import cancellation requested", extra={"job_id": job_id, "component": "ImportRunner"})
        return True

    def wait(self, job_id: str, timeout: Optional[float] = None) -> None:
        """Block until the task for job_id finishes.

        Raises:
            concurrent.futures.TimeoutError: If timeout elapses first
            Exception: Whatever the task itself raised
        """
        with self._lock:
            entry = self._tasks.get(job_id)
        if entry is None:
            return
        entry[0].result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Cancel every running task and stop accepting new ones."""
        with self._lock:
            entries = list(self._tasks.values())
        for future, cancel_event in entries:
            if not future.done():
                cancel_event.set()
        self._executor.shutdown(wait=wait)
