"""Background execution of blocking calls with results delivered on the UI thread."""

import logging
import threading
from queue import Empty, Queue
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class TaskRunner(Protocol):
    """Runs an operation off the UI thread and reports back through callbacks."""

    def submit(
        self,
        operation: Callable[[], Any],
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        ...


class ThreadedTaskRunner:
    """Run operations on worker threads and hand results back via ``schedule``.

    ``schedule(delay_ms, callback)`` must run ``callback`` on the UI thread,
    e.g. ``widget.after``. Callbacks are only ever invoked from the poll loop.
    """

    def __init__(self, schedule: Callable[[int, Callable[[], None]], Any], poll_interval: int = 50):
        self.schedule = schedule
        self.poll_interval = poll_interval
        self.queue: Queue = Queue()
        self._outstanding = 0
        self._polling = False

    def submit(
        self,
        operation: Callable[[], Any],
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        def worker():
            try:
                result = operation()
                self.queue.put((on_success, result))
            except Exception as exc:  # pylint: disable=broad-except
                self.queue.put((on_error, exc))

        self._outstanding += 1
        threading.Thread(target=worker, daemon=True).start()
        if not self._polling:
            self._polling = True
            self.schedule(self.poll_interval, self._check_queue)

    def _check_queue(self) -> None:
        while True:
            try:
                callback, payload = self.queue.get_nowait()
            except Empty:
                break
            self._outstanding -= 1
            try:
                callback(payload)
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Task callback failed: %s", exc)
        if self._outstanding > 0:
            self.schedule(self.poll_interval, self._check_queue)
        else:
            self._polling = False
