from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RecurringTask:
    """Calls ``callback`` every ``interval_sec`` on a daemon thread until cancelled.

    The first call happens one full interval after :meth:`start`. Exceptions
    raised by the callback are logged and the schedule keeps running.
    """

    def __init__(self, name: str, interval_sec: float, callback: Callable[[], object]):
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.name = name
        self.interval_sec = interval_sec
        self.callback = callback
        self.fire_count = 0
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"task {self.name} already started")
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._cancelled.is_set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._cancelled.wait(self.interval_sec):
            self.fire_count += 1
            try:
                self.callback()
            except Exception:
                logger.exception("Scheduled task %s failed", self.name)
