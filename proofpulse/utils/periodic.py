# ==============================================================================
# Periodic Background Task
# ==============================================================================
"""
Run a function on a fixed interval in a daemon thread.

Used for the cache expiry sweep, the session index cleanup and the stats
aggregation pass. ``stop()`` wakes the thread immediately instead of waiting
out the remaining interval.

Usage::

    task = PeriodicTask(cache.sweep, interval=60, name="ttl-cache-sweep")
    task.start()
    ...
    task.stop()
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Calls ``func`` every ``interval`` seconds until stopped.

    Args:
        func: Zero-argument callable to run on each tick.
        interval: Seconds between the end of one run and the start of the next.
        name: Thread name, also used in log messages.
    """

    def __init__(self, func: Callable[[], object], interval: float, name: str) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self._func = func
        self.interval = interval
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Calling start twice is a no-op."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("Started %s (interval=%ss)", self.name, self.interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the thread to exit and wait for it."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Stopped %s", self.name)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._func()
            except Exception:
                # Keep ticking; one failed pass must not end the task
                logger.exception("%s run failed", self.name)
