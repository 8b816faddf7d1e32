"""
Interval scheduler for background maintenance jobs.

Runs a callable on a background thread at a fixed interval.

Key behaviors:
- Runs never overlap: a run that outlasts the interval delays the next one
- A failing run is logged and the next run proceeds on schedule
- stop() wakes the waiting thread immediately
- trigger_now() runs the job synchronously on the caller's thread
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class IntervalScheduler:
    """Fixed-interval, non-overlapping background runner."""

    def __init__(
        self,
        name: str,
        job: Callable[[], Any],
        interval_seconds: float,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            name: Label used in log lines and the thread name
            job: Callable to run each interval
            interval_seconds: Delay between the end of one run and the next
        """
        self._name = name
        self._job = job
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background scheduler."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name=f"scheduler-{self._name}", daemon=True
        )
        self._thread.start()
        self._running = True
        logger.info("%s scheduler started (interval: %.1fs)", self._name, self._interval)

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("%s scheduler stopped", self._name)

    def trigger_now(self) -> Any:
        """Run the job immediately; waits for an in-flight run to finish."""
        with self._run_lock:
            return self._job()

    @property
    def is_running(self) -> bool:
        """Check if scheduler is active."""
        return self._running

    def _poll_loop(self) -> None:
        """Background loop."""
        while not self._stop_event.wait(timeout=self._interval):
            try:
                with self._run_lock:
                    result = self._job()
                logger.debug("%s run finished: %s", self._name, result)
            except Exception:
                logger.exception("Error in %s scheduler run", self._name)
