"""
IngestionBuffer - in-memory event queue with timed batch flush.

Key behaviors:
- enqueue never blocks and never fails
- The first enqueue into an empty buffer arms one single-shot timer;
  later enqueues do not rearm it
- When the timer fires, the whole buffer is swept and the handle cleared
- Each swept event is persisted independently, in arrival order; a failure
  is logged and the rest of the batch continues; nothing is requeued
- flush() drains synchronously and cancels any armed timer (shutdown path)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import partial

from minimal_metrics.core.entities import Event

from .models import FlushResult
from .ports import EventSinkPort, TimerFactory, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_DELAY_SECONDS = 5.0


def _thread_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


class IngestionBuffer:
    """
    Owns the queue of accepted, not-yet-persisted events.

    One instance per application context; tests build their own with a
    fake timer factory to drive flushes deterministically.
    """

    def __init__(
        self,
        sink: EventSinkPort,
        flush_delay_seconds: float = DEFAULT_FLUSH_DELAY_SECONDS,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._sink = sink
        self._flush_delay = flush_delay_seconds
        self._timer_factory = timer_factory or _thread_timer
        self._events: list[Event] = []
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._lock = threading.Lock()
        # Serializes persistence so batches land in sweep order
        self._flush_lock = threading.Lock()

    def enqueue(self, event: Event) -> None:
        """Append an event and arm the flush timer if none is pending."""
        with self._lock:
            self._events.append(event)
            if self._timer is None:
                self._generation += 1
                self._timer = self._timer_factory(
                    self._flush_delay, partial(self._on_timer, self._generation)
                )
                self._timer.start()

    def flush(self) -> FlushResult:
        """Drain every buffered event now, bypassing the timer."""
        with self._flush_lock:
            with self._lock:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
                batch = self._sweep()
            return self._persist(batch)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def timer_armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _on_timer(self, generation: int) -> None:
        with self._flush_lock:
            with self._lock:
                if generation != self._generation or self._timer is None:
                    # Cancelled by a forced flush after it had already fired
                    return
                self._timer = None
                batch = self._sweep()
            result = self._persist(batch)
        if result.failed:
            logger.warning(
                "Flushed %d events, %d failed to persist", result.persisted, result.failed
            )

    def _sweep(self) -> list[Event]:
        batch = self._events
        self._events = []
        return batch

    def _persist(self, batch: list[Event]) -> FlushResult:
        persisted = 0
        failed = 0
        for event in batch:
            try:
                self._sink.insert_event(event)
                self._sink.upsert_active_visitor(
                    event.visitor_fingerprint,
                    event.page_path,
                    event.country,
                )
                persisted += 1
            except Exception:
                failed += 1
                logger.exception("Failed to insert event for %s", event.page_path)
        return FlushResult(persisted=persisted, failed=failed)
