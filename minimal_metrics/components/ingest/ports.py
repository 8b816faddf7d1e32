"""
Ingest component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from minimal_metrics.core.entities import Event


class EventSinkPort(Protocol):
    """Durable destination for flushed events."""

    def insert_event(self, event: Event) -> int:
        """Append one event. Returns the number of rows written."""
        ...

    def upsert_active_visitor(
        self,
        fingerprint: str,
        page: str,
        country: str | None,
        last_seen: int | None = None,
    ) -> None:
        """Insert or refresh the active-visitor row for a fingerprint."""
        ...


class TimerHandle(Protocol):
    """Armed single-shot timer."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


# (delay_seconds, callback) -> unstarted timer; threading.Timer satisfies this
TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]
