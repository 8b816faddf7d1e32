"""
Aggregation component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any, Protocol

from minimal_metrics.core.entities import DailyAggregate, HourlyAggregate


class RawEventSourcePort(Protocol):
    """Read/purge access to the raw event log."""

    def hourly_buckets(self, window_start: int, select_before: int) -> list[HourlyAggregate]:
        """Pageview counts per UTC hour in [window_start, select_before)."""
        ...

    def distinct_visitors_on(self, day: date, window_start: int, select_before: int) -> int:
        """Distinct fingerprints seen on a UTC day inside the window."""
        ...

    def delete_events_before(self, cutoff_ms: int) -> int:
        """Delete raw events older than cutoff. Returns rows deleted."""
        ...


class AggregateStorePort(Protocol):
    """Keyed rollup storage."""

    def upsert_hourly(self, aggregate: HourlyAggregate) -> None: ...

    def sum_hourly_page_views(self, day: date) -> int: ...

    def upsert_daily(self, aggregate: DailyAggregate) -> None: ...

    def delete_hourly_before(self, hour: str) -> int: ...

    def delete_daily_before(self, day: str) -> int: ...


class AggregationUnitOfWorkPort(Protocol):
    """Transaction scope shared by every step of a cycle."""

    @property
    def events(self) -> RawEventSourcePort: ...

    @property
    def aggregates(self) -> AggregateStorePort: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def __enter__(self) -> AggregationUnitOfWorkPort: ...

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...


UnitOfWorkFactory = Callable[[], AggregationUnitOfWorkPort]
