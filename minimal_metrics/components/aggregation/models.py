"""
Aggregation component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass

from minimal_metrics.core.periods import DAY_MS, HOUR_MS


@dataclass(frozen=True)
class AggregationConfig:
    """Retention and scheduling knobs for the aggregation engine."""

    raw_retention_hours: int = 24
    aggregated_retention_hours: int = 8760
    aggregation_interval_ms: int = HOUR_MS
    retention_interval_ms: int = DAY_MS
    # Raw events younger than this are left for the next cycle
    settle_ms: int = HOUR_MS


@dataclass(frozen=True)
class AggregationResult:
    """Outcome of one hourly aggregation cycle."""

    window_start: int
    select_before: int
    purge_before: int
    hours_written: int
    days_written: int
    events_purged: int


@dataclass(frozen=True)
class RetentionResult:
    """Outcome of one aggregate retention sweep."""

    cutoff_hour: str
    cutoff_date: str
    hourly_deleted: int
    daily_deleted: int
