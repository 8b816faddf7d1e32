"""
AggregationService - rolls raw events into hourly and daily aggregates.

One hourly cycle, against a single `now` snapshot and a single transaction:
1. select raw pageviews in [window_start, now - settle) grouped by UTC hour
2. overwrite each hour bucket, then recompute the touched daily rows
3. purge raw events older than (now - settle - raw retention)

Key behaviors:
- window_start is the first full hour at or after the purge boundary, so a
  bucket already partially purged by an earlier cycle is never rewritten
  with a partial count
- Re-running a cycle over unchanged data leaves every row unchanged
- Daily page views are the sum of the day's hourly rows; daily unique
  visitors only ever grow (max of stored and raw-derived distinct count)
- Any failure rolls back the whole cycle and propagates to the caller
"""

from __future__ import annotations

import logging
from datetime import date

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.core.entities import DailyAggregate
from minimal_metrics.core.periods import HOUR_MS, ceil_hour, day_key, hour_key
from minimal_metrics.ports.clock import ClockPort

from .models import AggregationConfig, AggregationResult, RetentionResult
from .ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class AggregationService:
    """Periodic compaction and retention over the raw event log."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort | None = None,
        config: AggregationConfig | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._config = config or AggregationConfig()

    @property
    def config(self) -> AggregationConfig:
        return self._config

    def run_hourly_cycle(self) -> AggregationResult:
        now_ms = self._clock.now_ms()
        select_before = now_ms - self._config.settle_ms
        purge_before = select_before - self._config.raw_retention_hours * HOUR_MS
        window_start = ceil_hour(purge_before)

        with self._uow_factory() as uow:
            buckets = uow.events.hourly_buckets(window_start, select_before)
            for bucket in buckets:
                uow.aggregates.upsert_hourly(bucket)

            days = sorted({date.fromisoformat(bucket.hour[:10]) for bucket in buckets})
            for day in days:
                uow.aggregates.upsert_daily(
                    DailyAggregate(
                        date=day.isoformat(),
                        page_views=uow.aggregates.sum_hourly_page_views(day),
                        unique_visitors=uow.events.distinct_visitors_on(
                            day, window_start, select_before
                        ),
                    )
                )

            purged = uow.events.delete_events_before(purge_before)
            uow.commit()

        result = AggregationResult(
            window_start=window_start,
            select_before=select_before,
            purge_before=purge_before,
            hours_written=len(buckets),
            days_written=len(days),
            events_purged=purged,
        )
        logger.info(
            "Aggregated %d hours (%d days), purged %d raw events",
            result.hours_written,
            result.days_written,
            result.events_purged,
        )
        return result

    def run_retention_sweep(self) -> RetentionResult:
        cutoff_ms = self._clock.now_ms() - self._config.aggregated_retention_hours * HOUR_MS
        cutoff_hour = hour_key(cutoff_ms)
        cutoff_date = day_key(cutoff_ms)

        with self._uow_factory() as uow:
            hourly_deleted = uow.aggregates.delete_hourly_before(cutoff_hour)
            daily_deleted = uow.aggregates.delete_daily_before(cutoff_date)
            uow.commit()

        logger.info(
            "Retention sweep removed %d hourly and %d daily rows (cutoff %s)",
            hourly_deleted,
            daily_deleted,
            cutoff_hour,
        )
        return RetentionResult(
            cutoff_hour=cutoff_hour,
            cutoff_date=cutoff_date,
            hourly_deleted=hourly_deleted,
            daily_deleted=daily_deleted,
        )
