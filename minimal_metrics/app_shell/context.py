from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.adapters.scheduler import IntervalScheduler
from minimal_metrics.adapters.sqlite.migrator import SQLiteMigrator
from minimal_metrics.adapters.sqlite_db import (
    SQLiteAggregateRepo,
    SQLiteEventRepo,
    SQLiteUnitOfWork,
)
from minimal_metrics.components.aggregation import AggregationConfig, AggregationService
from minimal_metrics.components.export import ExportService
from minimal_metrics.components.ingest import (
    CollectService,
    FlushResult,
    IngestionBuffer,
    TimerFactory,
)
from minimal_metrics.components.stats import StatsConfig, StatsService
from minimal_metrics.ports.clock import ClockPort
from minimal_metrics.rules.models import Rules

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything one running collector owns; built once, closed once."""

    db_path: str
    rules: Rules
    clock: ClockPort
    events: SQLiteEventRepo
    aggregates: SQLiteAggregateRepo
    buffer: IngestionBuffer
    collect_service: CollectService
    aggregation_service: AggregationService
    stats_service: StatsService
    export_service: ExportService
    schedulers: list[IntervalScheduler] = field(default_factory=list)
    started_at_ms: int = 0

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        clock: ClockPort | None = None,
        timer_factory: TimerFactory | None = None,
        migrate: bool = True,
    ) -> AppContext:
        clock = clock or SystemClock()

        if migrate:
            SQLiteMigrator(db_path).run_migrations()

        events = SQLiteEventRepo(db_path, clock=clock)
        aggregates = SQLiteAggregateRepo(db_path)

        buffer = IngestionBuffer(
            events,
            flush_delay_seconds=rules.ingest.flush_delay_ms / 1000,
            timer_factory=timer_factory,
        )
        aggregation_config = AggregationConfig(
            raw_retention_hours=rules.retention.raw_hours,
            aggregated_retention_hours=rules.retention.aggregated_hours,
            aggregation_interval_ms=rules.aggregation.interval_ms,
            retention_interval_ms=rules.aggregation.retention_sweep_interval_ms,
        )
        stats_config = StatsConfig(
            max_limit=rules.stats.max_limit,
            default_period=rules.stats.default_period,
        )

        return cls(
            db_path=db_path,
            rules=rules,
            clock=clock,
            events=events,
            aggregates=aggregates,
            buffer=buffer,
            collect_service=CollectService(buffer, clock),
            aggregation_service=AggregationService(
                lambda: SQLiteUnitOfWork(db_path, clock), clock, aggregation_config
            ),
            stats_service=StatsService(events, aggregates, clock, stats_config),
            export_service=ExportService(events, clock),
            started_at_ms=clock.now_ms(),
        )

    def start(self) -> None:
        """Start the aggregation and retention background jobs."""
        if self.schedulers:
            return
        config = self.aggregation_service.config
        self.schedulers = [
            IntervalScheduler(
                "aggregation",
                self.aggregation_service.run_hourly_cycle,
                config.aggregation_interval_ms / 1000,
            ),
            IntervalScheduler(
                "retention",
                self.aggregation_service.run_retention_sweep,
                config.retention_interval_ms / 1000,
            ),
        ]
        for scheduler in self.schedulers:
            scheduler.start()

    def close(self) -> FlushResult:
        """Stop background jobs and drain the buffer to storage."""
        for scheduler in self.schedulers:
            scheduler.stop()
        self.schedulers = []

        result = self.buffer.flush()
        if result.total:
            logger.info(
                "Flushed %d buffered events on shutdown (%d failed)",
                result.persisted,
                result.failed,
            )
        return result

    def uptime_seconds(self) -> float:
        return (self.clock.now_ms() - self.started_at_ms) / 1000

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": self.clock.now_ms(),
            "uptime": self.uptime_seconds(),
        }
