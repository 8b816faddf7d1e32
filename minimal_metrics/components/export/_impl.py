"""
ExportService - flat downloads of dashboard data as JSON or CSV.

Key behaviors:
- Periods 7d/30d/90d; anything else falls back to 30d
- overview is JSON only; list types render to CSV with fixed column order
- Filenames follow `minimal-metrics-{type}-{period}.{ext}`
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.components.stats import StatsQueryPort, parse_time_range
from minimal_metrics.components.stats.models import StatsConfig
from minimal_metrics.core.periods import to_utc
from minimal_metrics.ports.clock import ClockPort

from .models import CSV_COLUMNS, EXPORT_TYPES, ExportConfig, ExportError, ExportResult


def format_csv(rows: list[dict[str, Any]], columns: list[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=columns, extrasaction="ignore", lineterminator="\n"
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({col: "" if row.get(col) is None else row[col] for col in columns})
    return buffer.getvalue()


class ExportService:
    def __init__(
        self,
        queries: StatsQueryPort,
        clock: ClockPort | None = None,
        config: ExportConfig | None = None,
    ) -> None:
        self._queries = queries
        self._clock = clock or SystemClock()
        self._config = config or ExportConfig()
        self._ranges = StatsConfig(
            periods=self._config.periods, default_period=self._config.default_period
        )

    def collect(self, export_type: str, period: str | None = None) -> tuple[str, Any]:
        """Resolve the period and gather the rows (or document) for an export type."""
        if export_type not in EXPORT_TYPES:
            raise ExportError("Invalid export type")

        window = parse_time_range(period, self._clock.now_ms(), self._ranges)
        start, end = window.start, window.end
        limit = self._config.row_limit

        if export_type == "overview":
            totals = self._queries.page_view_totals(start, end)
            top = self._config.overview_limit
            data: Any = {
                "summary": {
                    "period": window.period,
                    "start_date": to_utc(start).isoformat(),
                    "end_date": to_utc(end).isoformat(),
                    "total_page_views": totals["page_views"],
                    "unique_visitors": totals["unique_visitors"],
                },
                "top_pages": self._queries.top_pages(start, end, top),
                "top_referrers": self._queries.top_referrers(start, end, top),
                "countries": self._queries.top_countries(start, end),
            }
        elif export_type == "pages":
            data = self._queries.top_pages(start, end, limit)
        elif export_type == "referrers":
            data = self._queries.top_referrers(start, end, limit)
        elif export_type == "countries":
            data = self._queries.top_countries(start, end, limit)
        else:
            data = self._queries.top_campaigns(start, end, limit)

        return window.period, data

    def export(
        self,
        export_type: str,
        fmt: str = "json",
        period: str | None = None,
    ) -> ExportResult:
        if fmt == "csv" and export_type == "overview":
            raise ExportError("CSV format not available for overview export")

        resolved_period, data = self.collect(export_type, period)
        filename = f"minimal-metrics-{export_type}-{resolved_period}"

        if fmt == "csv":
            return ExportResult(
                content=format_csv(data, CSV_COLUMNS[export_type]),
                media_type="text/csv",
                filename=f"{filename}.csv",
            )
        return ExportResult(
            content=json.dumps(data, indent=2),
            media_type="application/json",
            filename=f"{filename}.json",
        )
