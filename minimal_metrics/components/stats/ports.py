"""
Stats component port definitions.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from minimal_metrics.core.entities import DailyAggregate


class StatsQueryPort(Protocol):
    """Read-side queries over raw events and presence."""

    def count_active_visitors(self, now_s: int | None = None) -> int: ...

    def page_view_totals(self, start: int, end: int) -> dict[str, int]: ...

    def period_comparison(self, start: int, end: int) -> dict[str, Any]: ...

    def top_pages(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]: ...

    def top_referrers(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]: ...

    def top_countries(
        self, start: int, end: int, limit: int | None = None
    ) -> list[dict[str, Any]]: ...

    def top_campaigns(self, start: int, end: int, limit: int = 50) -> list[dict[str, Any]]: ...

    def hourly_breakdown(self, day: date) -> list[dict[str, Any]]: ...


class DailyStatsPort(Protocol):
    """Stored daily rollups."""

    def list_daily(self, start_date: str, end_date: str) -> list[DailyAggregate]: ...
