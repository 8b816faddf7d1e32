"""
Tests for the stats query service against an in-memory query port.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from minimal_metrics.adapters.clock import FixedClock
from minimal_metrics.components.stats import (
    InvalidDateError,
    StatsService,
    parse_limit,
    parse_time_range,
)
from minimal_metrics.core.entities import DailyAggregate
from minimal_metrics.core.periods import DAY_MS, HOUR_MS


class StubQueries:
    """Returns canned rows and records the arguments it was called with."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.totals = {"page_views": 10, "unique_visitors": 4}

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def count_active_visitors(self, now_s: int | None = None) -> int:
        self._record("active", now_s)
        return 3

    def page_view_totals(self, start: int, end: int) -> dict[str, int]:
        self._record("totals", start, end)
        return self.totals

    def period_comparison(self, start: int, end: int) -> dict[str, Any]:
        self._record("compare", start, end)
        return {
            "current": self.totals,
            "previous": {"page_views": 0, "unique_visitors": 2},
            "change": {"page_views": 100.0, "unique_visitors": 100.0},
        }

    def top_pages(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        self._record("pages", start, end, limit)
        return [{"page_url": "/", "views": 10, "unique_visitors": 4}]

    def top_referrers(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        self._record("referrers", start, end, limit)
        return [{"referrer": "Direct", "visits": 10, "unique_visitors": 4}]

    def top_countries(
        self, start: int, end: int, limit: int | None = None
    ) -> list[dict[str, Any]]:
        self._record("countries", start, end, limit)
        return []

    def top_campaigns(self, start: int, end: int, limit: int = 50) -> list[dict[str, Any]]:
        self._record("campaigns", start, end, limit)
        return []

    def hourly_breakdown(self, day: date) -> list[dict[str, Any]]:
        self._record("hourly", day)
        return [{"hour": f"{h:02d}", "page_views": 0, "unique_visitors": 0} for h in range(24)]

    def list_daily(self, start_date: str, end_date: str) -> list[DailyAggregate]:
        self._record("daily", start_date, end_date)
        return [DailyAggregate(date=end_date, page_views=7, unique_visitors=3)]


@pytest.fixture
def queries() -> StubQueries:
    return StubQueries()


@pytest.fixture
def service(queries: StubQueries, clock: FixedClock) -> StatsService:
    return StatsService(queries, queries, clock)


class TestParsing:
    @pytest.mark.parametrize(
        ("period", "duration"),
        [("1h", HOUR_MS), ("24h", DAY_MS), ("7d", 7 * DAY_MS), ("30d", 30 * DAY_MS)],
    )
    def test_known_periods(self, period: str, duration: int) -> None:
        window = parse_time_range(period, 1_000_000_000_000)
        assert window.period == period
        assert window.end - window.start == duration

    def test_unknown_period_defaults_to_7d(self) -> None:
        window = parse_time_range("1y", 1_000_000_000_000)
        assert window.period == "7d"
        assert window.end - window.start == 7 * DAY_MS

    def test_limit_parsing(self) -> None:
        assert parse_limit(None, 20, 100) == 20
        assert parse_limit("abc", 20, 100) == 20
        assert parse_limit("0", 20, 100) == 20
        assert parse_limit("15", 20, 100) == 15
        assert parse_limit("500", 20, 100) == 100


class TestStatsService:
    def test_realtime(self, service: StatsService, clock: FixedClock) -> None:
        result = service.realtime()
        assert result == {"active_visitors": 3, "timestamp": clock.now_ms()}

    def test_overview_without_compare(self, service: StatsService) -> None:
        result = service.overview("30d")
        assert result["period"] == "30d"
        assert result["page_views"] == 10
        assert result["unique_visitors"] == 4
        assert result["pages_per_visitor"] == 2.5
        assert "comparison" not in result

    def test_overview_with_compare(self, service: StatsService) -> None:
        result = service.overview("7d", compare=True)
        assert result["comparison"] == {"page_views_change": 100.0, "visitors_change": 100.0}

    def test_overview_no_visitors(self, service: StatsService, queries: StubQueries) -> None:
        queries.totals = {"page_views": 0, "unique_visitors": 0}
        assert service.overview()["pages_per_visitor"] == 0

    def test_campaign_limit_capped(self, service: StatsService, queries: StubQueries) -> None:
        service.campaigns("7d", "1000")
        assert queries.calls[-1][1][2] == 100

    def test_countries_unlimited_by_default(
        self, service: StatsService, queries: StubQueries
    ) -> None:
        service.countries("7d")
        assert queries.calls[-1][1][2] is None

    def test_hourly_defaults_to_today_utc(
        self, service: StatsService, clock: FixedClock
    ) -> None:
        result = service.hourly()
        assert result["date"] == clock.now_utc().date().isoformat()
        assert len(result["hours"]) == 24

    def test_hourly_bad_date(self, service: StatsService) -> None:
        with pytest.raises(InvalidDateError):
            service.hourly("2026-13-40")

    def test_daily_zero_fills(self, service: StatsService, clock: FixedClock) -> None:
        result = service.daily("3")
        days = result["days"]
        assert len(days) == 3
        assert days[-1] == {
            "date": clock.now_utc().date().isoformat(),
            "page_views": 7,
            "unique_visitors": 3,
        }
        assert days[0]["page_views"] == 0
