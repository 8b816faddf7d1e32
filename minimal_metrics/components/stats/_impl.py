"""
StatsService - read-only dashboard queries.

Key behaviors:
- Period tokens map to [now - duration, now]; unknown tokens fall back to 7d
- List limits fall back to a per-endpoint default and are capped at 100
- hourly() always returns 24 buckets; a malformed date raises InvalidDateError
- Storage errors propagate; the HTTP layer turns them into a 500
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.ports.clock import ClockPort

from .models import InvalidDateError, StatsConfig, TimeRange
from .ports import DailyStatsPort, StatsQueryPort


def parse_time_range(
    period: str | None,
    now_ms: int,
    config: StatsConfig | None = None,
) -> TimeRange:
    config = config or StatsConfig()
    token = period if period in config.periods else config.default_period
    return TimeRange(period=token, start=now_ms - config.periods[token], end=now_ms)


def parse_limit(raw: Any, default: int, maximum: int) -> int:
    """Positive integer limit, falling back to default, capped at maximum."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value <= 0:
        return default
    return min(value, maximum)


def parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {raw!r}") from e


class StatsService:
    def __init__(
        self,
        queries: StatsQueryPort,
        daily: DailyStatsPort,
        clock: ClockPort | None = None,
        config: StatsConfig | None = None,
    ) -> None:
        self._queries = queries
        self._daily = daily
        self._clock = clock or SystemClock()
        self._config = config or StatsConfig()

    def time_range(self, period: str | None) -> TimeRange:
        return parse_time_range(period, self._clock.now_ms(), self._config)

    def realtime(self) -> dict[str, Any]:
        now_ms = self._clock.now_ms()
        return {
            "active_visitors": self._queries.count_active_visitors(now_ms // 1000),
            "timestamp": now_ms,
        }

    def overview(self, period: str | None = None, compare: bool = False) -> dict[str, Any]:
        window = self.time_range(period)
        comparison: dict[str, float] | None = None

        if compare:
            result = self._queries.period_comparison(window.start, window.end)
            totals = result["current"]
            comparison = {
                "page_views_change": result["change"]["page_views"],
                "visitors_change": result["change"]["unique_visitors"],
            }
        else:
            totals = self._queries.page_view_totals(window.start, window.end)

        page_views = totals["page_views"]
        visitors = totals["unique_visitors"]
        limit = self._config.overview_limit

        response: dict[str, Any] = {
            "period": window.period,
            "page_views": page_views,
            "unique_visitors": visitors,
            "pages_per_visitor": round(page_views / visitors, 2) if visitors else 0,
            "top_pages": self._queries.top_pages(window.start, window.end, limit),
            "top_referrers": self._queries.top_referrers(window.start, window.end, limit),
            "timestamp": window.end,
        }
        if comparison is not None:
            response["comparison"] = comparison
        return response

    def pages(self, period: str | None = None, limit: Any = None) -> dict[str, Any]:
        window = self.time_range(period)
        n = parse_limit(limit, self._config.pages_limit, self._config.max_limit)
        return {
            "period": window.period,
            "pages": self._queries.top_pages(window.start, window.end, n),
            "timestamp": window.end,
        }

    def referrers(self, period: str | None = None, limit: Any = None) -> dict[str, Any]:
        window = self.time_range(period)
        n = parse_limit(limit, self._config.referrers_limit, self._config.max_limit)
        return {
            "period": window.period,
            "referrers": self._queries.top_referrers(window.start, window.end, n),
            "timestamp": window.end,
        }

    def countries(self, period: str | None = None, limit: Any = None) -> dict[str, Any]:
        window = self.time_range(period)
        n = parse_limit(limit, 0, self._config.max_limit)
        return {
            "period": window.period,
            "countries": self._queries.top_countries(window.start, window.end, n or None),
            "timestamp": window.end,
        }

    def campaigns(self, period: str | None = None, limit: Any = None) -> dict[str, Any]:
        window = self.time_range(period)
        n = parse_limit(limit, self._config.campaigns_limit, self._config.max_limit)
        return {
            "period": window.period,
            "campaigns": self._queries.top_campaigns(window.start, window.end, n),
            "timestamp": window.end,
        }

    def hourly(self, day: str | None = None) -> dict[str, Any]:
        target = parse_date(day) if day else self._clock.now_utc().date()
        return {
            "date": target.isoformat(),
            "hours": self._queries.hourly_breakdown(target),
            "timestamp": self._clock.now_ms(),
        }

    def daily(self, days: Any = None) -> dict[str, Any]:
        """Stored daily rollups for the last N UTC days, zero-filled."""
        n = parse_limit(days, self._config.daily_days, self._config.max_daily_days)
        end = self._clock.now_utc().date()
        start = end - timedelta(days=n - 1)

        listed = self._daily.list_daily(start.isoformat(), end.isoformat())
        stored = {row.date: row for row in listed}
        rows = []
        for offset in range(n):
            key = (start + timedelta(days=offset)).isoformat()
            row = stored.get(key)
            rows.append(
                {
                    "date": key,
                    "page_views": row.page_views if row else 0,
                    "unique_visitors": row.unique_visitors if row else 0,
                }
            )
        return {"days": rows, "timestamp": self._clock.now_ms()}
