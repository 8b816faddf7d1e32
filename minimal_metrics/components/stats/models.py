"""
Stats component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from minimal_metrics.core.periods import DAY_MS, HOUR_MS

DEFAULT_PERIOD = "7d"

PERIODS: dict[str, int] = {
    "1h": HOUR_MS,
    "24h": DAY_MS,
    "7d": 7 * DAY_MS,
    "30d": 30 * DAY_MS,
    "90d": 90 * DAY_MS,
}


@dataclass(frozen=True)
class TimeRange:
    """Inclusive [start, end] window in ms, tagged with its period token."""

    period: str
    start: int
    end: int


@dataclass(frozen=True)
class StatsConfig:
    """Default and maximum row counts per list endpoint."""

    overview_limit: int = 5
    pages_limit: int = 20
    referrers_limit: int = 20
    campaigns_limit: int = 50
    max_limit: int = 100
    daily_days: int = 30
    max_daily_days: int = 366
    periods: dict[str, int] = field(default_factory=lambda: dict(PERIODS))
    default_period: str = DEFAULT_PERIOD


class InvalidDateError(ValueError):
    """A date query parameter is not a valid YYYY-MM-DD date."""
