"""
Stats component - dashboard query surface.

Invariants:
- I1: read-only; never writes to storage
- I2: no partial results; a failing query fails the whole response
"""

from ._impl import StatsService, parse_date, parse_limit, parse_time_range
from .models import (
    DEFAULT_PERIOD,
    PERIODS,
    InvalidDateError,
    StatsConfig,
    TimeRange,
)
from .ports import DailyStatsPort, StatsQueryPort

__all__ = [
    "StatsService",
    "parse_date",
    "parse_limit",
    "parse_time_range",
    "DEFAULT_PERIOD",
    "PERIODS",
    "InvalidDateError",
    "StatsConfig",
    "TimeRange",
    "DailyStatsPort",
    "StatsQueryPort",
]
