"""
Time bucket and period arithmetic shared by storage, aggregation and stats.

All bucket keys are UTC:
- hour key: `YYYY-MM-DD HH:00:00`
- day key:  `YYYY-MM-DD`
"""

from __future__ import annotations

from datetime import UTC, date, datetime

SECOND_MS = 1000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000

HOUR_KEY_FORMAT = "%Y-%m-%d %H:00:00"
DAY_KEY_FORMAT = "%Y-%m-%d"


def to_utc(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / SECOND_MS, tz=UTC)


def hour_key(timestamp_ms: int) -> str:
    return to_utc(timestamp_ms).strftime(HOUR_KEY_FORMAT)


def day_key(timestamp_ms: int) -> str:
    return to_utc(timestamp_ms).strftime(DAY_KEY_FORMAT)


def floor_hour(timestamp_ms: int) -> int:
    return timestamp_ms - timestamp_ms % HOUR_MS


def ceil_hour(timestamp_ms: int) -> int:
    floored = floor_hour(timestamp_ms)
    return floored if floored == timestamp_ms else floored + HOUR_MS


def day_bounds(day: date) -> tuple[int, int]:
    """Inclusive-exclusive ms bounds of a UTC calendar day."""
    start = int(datetime(day.year, day.month, day.day, tzinfo=UTC).timestamp() * SECOND_MS)
    return start, start + DAY_MS


def percent_change(current: int, previous: int) -> float:
    """
    Relative change from previous to current, in percent (one decimal).

    A rise from zero reports 100; zero to zero reports 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)
