"""
Domain entities for minimal-metrics.

- Event: raw page view or custom event (append-only, time-bounded)
- ActiveVisitor: real-time presence row, one per fingerprint
- HourlyAggregate / DailyAggregate: one row per time bucket

Invariants:
- I1: no raw IP or session token is ever stored; only the fingerprint
- I2: an Event is immutable once persisted
- I3: aggregate rows are keyed by bucket and overwritten, never duplicated
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PAGEVIEW = "pageview"


# --- Raw Event ---


class Event(BaseModel):
    """
    A single validated, anonymized event ready for persistence.

    `timestamp` is milliseconds since the Unix epoch.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    page_path: str
    visitor_fingerprint: str = Field(min_length=16, max_length=16)
    referrer_label: str | None = None
    country: str | None = None
    screen_size: str | None = None
    timezone: str | None = None
    event_name: str = PAGEVIEW
    event_properties: dict[str, Any] | None = None

    # Campaign attribution
    campaign_source: str | None = None
    campaign_medium: str | None = None
    campaign_name: str | None = None
    campaign_term: str | None = None
    campaign_content: str | None = None


# --- Real-time Presence ---


class ActiveVisitor(BaseModel):
    """Visitor seen recently (last_seen in seconds since epoch)."""

    visitor_fingerprint: str
    last_page: str
    country: str | None = None
    last_seen: int
    page_count: int = 1


# --- Aggregates ---


class HourlyAggregate(BaseModel):
    """Hourly rollup keyed by UTC hour (`YYYY-MM-DD HH:00:00`)."""

    hour: str
    page_views: int = 0
    unique_visitors: int = 0


class DailyAggregate(BaseModel):
    """Daily rollup keyed by UTC date (`YYYY-MM-DD`)."""

    date: str
    page_views: int = 0
    unique_visitors: int = 0
