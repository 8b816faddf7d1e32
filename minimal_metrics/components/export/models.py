"""
Export component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from minimal_metrics.core.periods import DAY_MS

EXPORT_PERIODS: dict[str, int] = {
    "7d": 7 * DAY_MS,
    "30d": 30 * DAY_MS,
    "90d": 90 * DAY_MS,
}

CSV_COLUMNS: dict[str, list[str]] = {
    "pages": ["page_url", "views", "unique_visitors"],
    "referrers": ["referrer", "visits", "unique_visitors"],
    "countries": ["country", "visits", "unique_visitors"],
    "campaigns": ["utm_source", "utm_medium", "utm_campaign", "visits", "unique_visitors"],
}

EXPORT_TYPES = ("overview", *CSV_COLUMNS)


@dataclass(frozen=True)
class ExportConfig:
    periods: dict[str, int] = field(default_factory=lambda: dict(EXPORT_PERIODS))
    default_period: str = "30d"
    overview_limit: int = 50
    row_limit: int = 1000


@dataclass(frozen=True)
class ExportResult:
    """Rendered export body plus the attachment metadata."""

    content: str
    media_type: str
    filename: str


class ExportError(ValueError):
    """Unsupported export type or type/format combination."""
