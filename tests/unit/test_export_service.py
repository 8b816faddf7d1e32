"""
Tests for JSON/CSV export rendering.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from minimal_metrics.adapters.clock import FixedClock
from minimal_metrics.components.export import ExportError, ExportService, format_csv
from minimal_metrics.core.periods import DAY_MS


class StubQueries:
    def __init__(self) -> None:
        self.windows: list[tuple[int, int]] = []

    def page_view_totals(self, start: int, end: int) -> dict[str, int]:
        self.windows.append((start, end))
        return {"page_views": 3, "unique_visitors": 2}

    def top_pages(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        self.windows.append((start, end))
        return [{"page_url": "/a,b", "views": 3, "unique_visitors": 2}]

    def top_referrers(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        return [{"referrer": "Direct", "visits": 3, "unique_visitors": 2}]

    def top_countries(
        self, start: int, end: int, limit: int | None = None
    ) -> list[dict[str, Any]]:
        return [{"country": "Germany", "visits": 3, "unique_visitors": 2}]

    def top_campaigns(self, start: int, end: int, limit: int = 50) -> list[dict[str, Any]]:
        return [
            {
                "utm_source": "news",
                "utm_medium": None,
                "utm_campaign": "launch",
                "visits": 1,
                "unique_visitors": 1,
            }
        ]


@pytest.fixture
def queries() -> StubQueries:
    return StubQueries()


@pytest.fixture
def service(queries: StubQueries, clock: FixedClock) -> ExportService:
    return ExportService(queries, clock)


class TestFormatCsv:
    def test_header_and_quoting(self) -> None:
        text = format_csv(
            [{"page_url": "/a,b", "views": 3, "unique_visitors": 2}],
            ["page_url", "views", "unique_visitors"],
        )
        assert text == 'page_url,views,unique_visitors\n"/a,b",3,2\n'

    def test_none_is_empty(self) -> None:
        text = format_csv([{"a": None, "b": 1}], ["a", "b"])
        assert text.splitlines()[1] == ",1"


class TestExportService:
    def test_overview_json(self, service: ExportService) -> None:
        result = service.export("overview", "json", "7d")
        data = json.loads(result.content)
        assert result.filename == "minimal-metrics-overview-7d.json"
        assert result.media_type == "application/json"
        assert data["summary"]["total_page_views"] == 3
        assert data["summary"]["period"] == "7d"
        assert set(data) == {"summary", "top_pages", "top_referrers", "countries"}

    def test_overview_csv_rejected(self, service: ExportService) -> None:
        with pytest.raises(ExportError):
            service.export("overview", "csv")

    def test_unknown_type_rejected(self, service: ExportService) -> None:
        with pytest.raises(ExportError, match="Invalid export type"):
            service.export("sessions", "json")

    def test_pages_csv(self, service: ExportService) -> None:
        result = service.export("pages", "csv", "90d")
        assert result.filename == "minimal-metrics-pages-90d.csv"
        assert result.media_type == "text/csv"
        assert result.content.startswith("page_url,views,unique_visitors\n")

    def test_campaigns_csv(self, service: ExportService) -> None:
        result = service.export("campaigns", "csv", "30d")
        assert result.content.splitlines()[1] == "news,,launch,1,1"

    def test_period_defaults_to_30d(
        self, service: ExportService, queries: StubQueries, clock: FixedClock
    ) -> None:
        result = service.export("pages", "json", "1h")
        assert result.filename == "minimal-metrics-pages-30d.json"
        start, end = queries.windows[-1]
        assert end == clock.now_ms()
        assert end - start == 30 * DAY_MS
